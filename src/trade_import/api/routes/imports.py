from __future__ import annotations

from fastapi import APIRouter

from trade_import.api.schemas import ImportResultResponse, ParseRequest
from trade_import.parsers.trade_csv import parse_trade_csv


router = APIRouter(prefix="/api/imports", tags=["imports"])


@router.post("/parse", response_model=ImportResultResponse)
def parse_import(payload: ParseRequest) -> dict:
    return parse_trade_csv(payload.content).to_dict()
