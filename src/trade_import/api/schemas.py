from __future__ import annotations

from pydantic import BaseModel, Field


class ParseRequest(BaseModel):
    content: str = Field(description="Full CSV export as text")


class TradeItem(BaseModel):
    instrument: str
    direction: str
    entry_price: float
    exit_price: float
    stop_loss: float | None = None
    take_profit: float | None = None
    position_size: float
    outcome: str
    pnl: float
    trade_date: str
    entry_time: str | None = None
    exit_time: str | None = None
    timeframe: str | None = None


class IssueItem(BaseModel):
    row_number: int | None
    field_name: str | None
    reason_code: str
    message: str


class ImportResultResponse(BaseModel):
    format: str
    trades: list[TradeItem]
    errors: list[IssueItem]
    skipped_rows: list[int] = Field(default_factory=list)
