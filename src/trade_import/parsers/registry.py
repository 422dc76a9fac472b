from __future__ import annotations

from collections.abc import Callable, Sequence

from trade_import.parsers.base import FormatKind, TradeFormatParser
from trade_import.parsers.generic import GenericTradeParser
from trade_import.parsers.mt4 import MT4HistoryParser
from trade_import.parsers.mt5 import MT5HistoryParser


MT4_SIGNATURE = (
    "ticket",
    "open time",
    "close time",
    "type",
    "size",
    "item",
    "open price",
    "close price",
    "profit",
)
MT5_INDICATORS = ("position", "symbol", "volume", "price", "s/l", "t/p", "profit", "time")
MT5_MIN_INDICATORS = 5


def _lowered(header: Sequence[str]) -> list[str]:
    return [h.strip().lower() for h in header if h.strip()]


def _mentions(header: list[str], term: str) -> bool:
    return any(term in name for name in header)


def looks_like_mt4(header: Sequence[str]) -> bool:
    lowered = _lowered(header)
    return all(_mentions(lowered, term) for term in MT4_SIGNATURE)


def looks_like_mt5(header: Sequence[str]) -> bool:
    lowered = _lowered(header)
    return sum(1 for term in MT5_INDICATORS if _mentions(lowered, term)) >= MT5_MIN_INDICATORS


# Evaluated in order. MT4 headers also satisfy the MT5 indicator count, so MT4 goes first.
FORMAT_RULES: tuple[tuple[FormatKind, Callable[[Sequence[str]], bool]], ...] = (
    (FormatKind.MT4, looks_like_mt4),
    (FormatKind.MT5, looks_like_mt5),
)

PARSER_BY_FORMAT: dict[FormatKind, TradeFormatParser] = {
    FormatKind.MT4: MT4HistoryParser(),
    FormatKind.MT5: MT5HistoryParser(),
    FormatKind.GENERIC: GenericTradeParser(),
}


def detect_format(header: Sequence[str]) -> FormatKind:
    for kind, matches in FORMAT_RULES:
        if matches(header):
            return kind
    return FormatKind.GENERIC


def parser_for_format(kind: FormatKind) -> TradeFormatParser:
    return PARSER_BY_FORMAT[kind]
