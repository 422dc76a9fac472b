from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from trade_import.parsers.base import MissingColumnError


# Ranked header synonyms per logical field. Matching is case-insensitive and exact.
INSTRUMENT = ("instrument", "symbol", "pair", "ticker", "asset")
DIRECTION = ("direction", "type", "side", "action")
ENTRY_PRICE = ("entry", "entry price", "open", "open price", "entry_price", "open_price")
EXIT_PRICE = ("exit", "exit price", "close", "close price", "exit_price", "close_price")
POSITION_SIZE = ("size", "volume", "lots", "quantity", "qty", "position_size", "position size")
PNL = ("pnl", "profit", "p&l", "pl", "profit/loss", "result")
STOP_LOSS = ("sl", "s/l", "stop loss", "stop_loss", "stoploss")
TAKE_PROFIT = ("tp", "t/p", "take profit", "take_profit", "takeprofit")
TRADE_DATE = ("date", "trade date", "trade_date", "time", "datetime", "open time", "open_time")
ENTRY_TIME = ("entry time", "entry_time", "open time", "open_time")
EXIT_TIME = ("exit time", "exit_time", "close time", "close_time")
TIMEFRAME = ("timeframe", "tf", "period")

MT4_COLUMNS: Mapping[str, tuple[str, ...]] = {
    "type": ("type",),
    "instrument": ("item",),
    "position_size": ("size",),
    "entry_price": ("open price",),
    "exit_price": ("close price",),
    "open_time": ("open time",),
    "close_time": ("close time",),
    "stop_loss": ("s/l", "sl", "stop loss"),
    "take_profit": ("t/p", "tp", "take profit"),
    "pnl": ("profit",),
}

MT5_COLUMNS: Mapping[str, tuple[str, ...]] = {
    "type": ("type",),
    "instrument": ("symbol",),
    "position_size": ("volume",),
    "price": ("price",),
    "entry_price": ("open price", "price open"),
    "exit_price": ("close price", "price close"),
    "time": ("time",),
    "stop_loss": ("s/l", "sl", "stop loss"),
    "take_profit": ("t/p", "tp", "take profit"),
    "pnl": ("profit",),
}

GENERIC_COLUMNS: Mapping[str, tuple[str, ...]] = {
    "instrument": INSTRUMENT,
    "type": DIRECTION,
    "entry_price": ENTRY_PRICE,
    "exit_price": EXIT_PRICE,
    "position_size": POSITION_SIZE,
    "pnl": PNL,
    "stop_loss": STOP_LOSS,
    "take_profit": TAKE_PROFIT,
    "trade_date": TRADE_DATE,
    "entry_time": ENTRY_TIME,
    "exit_time": EXIT_TIME,
    "timeframe": TIMEFRAME,
}

GENERIC_REQUIRED = {
    "instrument": "Missing required column: instrument/symbol",
    "entry_price": "Missing required column: entry/open price",
}


def find_column(header: Sequence[str], candidates: Iterable[str]) -> int | None:
    lowered = [h.strip().lower() for h in header]
    for candidate in candidates:
        key = candidate.lower()
        if key in lowered:
            return lowered.index(key)
    return None


def resolve_columns(
    header: Sequence[str],
    synonyms: Mapping[str, tuple[str, ...]],
    required: Mapping[str, str] | None = None,
) -> dict[str, int | None]:
    """Map logical field names to header positions.

    Optional fields that are not present resolve to None. A missing field listed in
    ``required`` raises MissingColumnError with its file-level message.
    """
    columns = {name: find_column(header, candidates) for name, candidates in synonyms.items()}
    for name, message in (required or {}).items():
        if columns.get(name) is None:
            raise MissingColumnError(name, message)
    return columns


def cell(row: Sequence[str], index: int | None) -> str:
    if index is None or index >= len(row):
        return ""
    return row[index].strip()
