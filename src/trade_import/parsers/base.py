from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Protocol


class FormatKind(str, Enum):
    MT4 = "mt4"
    MT5 = "mt5"
    GENERIC = "generic"


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"


class Outcome(str, Enum):
    WIN = "win"
    LOSS = "loss"
    BREAKEVEN = "breakeven"


def outcome_from_pnl(pnl: float) -> Outcome:
    if pnl > 0:
        return Outcome.WIN
    if pnl < 0:
        return Outcome.LOSS
    return Outcome.BREAKEVEN


@dataclass(slots=True)
class CanonicalTrade:
    instrument: str
    direction: Direction
    entry_price: float
    exit_price: float
    position_size: float
    pnl: float
    trade_date: str
    stop_loss: float | None = None
    take_profit: float | None = None
    entry_time: str | None = None
    exit_time: str | None = None
    timeframe: str | None = None

    @property
    def outcome(self) -> Outcome:
        return outcome_from_pnl(self.pnl)

    def to_record(self) -> dict[str, Any]:
        return {
            "instrument": self.instrument,
            "direction": self.direction.value,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "stop_loss": self.stop_loss,
            "take_profit": self.take_profit,
            "position_size": self.position_size,
            "outcome": self.outcome.value,
            "pnl": self.pnl,
            "trade_date": self.trade_date,
            "entry_time": self.entry_time,
            "exit_time": self.exit_time,
            "timeframe": self.timeframe,
        }


@dataclass(slots=True)
class ImportIssue:
    row_number: int | None
    field_name: str | None
    reason_code: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "row_number": self.row_number,
            "field_name": self.field_name,
            "reason_code": self.reason_code,
            "message": self.message,
        }


@dataclass(slots=True)
class ImportResult:
    format: FormatKind
    trades: list[CanonicalTrade] = field(default_factory=list)
    errors: list[ImportIssue] = field(default_factory=list)
    skipped_rows: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format.value,
            "trades": [t.to_record() for t in self.trades],
            "errors": [e.to_dict() for e in self.errors],
            "skipped_rows": list(self.skipped_rows),
        }


class RowRejected(Exception):
    """Raised inside a row extractor; becomes exactly one ImportIssue for that row."""

    def __init__(self, field_name: str | None, reason_code: str, message: str) -> None:
        super().__init__(message)
        self.field_name = field_name
        self.reason_code = reason_code
        self.message = message


class MissingColumnError(ValueError):
    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(message)
        self.field_name = field_name
        self.message = message


class TradeFormatParser(Protocol):
    format: FormatKind

    def parse_rows(
        self, header: list[str], rows: list[list[str]], today: Callable[[], date] | None = None
    ) -> ImportResult:
        ...
