from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from datetime import date
import logging
from types import MappingProxyType

from trade_import.parsers.base import (
    CanonicalTrade,
    Direction,
    FormatKind,
    ImportIssue,
    ImportResult,
    RowRejected,
)
from trade_import.parsers.columns import cell, resolve_columns
from trade_import.parsers.common import (
    direction_from_type,
    is_non_trade_type,
    parse_number,
)


logger = logging.getLogger(__name__)

# Header is row 1, so the first data row is row 2.
FIRST_DATA_ROW = 2


class TabularTradeParser(ABC):
    format: FormatKind = FormatKind.GENERIC
    columns: Mapping[str, tuple[str, ...]] = MappingProxyType({})
    required_columns: Mapping[str, str] = MappingProxyType({})
    instrument_label: str = "instrument"
    size_label: str = "position size"
    price_message: str = "Invalid entry/exit price"
    skip_unknown_direction: bool = True

    def parse_rows(
        self,
        header: list[str],
        rows: list[list[str]],
        today: Callable[[], date] | None = None,
    ) -> ImportResult:
        columns = resolve_columns(header, self.columns, self.required_columns)
        result = ImportResult(format=self.format)

        for offset, row in enumerate(rows):
            row_number = offset + FIRST_DATA_ROW
            try:
                trade = self.parse_row(row, columns, today)
            except RowRejected as exc:
                result.errors.append(
                    ImportIssue(
                        row_number=row_number,
                        field_name=exc.field_name,
                        reason_code=exc.reason_code,
                        message=f"Row {row_number}: {exc.message}",
                    )
                )
                continue
            except Exception as exc:
                logger.warning("Unexpected failure on row %d", row_number, exc_info=True)
                result.errors.append(
                    ImportIssue(
                        row_number=row_number,
                        field_name=None,
                        reason_code="unexpected",
                        message=f"Row {row_number}: {str(exc) or 'Unknown parsing error'}",
                    )
                )
                continue
            if trade is None:
                result.skipped_rows.append(row_number)
                continue
            result.trades.append(trade)

        return result

    def parse_row(
        self,
        row: list[str],
        columns: Mapping[str, int | None],
        today: Callable[[], date] | None,
    ) -> CanonicalTrade | None:
        type_text = cell(row, columns.get("type"))
        if is_non_trade_type(type_text):
            return None
        direction = direction_from_type(type_text)
        if direction is None:
            if self.skip_unknown_direction:
                return None
            direction = Direction.LONG

        instrument = cell(row, columns.get("instrument"))
        if not instrument:
            raise RowRejected("instrument", "missing", f"Missing {self.instrument_label}")

        entry_price, exit_price = self.read_prices(row, columns)
        position_size = self.read_position_size(row, columns)
        pnl = self.read_pnl(row, columns, direction, entry_price, exit_price, position_size)
        trade_date, entry_time, exit_time = self.read_times(row, columns, today)

        return CanonicalTrade(
            instrument=instrument,
            direction=direction,
            entry_price=entry_price,
            exit_price=exit_price,
            position_size=position_size,
            pnl=pnl,
            trade_date=trade_date,
            stop_loss=self.optional_level(row, columns.get("stop_loss")),
            take_profit=self.optional_level(row, columns.get("take_profit")),
            entry_time=entry_time,
            exit_time=exit_time,
            timeframe=cell(row, columns.get("timeframe")) or None,
        )

    def read_prices(self, row: list[str], columns: Mapping[str, int | None]) -> tuple[float, float]:
        entry_price = parse_number(cell(row, columns.get("entry_price")))
        exit_price = parse_number(cell(row, columns.get("exit_price")))
        if entry_price is None:
            raise RowRejected("entry_price", "invalid", self.price_message)
        if exit_price is None:
            raise RowRejected("exit_price", "invalid", self.price_message)
        return entry_price, exit_price

    def read_position_size(self, row: list[str], columns: Mapping[str, int | None]) -> float:
        return self.require_positive(parse_number(cell(row, columns.get("position_size"))))

    def read_pnl(
        self,
        row: list[str],
        columns: Mapping[str, int | None],
        direction: Direction,
        entry_price: float,
        exit_price: float,
        position_size: float,
    ) -> float:
        pnl = parse_number(cell(row, columns.get("pnl")))
        if pnl is None:
            raise RowRejected("pnl", "invalid", "Invalid profit value")
        return pnl

    @abstractmethod
    def read_times(
        self,
        row: list[str],
        columns: Mapping[str, int | None],
        today: Callable[[], date] | None,
    ) -> tuple[str, str | None, str | None]:
        """Return the trade date and the entry and exit times for one row."""

    def require_positive(self, size: float | None) -> float:
        if size is None:
            raise RowRejected("position_size", "invalid", f"Invalid {self.size_label}")
        if size <= 0:
            raise RowRejected("position_size", "not_positive", f"Invalid {self.size_label}")
        return size

    @staticmethod
    def optional_level(row: list[str], index: int | None) -> float | None:
        # Platforms write 0 for "no stop" / "no target".
        value = parse_number(cell(row, index))
        if value is None or value <= 0:
            return None
        return value
