from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import date

from trade_import.parsers.base import Direction, FormatKind, RowRejected
from trade_import.parsers.columns import GENERIC_COLUMNS, GENERIC_REQUIRED, cell
from trade_import.parsers.common import normalize_date, normalize_time, parse_number
from trade_import.parsers.tabular import TabularTradeParser


DEFAULT_POSITION_SIZE = 0.01


class GenericTradeParser(TabularTradeParser):
    """Spreadsheet exports with free-form headers.

    Only instrument and entry price columns are required. Rows without a
    recognisable direction are imported as long trades.
    """

    format = FormatKind.GENERIC
    columns = GENERIC_COLUMNS
    required_columns = GENERIC_REQUIRED
    skip_unknown_direction = False

    def read_prices(self, row: list[str], columns: Mapping[str, int | None]) -> tuple[float, float]:
        entry_price = parse_number(cell(row, columns.get("entry_price")))
        if entry_price is None:
            raise RowRejected("entry_price", "invalid", "Invalid entry price")
        if columns.get("exit_price") is None:
            return entry_price, entry_price
        exit_price = parse_number(cell(row, columns.get("exit_price")))
        if exit_price is None:
            raise RowRejected("exit_price", "invalid", "Invalid exit price")
        return entry_price, exit_price

    def read_position_size(self, row: list[str], columns: Mapping[str, int | None]) -> float:
        if columns.get("position_size") is None:
            return DEFAULT_POSITION_SIZE
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
        pnl_raw = cell(row, columns.get("pnl"))
        if pnl_raw:
            pnl = parse_number(pnl_raw)
            if pnl is None:
                raise RowRejected("pnl", "invalid", "Invalid profit value")
            return pnl
        diff = exit_price - entry_price
        if direction is Direction.SHORT:
            return -diff * position_size
        return diff * position_size

    def read_times(
        self,
        row: list[str],
        columns: Mapping[str, int | None],
        today: Callable[[], date] | None,
    ) -> tuple[str, str | None, str | None]:
        date_raw = cell(row, columns.get("trade_date"))
        entry_raw = cell(row, columns.get("entry_time"))
        exit_raw = cell(row, columns.get("exit_time"))
        return (
            normalize_date(date_raw, today=today),
            normalize_time(entry_raw or date_raw),
            normalize_time(exit_raw),
        )
