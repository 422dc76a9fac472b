from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import date

from trade_import.parsers.base import FormatKind, RowRejected
from trade_import.parsers.columns import MT5_COLUMNS, cell
from trade_import.parsers.common import normalize_date, normalize_time, parse_number
from trade_import.parsers.tabular import TabularTradeParser


class MT5HistoryParser(TabularTradeParser):
    format = FormatKind.MT5
    columns = MT5_COLUMNS
    instrument_label = "symbol"
    size_label = "volume"
    price_message = "Invalid price"

    def read_prices(self, row: list[str], columns: Mapping[str, int | None]) -> tuple[float, float]:
        if columns.get("entry_price") is not None and columns.get("exit_price") is not None:
            return super().read_prices(row, columns)
        # Deal exports carry a single price column; entry and exit collapse onto it.
        price = parse_number(cell(row, columns.get("price")))
        if price is None:
            raise RowRejected("entry_price", "invalid", self.price_message)
        return price, price

    def read_times(
        self,
        row: list[str],
        columns: Mapping[str, int | None],
        today: Callable[[], date] | None,
    ) -> tuple[str, str | None, str | None]:
        time_raw = cell(row, columns.get("time"))
        return normalize_date(time_raw, today=today), normalize_time(time_raw), None
