from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import date

from trade_import.parsers.base import FormatKind
from trade_import.parsers.columns import MT4_COLUMNS, cell
from trade_import.parsers.common import normalize_date, normalize_time
from trade_import.parsers.tabular import TabularTradeParser


class MT4HistoryParser(TabularTradeParser):
    format = FormatKind.MT4
    columns = MT4_COLUMNS
    instrument_label = "instrument/item"

    def read_times(
        self,
        row: list[str],
        columns: Mapping[str, int | None],
        today: Callable[[], date] | None,
    ) -> tuple[str, str | None, str | None]:
        open_raw = cell(row, columns.get("open_time"))
        close_raw = cell(row, columns.get("close_time"))
        return (
            normalize_date(open_raw or close_raw, today=today),
            normalize_time(open_raw),
            normalize_time(close_raw),
        )
