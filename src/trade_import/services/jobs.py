from __future__ import annotations

from pathlib import Path
from typing import Any

from trade_import.config import settings
from trade_import.ingest.sinks import JsonlTradeSink
from trade_import.ingest.trades import import_trades, read_trade_file
from trade_import.parsers.base import ImportResult
from trade_import.parsers.trade_csv import parse_trade_csv


def _parse_summary(result: ImportResult) -> dict[str, Any]:
    return {
        "format": result.format.value,
        "trades": len(result.trades),
        "errors": [issue.message for issue in result.errors],
        "skipped_rows": len(result.skipped_rows),
    }


def run_parse(file_path: Path | str) -> dict[str, Any]:
    result = parse_trade_csv(read_trade_file(Path(file_path)))
    return result.to_dict()


def run_trade_import(
    file_path: Path | str,
    output_path: Path | str | None = None,
    batch_size: int | None = None,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    result = parse_trade_csv(read_trade_file(Path(file_path)))
    sink = JsonlTradeSink(Path(output_path) if output_path else settings.output_path)
    report = import_trades(result, sink, batch_size=batch_size, context=context)
    return {"parse": _parse_summary(result), "import": report.to_dict()}
