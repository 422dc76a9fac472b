from __future__ import annotations

from collections.abc import Callable, Mapping
import codecs
from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any

from trade_import.config import settings
from trade_import.ingest.sinks import BatchInsertError, TradeSink
from trade_import.parsers.base import ImportResult


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TradeImportReport:
    total_trades: int = 0
    committed: int = 0
    batches_written: int = 0
    inserted_ids: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def partial(self) -> bool:
        return self.error is not None and self.committed > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_trades": self.total_trades,
            "committed": self.committed,
            "batches_written": self.batches_written,
            "inserted_ids": list(self.inserted_ids),
            "error": self.error,
            "partial": self.partial,
        }


def read_trade_file(file_path: Path) -> str:
    raw = file_path.read_bytes()
    # MetaTrader writes its reports as UTF-16 with a BOM.
    if raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return raw.decode("utf-16")
    return raw.decode("utf-8-sig", errors="replace")


def import_trades(
    result: ImportResult,
    sink: TradeSink,
    batch_size: int | None = None,
    context: Mapping[str, Any] | None = None,
    on_progress: Callable[[int, int], None] | None = None,
) -> TradeImportReport:
    """Write parsed trades to ``sink`` in fixed-size batches.

    Stops at the first BatchInsertError. Trades committed before the failure stay
    committed and are listed in the report.
    """
    size = settings.batch_size if batch_size is None else batch_size
    if size < 1:
        raise ValueError(f"batch_size must be >= 1, got {size}")

    extra = dict(context or {})
    report = TradeImportReport(total_trades=len(result.trades))
    for start in range(0, len(result.trades), size):
        batch = result.trades[start : start + size]
        records = [
            {**extra, **trade.to_record(), "import_source": result.format.value}
            for trade in batch
        ]
        try:
            ids = sink.insert_batch(records)
        except BatchInsertError as exc:
            report.error = f"Failed to import some trades: {exc}"
            logger.error(
                "Import stopped after %d of %d trades: %s",
                report.committed,
                report.total_trades,
                exc,
            )
            break
        report.inserted_ids.extend(ids)
        report.committed += len(batch)
        report.batches_written += 1
        logger.info("Committed batch %d (%d/%d)", report.batches_written, report.committed, report.total_trades)
        if on_progress is not None:
            on_progress(report.committed, report.total_trades)
    return report
