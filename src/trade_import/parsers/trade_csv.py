from __future__ import annotations

from collections.abc import Callable
from datetime import date
import logging

from trade_import.parsers.base import FormatKind, ImportIssue, ImportResult, MissingColumnError
from trade_import.parsers.common import split_line, split_lines
from trade_import.parsers.registry import detect_format, parser_for_format


logger = logging.getLogger(__name__)


def parse_trade_csv(csv_text: str, today: Callable[[], date] | None = None) -> ImportResult:
    """Parse a trade-history CSV export into canonical trades and row errors.

    The format (MT4, MT5 or generic spreadsheet) is detected from the header row.
    Bad rows never stop the file; each one yields a single ImportIssue. ``today``
    supplies the fallback date for rows whose date cannot be read.
    """
    lines = split_lines(csv_text)
    if len(lines) < 2:
        return ImportResult(
            format=FormatKind.GENERIC,
            errors=[
                ImportIssue(
                    row_number=None,
                    field_name=None,
                    reason_code="empty_file",
                    message="File is empty or has no data rows",
                )
            ],
        )

    header = split_line(lines[0])
    rows = [split_line(line) for line in lines[1:]]
    kind = detect_format(header)
    logger.debug("Detected %s format for %d data rows", kind.value, len(rows))

    try:
        result = parser_for_format(kind).parse_rows(header, rows, today=today)
    except MissingColumnError as exc:
        return ImportResult(
            format=kind,
            errors=[
                ImportIssue(
                    row_number=None,
                    field_name=exc.field_name,
                    reason_code="missing_column",
                    message=exc.message,
                )
            ],
        )

    logger.debug(
        "Parsed %d trades, %d errors, %d skipped rows",
        len(result.trades),
        len(result.errors),
        len(result.skipped_rows),
    )
    return result
