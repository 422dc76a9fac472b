from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
import math
import re

from trade_import.parsers.base import Direction


DELIMITERS = frozenset(",;\t")

# Leading numeric prefix; trailing text such as a currency code is ignored.
NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
WHITESPACE_RE = re.compile(r"\s+")

ISO_DATE_RE = re.compile(r"^(?P<y>\d{4})-(?P<m>\d{2})-(?P<d>\d{2})")
DOTTED_DATE_RE = re.compile(r"^(?P<y>\d{4})\.(?P<m>\d{2})\.(?P<d>\d{2})")
US_DATE_RE = re.compile(r"^(?P<m>\d{1,2})/(?P<d>\d{1,2})/(?P<y>\d{4})")
EU_DATE_RE = re.compile(r"^(?P<d>\d{2})[./](?P<m>\d{2})[./](?P<y>\d{4})")
TIME_RE = re.compile(r"(\d{1,2}:\d{2}(?::\d{2})?)")

DATE_FORMATS = (
    "%Y/%m/%d",
    "%Y%m%d",
    "%d-%b-%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%B %d, %Y",
)

DIRECTION_MAP = {
    "buy": Direction.LONG,
    "long": Direction.LONG,
    "buy limit": Direction.LONG,
    "buy stop": Direction.LONG,
    "sell": Direction.SHORT,
    "short": Direction.SHORT,
    "sell limit": Direction.SHORT,
    "sell stop": Direction.SHORT,
}

NON_TRADE_TYPES = frozenset({"balance", "credit"})


def split_line(line: str) -> list[str]:
    """Split one physical line on comma, semicolon or tab, honouring double quotes.

    Inside quotes delimiters are literal and ``""`` is an escaped quote. Every field
    is trimmed. Unbalanced quoting never fails; the rest of the line simply stays
    inside the last field.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if in_quotes:
            if char == '"':
                if i + 1 < len(line) and line[i + 1] == '"':
                    current.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                current.append(char)
        elif char == '"':
            in_quotes = True
        elif char in DELIMITERS:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    fields.append("".join(current).strip())
    return fields


def split_lines(text: str) -> list[str]:
    # A byte-order mark survives str.strip() and would stick to the first header cell.
    normalized = text.removeprefix("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
    return [line for line in normalized.split("\n") if line.strip()]


def parse_number(value: str | None) -> float | None:
    """Locale-tolerant float parsing. Returns None instead of raising.

    With both ``,`` and ``.`` present the comma is a thousands separator. A single
    comma alone is a decimal comma; several commas alone are thousands separators.
    The rule is fixed, so ``1,234`` reads as ``1.234``.
    """
    if value is None:
        return None
    s = WHITESPACE_RE.sub("", value)
    if "," in s and "." in s:
        s = s.replace(",", "")
    elif "," in s:
        if s.count(",") == 1:
            s = s.replace(",", ".")
        else:
            s = s.replace(",", "")
    match = NUMBER_RE.match(s)
    if not match:
        return None
    try:
        number = float(match.group(0))
    except ValueError:
        return None
    if math.isinf(number) or math.isnan(number):
        return None
    return number


def _build_date(year: str, month: str, day: str) -> date | None:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def _parse_date_loose(value: str) -> date | None:
    candidates = [value]
    head = value.split(" ")[0]
    if head != value:
        candidates.append(head)
    for candidate in candidates:
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue
    return None


def normalize_date(raw: str | None, today: Callable[[], date] | None = None) -> str:
    """Return ``YYYY-MM-DD`` for a date or datetime string.

    Tried in order: ISO prefix, MetaTrader dotted prefix, US ``M/D/YYYY``, EU
    ``DD/MM/YYYY`` or ``DD.MM.YYYY``, then a set of loose formats. When all fail the
    result is today's date from ``today`` (``date.today`` by default).
    """
    value = (raw or "").strip()
    if value:
        for pattern in (ISO_DATE_RE, DOTTED_DATE_RE, US_DATE_RE, EU_DATE_RE):
            match = pattern.match(value)
            if not match:
                continue
            parsed = _build_date(match.group("y"), match.group("m"), match.group("d"))
            if parsed is not None:
                return parsed.isoformat()
        parsed = _parse_date_loose(WHITESPACE_RE.sub(" ", value))
        if parsed is not None:
            return parsed.isoformat()
    return (today or date.today)().isoformat()


def normalize_time(raw: str | None) -> str | None:
    if not raw or not raw.strip():
        return None
    match = TIME_RE.search(raw)
    if match:
        return match.group(1)
    return None


def direction_from_type(value: str | None) -> Direction | None:
    if not value:
        return None
    return DIRECTION_MAP.get(WHITESPACE_RE.sub(" ", value.strip().lower()))


def is_non_trade_type(value: str | None) -> bool:
    return (value or "").strip().lower() in NON_TRADE_TYPES
