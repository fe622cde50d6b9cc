"""Loose date normalization to strict ISO YYYY-MM-DD."""

import re
from datetime import date, datetime

from loguru import logger

log = logger.bind(stage="dates")

_YEAR_RE = re.compile(r"^\d{4}$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Tried in order after ISO parsing fails
_DATE_FORMATS = (
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%m/%d/%Y",
    "%Y-%m",
    "%B %Y",
    "%b %Y",
)


def _parse_generic(text: str) -> date | None:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_date(value: object) -> str | None:
    """Reduce a loosely typed date to YYYY-MM-DD, or None if it won't parse.

    "2024" -> "2024-01-01", "2024-08-26" passes through, anything else is
    parsed as a generic date. Accepts date/datetime objects and int years
    as loaded from YAML.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if _YEAR_RE.match(text):
        return f"{text}-01-01"
    if _ISO_DATE_RE.match(text):
        return text

    parsed = _parse_generic(text)
    return parsed.isoformat() if parsed is not None else None


def normalize_date(value: object, today: date | None = None) -> str:
    """Like parse_date, but values that can't be parsed become today."""
    parsed = parse_date(value)
    if parsed is None:
        today = today or date.today()
        log.debug(f"No usable date in {value!r}, using {today}")
        return today.isoformat()
    return parsed
