"""
Derived display values: ages, date normalization and label conversion.

All helpers are total: bad input yields an empty string (or None for the
numeric/date parsers), never an exception.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any

from packages.shared.models.case import CaseFields

# ISO date, optionally followed by a time part. Anchored so free text that
# merely starts with a date is left alone.
_ISO_DATE_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?$"
)
# M/D/YYYY, optionally followed by a clock time ("2/1/2017 10:30 AM").
_US_DATE_RE = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{4})(?:,?\s+\d{1,2}:\d{2}(?::\d{2})?(?:\s*[AaPp]\.?[Mm]\.?)?)?$"
)

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def _from_epoch_ms(value: float) -> date | None:
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).date()
    except (OverflowError, OSError, ValueError):
        return None


def date_only(value: Any) -> str:
    """
    Reduce a date-ish value to ``YYYY-MM-DD``.

    ISO timestamps keep their date prefix, ``M/D/YYYY`` is zero-padded into
    ISO order, date objects are formatted and numbers are read as epoch
    milliseconds. Any other string comes back unchanged.
    """
    if value is None or value == "":
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        d = _from_epoch_ms(value)
        return d.isoformat() if d else str(value)

    text = str(value).strip()
    m = _ISO_DATE_RE.match(text)
    if m:
        return m.group(1)
    m = _US_DATE_RE.match(text)
    if m:
        month, day, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return str(value)
    return str(value)


def parse_date(value: Any) -> date | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        return _from_epoch_ms(value)
    iso = date_only(value)
    try:
        return date.fromisoformat(iso)
    except ValueError:
        return None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse into an aware UTC datetime. Naive inputs are taken as UTC."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        d = parse_date(text)
        if d is None:
            return None
        return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def compute_age(birthdate: Any, today: date | datetime | None = None) -> int | None:
    """Whole years since birthdate; None when the birthdate is missing, invalid or in the future."""
    born = parse_date(birthdate)
    if born is None:
        return None
    now = today or date.today()
    if isinstance(now, datetime):
        now = now.date()
    years = now.year - born.year - ((now.month, now.day) < (born.month, born.day))
    if years < 0:
        return None
    return years


def display_age(fields: CaseFields, today: date | datetime | None = None) -> str:
    """Explicit age on the record wins; otherwise derive it from the birthdate."""
    if fields.age.strip():
        return fields.age.strip()
    years = compute_age(fields.birthdate, today=today)
    return "" if years is None else str(years)


def long_date(value: Any) -> str:
    """``January 5, 2024`` style; empty for missing or unparseable input."""
    d = parse_date(value)
    if d is None:
        return ""
    return f"{_MONTHS[d.month - 1]} {d.day}, {d.year}"


def short_date(value: Any) -> str:
    """``Jan 5, 2024`` style for list views. Unparseable text passes through."""
    d = parse_date(value)
    if d is None:
        return "" if value is None else str(value)
    return f"{_MONTHS[d.month - 1][:3]} {d.day}, {d.year}"


_TRUE_WORDS = {"true", "yes", "y", "1"}
_FALSE_WORDS = {"false", "no", "n", "0"}


def yes_no(value: Any, yes: str = "YES", no: str = "NO") -> str:
    if isinstance(value, bool):
        return yes if value else no
    if value is None:
        return ""
    text = str(value).strip()
    lowered = text.lower()
    if lowered in _TRUE_WORDS:
        return yes
    if lowered in _FALSE_WORDS:
        return no
    return text


def living_label(value: Any) -> str:
    """Living / Deceased; unknown stays unknown (blank or the raw text)."""
    text = yes_no(value, yes="Living", no="Deceased")
    lowered = text.lower()
    if lowered in {"alive", "living"}:
        return "Living"
    if lowered in {"dead", "deceased"}:
        return "Deceased"
    return text


def format_income(value: Any, symbol: str = "₱") -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        return ""
    if text.startswith(symbol.strip()):
        return text
    return f"{symbol}{text}"
