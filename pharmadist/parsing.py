"""
Form input coercion.

Raw form values are strings (or missing). These helpers turn them into typed values at the boundary so the
derivation engine and validators only ever see Decimals, ints and dates.

Coercion policy:
- numbers: unparseable or absurdly large -> the given default (0 unless told otherwise), like a form field left blank
- text: stripped, missing -> ""
- dates: unparseable -> None, so the validators can report the missing/invalid date
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

# "1e999999999" is a valid Decimal; anything past this many integer digits is treated as garbage
MAX_INTEGER_DIGITS = 15


def parse_decimal(value, default: Decimal | None = Decimal("0")) -> Decimal | None:
    """Parse decimal from user input (accepts comma or dot)."""
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    raw = str(value).strip().replace(",", ".")
    if raw == "":
        return default
    try:
        parsed = Decimal(raw)
    except (InvalidOperation, ValueError):
        return default
    if not parsed.is_finite() or parsed.adjusted() > MAX_INTEGER_DIGITS:
        return default
    return parsed


def parse_int(value, default: int | None = 0) -> int | None:
    """Parse an integer; decimal input is truncated ("10.7" -> 10)."""
    if value is None:
        return default
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    parsed = parse_decimal(value, default=None)
    if parsed is None:
        return default
    return int(parsed)


def parse_optional_int(value) -> int | None:
    """Parse optional int from form/query (ids)."""
    return parse_int(value, default=None)


def parse_date(value) -> date | None:
    """Parse an ISO date (YYYY-MM-DD); datetimes are truncated to their date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def parse_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def optional_text(value) -> str | None:
    """Stripped text, or None when blank (for nullable columns)."""
    return parse_text(value) or None
