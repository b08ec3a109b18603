"""
Small helpers shared across the application.

Covers loose Directus value shapes: relation ids, truthy flags, amounts
and dates that arrive as strings, numbers or nested objects.
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
CENT = Decimal("0.01")
ZERO = Decimal("0")

# Keys Directus uses when a relation field is expanded into an object.
RELATION_KEYS = (
    "id",
    "invoice_id",
    "invoice_no",
    "product_id",
    "supplier_id",
    "brand_id",
    "section_id",
    "division_id",
    "return_number",
    "return_id",
)


def normalize_date(value: Optional[str]) -> Optional[str]:
    """
    Normalize an incoming date to ``YYYY-MM-DD``.

    Args:
        value: ISO date/datetime, ``MM/DD/YYYY`` or ``DD/MM/YYYY``. When the
            first part is greater than 12 it is read as the day.

    Returns:
        The normalized date, ``None`` for empty input, or the stripped input
        unchanged when it matches none of the known shapes.
    """
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None

    if ISO_DATE_RE.match(value):
        return value[:10]

    parts = value.split("/")
    if len(parts) == 3 and all(part.strip().isdigit() for part in parts):
        first, second, year = (part.strip() for part in parts)
        if int(first) > 12:
            day, month = first, second
        else:
            day, month = second, first
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    return value


def date_part(value: Any) -> Optional[str]:
    """Return the ``YYYY-MM-DD`` prefix of a date-like value."""
    if not value:
        return None
    text = str(value)
    if len(text) < 10:
        return None
    return text[:10]


def in_range(day: Optional[str], from_date: Optional[str], to_date: Optional[str]) -> bool:
    if not day:
        return False
    if from_date and day < from_date:
        return False
    if to_date and day > to_date:
        return False
    return True


def rel_id(value: Any) -> str:
    """Return the key of a Directus relation given as scalar or object."""
    if value is None:
        return ""
    if isinstance(value, dict):
        for key in RELATION_KEYS:
            if value.get(key) is not None:
                return str(value[key])
        return ""
    return str(value)


def is_truthy(value: Any) -> bool:
    """Interpret the flag encodings Directus returns for boolean columns."""
    if value is True:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value == 1:
        return True
    if isinstance(value, str) and value.strip().lower() in ("1", "true"):
        return True
    if isinstance(value, dict):
        data = value.get("data")
        if isinstance(data, list) and data and data[0] == 1:
            return True
    return False


def to_decimal(value: Any) -> Decimal:
    """Convert a loose numeric value to :class:`Decimal`, 0 when invalid."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def round_cents(value: Any) -> Decimal:
    """Round to cents, half away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_money(value: Decimal) -> float:
    """Round to cents and return a JSON friendly float."""
    return float(round_cents(value))


def percent(part: Decimal, whole: Decimal) -> Decimal:
    """Return ``part / whole * 100``, or 0 when ``whole`` is not positive."""
    if whole <= 0:
        return ZERO
    return part / whole * 100
