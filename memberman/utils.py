"""Input normalization helpers shared by services and views."""

import re
from decimal import Decimal, InvalidOperation

from memberman.conf import memberman_settings

_CENTS = Decimal("0.01")
_AMOUNT_RE = re.compile(r"^\d+(\.\d{1,2})?$")


def parse_int(value) -> int | None:
    """Integer from an int or a numeric string. None if not parseable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r"\s*-?\d+\s*", value):
        return int(value)
    return None


def parse_decimal(value) -> Decimal | None:
    """Two-place decimal from int/float/str/Decimal. None if not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    try:
        return amount.quantize(_CENTS)
    except InvalidOperation:
        return None


def is_amount_string(value) -> bool:
    """Strict money format: digits with at most two decimals (e.g. "19.90")."""
    return bool(_AMOUNT_RE.match(str(value).strip()))


def page_bounds(limit=None, offset=None) -> tuple[int, int] | None:
    """
    Normalize pagination parameters.

    Returns (limit, offset) with limit capped at MAX_PAGE_SIZE, or None when
    either value is invalid.
    """
    if limit in (None, ""):
        page_size = memberman_settings.DEFAULT_PAGE_SIZE
    else:
        page_size = parse_int(limit)
        if page_size is None or page_size <= 0:
            return None
    if offset in (None, ""):
        start = 0
    else:
        start = parse_int(offset)
        if start is None or start < 0:
            return None
    return min(page_size, memberman_settings.MAX_PAGE_SIZE), start
