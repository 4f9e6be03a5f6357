"""Shared utilities used across the parking booking modules."""

import re
from decimal import ROUND_HALF_UP, Decimal


def normalize_license_plate(value: str) -> str:
    """Normalize a license plate to uppercase with separators removed.

    Examples:
        >>> normalize_license_plate("ka 01 ab 1234")
        'KA01AB1234'
        >>> normalize_license_plate(" mh-12-xy-9 ")
        'MH12XY9'
    """
    return re.sub(r"[^A-Z0-9]", "", value.strip().upper())


def round_currency(value: float, places: int = 0) -> float:
    """Round a monetary amount half-up to the given number of decimal places.

    Examples:
        >>> round_currency(39.6)
        40.0
        >>> round_currency(0.5)
        1.0
        >>> round_currency(12.345, 2)
        12.35
    """
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)
