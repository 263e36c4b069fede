"""
Input parsing for values that arrive as loose strings (query parameters, CLI
arguments). Everything here runs before any upstream call is made.
"""
from __future__ import annotations

import math
from typing import Any, Optional

from domain.errors import InputValidationError
from domain.models import Coordinate


def parse_number(value: Any) -> Optional[float]:
    """Return a finite float for numeric input, or None when it is missing or invalid.

    "42.5" -> 42.5, 10 -> 10.0, "abc" -> None, None -> None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def parse_coordinate(lat: Any, lon: Any, message: str = "Missing or invalid lat/lon parameters") -> Coordinate:
    latitude = parse_number(lat)
    longitude = parse_number(lon)
    if latitude is None or longitude is None:
        raise InputValidationError(message)
    try:
        return Coordinate(latitude, longitude)
    except InputValidationError as exc:
        raise InputValidationError(message) from exc


def require_text(value: Optional[str], message: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InputValidationError(message)
    return text
