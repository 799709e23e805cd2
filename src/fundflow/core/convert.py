from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any


def to_int(value: Any, default: int = 0) -> int:
    """
    Best-effort integer conversion for graph properties.

    Missing or malformed values fall back to ``default`` instead of raising.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        try:
            return int(value)
        except (ValueError, OverflowError, InvalidOperation):
            return default
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return default
        try:
            return int(s)
        except ValueError:
            pass
        try:
            return int(Decimal(s))
        except (InvalidOperation, ValueError, OverflowError):
            return default
    return default


def to_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    try:
        return str(value)
    except Exception:
        return default
