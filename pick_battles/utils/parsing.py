"""
Generic, format-agnostic parsing utilities.
"""

from __future__ import annotations


def parse_int(value: str | int | float | None) -> int | None:
    """Parse a value to an integer, handling common edge cases.

    Accepts strings, ints, floats, or None. Returns None for empty strings or "-".
    """
    if value in (None, "", "-"):
        return None
    try:
        return int(float(value))
    except (ValueError, TypeError):
        return None


def parse_int_or_zero(value: str | int | float | None) -> int:
    """Parse a counter value, treating missing or malformed values as zero."""
    parsed = parse_int(value)
    return parsed if parsed is not None else 0
