"""
Utility Functions for VBO Telemetry Processing

This module provides helper functions for token conversion and rounding used
throughout the parsing and analysis pipeline.
"""

import math
from typing import Optional

from . import constants


def is_null_token(token: Optional[str]) -> bool:
    """
    Check whether a raw token means "no value".

    Args:
        token: Raw token from a data row (may be None).

    Returns:
        True for None, empty text, "null" and "(null)".
    """
    return token is None or token.strip() in constants.NULL_TOKENS


def parse_number(token: Optional[str]) -> Optional[float]:
    """
    Parse a token as a float, keeping non-finite results (inf and nan).

    Accepts anything Python's float() accepts, including scientific notation
    and an explicit leading sign ("+03119.09973").

    Args:
        token: Raw token from a data row.

    Returns:
        Parsed float, or None for null tokens and unparseable text.
    """
    if is_null_token(token):
        return None
    try:
        return float(token)
    except (TypeError, ValueError):
        return None


def parse_numeric(token: Optional[str]) -> Optional[float]:
    """
    Parse a channel value.

    Args:
        token: Raw token from a data row.

    Returns:
        Finite float, or None if the token is null, unparseable, or not finite.
    """
    value = parse_number(token)
    if value is None or not math.isfinite(value):
        return None
    return value


def round_float(value, digits: int = 3) -> Optional[float]:
    """
    Round a float value, handling None, NaN, and Inf.

    Args:
        value: Value to round.
        digits: Number of decimal places. Default 3.

    Returns:
        Rounded float, or None if value is None, NaN, or Inf.
    """
    if value is None or (isinstance(value, float) and (math.isnan(value) or math.isinf(value))):
        return None
    return round(float(value), digits)
