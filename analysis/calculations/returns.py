"""
Returns calculation utilities.
Pure functions for percentage returns between an anchor and the latest price.
"""

import math
from typing import Optional

from analysis.models import NOT_AVAILABLE, PricePoint, ReturnValue


def percent_return(anchor_price: Optional[float], latest_price: float) -> ReturnValue:
    """
    Calculate percentage return from an anchor price to the latest price.

    Formula: ((P_latest - P_anchor) / P_anchor) * 100

    Args:
        anchor_price: Price at the start of the period (None if unknown)
        latest_price: Most recent price

    Returns:
        Return in percent (10.0 = 10%), or NOT_AVAILABLE when the anchor
        price is missing or zero, or the result is not finite

    Example:
        percent_return(110.0, 121.0) -> 10.0
        percent_return(0.0, 121.0) -> 'N/A'
    """
    if anchor_price is None or anchor_price == 0:
        return NOT_AVAILABLE

    result = ((latest_price - anchor_price) / anchor_price) * 100

    # Subnormal anchors overflow to infinity
    if not math.isfinite(result):
        return NOT_AVAILABLE

    return result


def trailing_return(anchor: Optional[PricePoint], latest_price: float) -> ReturnValue:
    """Percentage return from a resolved anchor (or no anchor) to the latest price."""
    if anchor is None:
        return NOT_AVAILABLE
    return percent_return(anchor.adjusted_close, latest_price)


def is_available(value: ReturnValue) -> bool:
    """True when a return field holds a computed number rather than the marker."""
    if isinstance(value, str):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value)
