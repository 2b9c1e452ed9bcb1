"""
Anchor resolution - pick the historical observation a trailing return starts from.
Pure function over a date-sorted series.
"""

from datetime import date
from typing import List, Optional

from analysis.models import PricePoint


def resolve_anchor(series: List[PricePoint], target_date: date) -> Optional[PricePoint]:
    """
    Find the anchor observation for a target date.

    Two ascending passes over the series, first match wins in each:
    1. the first priced point dated on or after the target
    2. failing that, the first priced point dated on or before the target
       (the earliest such point, not the one nearest the target)

    This is deliberately not nearest-by-distance matching.

    Args:
        series: One entity's observations sorted by date ascending
        target_date: Date the trailing period starts on

    Returns:
        The anchor PricePoint, or None when no priced point qualifies
    """
    for point in series:
        if point.is_priced and point.date >= target_date:
            return point

    for point in series:
        if point.is_priced and point.date <= target_date:
            return point

    return None
