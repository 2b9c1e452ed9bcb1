"""
Series utilities - group flat observations by entity and order them in time.
Pure functions over PricePoint sequences.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional

from analysis.models import PricePoint


def group_by_entity(points: Iterable[PricePoint]) -> Dict[str, List[PricePoint]]:
    """
    Partition observations by entity key.

    No validation happens here: points with a missing date are passed
    through untouched and left for later stages to ignore.

    Args:
        points: Observations in any order, for any number of entities

    Returns:
        Mapping of entity key to its observations, keys in first-seen order
    """
    groups: Dict[str, List[PricePoint]] = {}
    for point in points:
        groups.setdefault(point.entity_key, []).append(point)
    return groups


def sort_series(series: Iterable[PricePoint]) -> List[PricePoint]:
    """
    Order one entity's observations by date ascending.

    The sort is stable, so same-date points keep their input order.
    Undated points sort ahead of every dated point.
    """
    return sorted(series, key=lambda p: (p.date is not None, p.date or date.min))


def latest_priced_point(series: List[PricePoint]) -> Optional[PricePoint]:
    """Return the last point of a sorted series that has a date and a price."""
    for point in reversed(series):
        if point.is_priced:
            return point
    return None
