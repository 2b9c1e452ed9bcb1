"""
Core validators for canonical price rows.
Pure functions - no IO, network, or side effects.
"""

import math
from datetime import date, datetime
from typing import Dict, Any


class ValidationError(ValueError):
    """Raised when data validation fails."""
    pass


def validate_price_row(row: Dict[str, Any]) -> None:
    """
    Validate a canonical price row before it becomes a PricePoint.

    Only the fields the return engine consumes are checked. A missing
    adjusted close is allowed (the point is kept but never used as an
    anchor or latest observation); zero is a legal price.

    Args:
        row: Dictionary with entity_key, date and adjusted_close

    Raises:
        ValidationError: If validation fails
    """
    # Required keys
    required_keys = {'entity_key', 'date', 'adjusted_close'}

    missing = required_keys - set(row.keys())
    if missing:
        raise ValidationError(f"Missing required keys: {missing}")

    entity_key = row['entity_key']
    if not isinstance(entity_key, str):
        raise ValidationError(f"entity_key must be string, got {type(entity_key)}")

    if not entity_key.strip():
        raise ValidationError("entity_key must be non-empty")

    # datetime is a date subclass; canonical rows carry plain dates
    row_date = row['date']
    if not isinstance(row_date, date) or isinstance(row_date, datetime):
        raise ValidationError(f"date must be date, got {type(row_date)}")

    adjusted_close = row['adjusted_close']
    if adjusted_close is None:
        return

    if isinstance(adjusted_close, bool) or not isinstance(adjusted_close, (int, float)):
        raise ValidationError(f"adjusted_close must be numeric, got {type(adjusted_close)}")

    if not math.isfinite(adjusted_close):
        raise ValidationError(f"adjusted_close must be finite, got {adjusted_close}")
