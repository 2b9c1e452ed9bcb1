"""
Normalizers for transforming raw price rows to PricePoints.
Pure functions - no IO, network, or side effects.
Malformed rows are dropped here and counted, never passed to the engine.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, Any, Iterable, List, Optional

import numpy as np
import pandas as pd
from dateutil import parser as date_parser

from analysis.models import PricePoint
from ingestion.transforms.validators import validate_price_row, ValidationError

logger = logging.getLogger(__name__)

# Accepted spellings per canonical field, first match wins
FIELD_ALIASES = {
    'entity_key': ('entity_key', 'entityKey', 'UNIQUE_CARRIER_NAME'),
    'date': ('date', 'Date'),
    'adjusted_close': ('adjusted_close', 'adjustedClose', 'adj_close', 'Adj Close'),
}

# Extended-JSON number wrappers written by document-store exports
NUMBER_WRAPPERS = ('$numberDouble', '$numberDecimal', '$numberLong', '$numberInt')


@dataclass
class NormalizedPrices:
    """PricePoints that survived ingestion, plus the drop diagnostics."""
    points: List[PricePoint] = field(default_factory=list)
    rows_in: int = 0
    rows_dropped: int = 0


def coerce_number(value: Any) -> Optional[float]:
    """
    Coerce a raw price field to float.

    Handles plain numbers, numeric strings, numpy scalars and extended-JSON
    wrappers such as {"$numberDouble": "12.5"}. Missing values (None, NaN,
    blank strings) come back as None.

    Args:
        value: Raw field value

    Returns:
        Float value, or None if the value is missing

    Raises:
        ValueError: If the value is present but cannot be read as a number
    """
    if value is None or value is pd.NA:
        return None

    if isinstance(value, dict):
        for wrapper in NUMBER_WRAPPERS:
            if wrapper in value:
                return coerce_number(value[wrapper])
        raise ValueError(f"Unrecognised number wrapper: {value}")

    if isinstance(value, np.generic):
        value = value.item()

    if isinstance(value, bool):
        raise ValueError("Boolean is not a price")

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        value = float(value)

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError as e:
            raise ValueError(f"Number out of range: {value}") from e
        return None if math.isnan(number) else number

    raise ValueError(f"Cannot coerce {type(value)} to a number")


def parse_price_date(value: Any) -> date:
    """
    Parse a raw date field to a calendar date.

    Accepts date/datetime objects, pandas Timestamps, numpy datetime64,
    date strings in any format dateutil understands, and extended-JSON
    {"$date": ...} wrappers (ISO string or epoch milliseconds). Time of day
    and timezone are discarded; only the calendar date is kept.

    Args:
        value: Raw field value

    Returns:
        Calendar date

    Raises:
        ValueError: If the value is missing or unparseable
    """
    if value is None or value is pd.NaT:
        raise ValueError("Missing date")

    if isinstance(value, dict):
        if '$date' not in value:
            raise ValueError(f"Unrecognised date wrapper: {value}")
        inner = value['$date']
        if isinstance(inner, dict):
            millis = coerce_number(inner)
            if millis is None:
                raise ValueError(f"Missing epoch value in {value}")
            try:
                return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).date()
            except (OverflowError, OSError, ValueError) as e:
                raise ValueError(f"Date out of range: {value}") from e
        return parse_price_date(inner)

    if isinstance(value, np.datetime64):
        if np.isnat(value):
            raise ValueError("Missing date")
        return pd.Timestamp(value).date()

    # pd.Timestamp is a datetime subclass
    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Missing date")
        try:
            return date_parser.parse(text).date()
        except OverflowError as e:
            raise ValueError(f"Date out of range: {text}") from e

    raise ValueError(f"Cannot parse {type(value)} as a date")


def normalize_price_rows(
    raw_rows: Iterable[Dict[str, Any]],
    *,
    entity_key: Optional[str] = None
) -> NormalizedPrices:
    """
    Transform raw price rows to PricePoints, dropping malformed rows.

    Minimal normalization:
    - Field name mapping (sources spell the same field differently)
    - Date parsing and number coercion
    - Row-level validation; a failing row is dropped and counted

    Rows are not deduplicated or reordered.

    Args:
        raw_rows: Raw price dictionaries from any source
        entity_key: Key to use for rows that carry none (single-entity files)

    Returns:
        NormalizedPrices with the surviving points and drop count
    """
    result = NormalizedPrices()

    for raw in raw_rows:
        result.rows_in += 1
        try:
            canonical = _canonicalize(raw, entity_key)
            validate_price_row(canonical)
        except ValidationError as e:
            result.rows_dropped += 1
            logger.warning(f"Dropping price row {result.rows_in}: {e}")
            continue

        result.points.append(PricePoint(**canonical))

    logger.info(
        f"Normalized {len(result.points)} price points "
        f"({result.rows_dropped} of {result.rows_in} rows dropped)"
    )
    return result


def _pick(raw: Dict[str, Any], canonical_name: str) -> Any:
    """Return the first present alias of a canonical field."""
    for alias in FIELD_ALIASES[canonical_name]:
        if alias in raw:
            return raw[alias]
    return None


def _canonicalize(raw: Any, default_entity_key: Optional[str]) -> Dict[str, Any]:
    """Map one raw row to canonical field names and types."""
    if not isinstance(raw, dict):
        raise ValidationError(f"Row must be a mapping, got {type(raw)}")

    key = _pick(raw, 'entity_key')
    if key is None or (isinstance(key, float) and math.isnan(key)):
        key = default_entity_key

    try:
        row_date = parse_price_date(_pick(raw, 'date'))
    except ValueError as e:
        raise ValidationError(f"Bad date: {e}") from e

    try:
        adjusted_close = coerce_number(_pick(raw, 'adjusted_close'))
    except ValueError as e:
        raise ValidationError(f"Bad adjusted close: {e}") from e

    return {
        'entity_key': key.strip() if isinstance(key, str) else key,
        'date': row_date,
        'adjusted_close': adjusted_close,
    }
