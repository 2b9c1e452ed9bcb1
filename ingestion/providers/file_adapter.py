"""
File adapter - read raw price rows from CSV or JSON exports.
File IO only, no business logic: rows come back in source format.
"""

import json
from pathlib import Path
from typing import Dict, Any, List, Union

import pandas as pd


class PriceSourceError(Exception):
    """Raised when a price source cannot be read."""
    pass


SUPPORTED_SUFFIXES = ('.csv', '.json')


def read_price_rows(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Read raw price rows from a file.
    Returns raw data in source format - no normalization.

    Supported formats:
    - .csv: one row per observation, header row required
    - .json: a list of documents, or {"data": [...]} (document-store
      exports with extended-JSON values are fine)

    Args:
        path: Path to the price file

    Returns:
        List of raw price dictionaries

    Raises:
        PriceSourceError: If the file is missing, unsupported or unreadable
    """
    source = Path(path)
    if not source.exists():
        raise PriceSourceError(f"Price file not found: {source}")

    suffix = source.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise PriceSourceError(
            f"Unsupported price file format {suffix!r} (expected one of {SUPPORTED_SUFFIXES})"
        )

    try:
        if suffix == '.csv':
            # Dates stay as text; the normalizer owns date parsing
            frame = pd.read_csv(source)
            return rows_from_frame(frame)

        with open(source, 'r', encoding='utf-8') as f:
            payload = json.load(f)
    except (OSError, ValueError, pd.errors.ParserError) as e:
        raise PriceSourceError(f"Failed to read prices from {source}: {e}") from e

    if isinstance(payload, dict) and isinstance(payload.get('data'), list):
        payload = payload['data']

    if not isinstance(payload, list):
        raise PriceSourceError(f"Expected a list of price rows in {source}")

    return payload


def rows_from_frame(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Convert a price DataFrame to raw row dictionaries.

    A date index (as yielded by most market-data libraries) is moved into
    a 'Date' column first.
    """
    if frame.empty:
        return []

    if isinstance(frame.index, pd.DatetimeIndex):
        frame = frame.rename_axis('Date').reset_index()

    return frame.to_dict('records')
