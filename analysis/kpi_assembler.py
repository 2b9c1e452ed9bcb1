"""
KPI assembler - composes grouping, anchors and returns into KPI records.
Pure orchestration: one independent computation per entity, no IO.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Iterable, List, Mapping, Optional, Tuple

from analysis.calculations.anchors import resolve_anchor
from analysis.calculations.calendar_math import years_before
from analysis.calculations.returns import trailing_return
from analysis.calculations.series import group_by_entity, sort_series, latest_priced_point
from analysis.catalog import find_by_external_id
from analysis.models import NOT_AVAILABLE, EntityCatalogEntry, KPIRecord, PricePoint, ReturnValue

logger = logging.getLogger(__name__)

# Trailing horizons in calendar years
HORIZONS: Tuple[int, ...] = (1, 3, 5)

SORT_FIELDS = ('ticker', 'external_id', 'display_name')


class UnknownEntityError(LookupError):
    """Raised when a requested external id is not in the catalog."""
    pass


def compute_entity_kpi(
    entity_key: str,
    series: Iterable[PricePoint],
    catalog: Mapping[str, EntityCatalogEntry],
    require_full_horizon: bool = True
) -> Optional[KPIRecord]:
    """
    Compute the KPI record for one entity.

    Args:
        entity_key: Key shared by every point in the series
        series: The entity's observations (any order)
        catalog: Entity key to catalog entry mapping
        require_full_horizon: Report a horizon only when the series reaches
            back to its target date; False anchors on whatever comes first
            after the target

    Returns:
        KPIRecord, or None when the entity has no priced data or is not
        in the catalog
    """
    ordered = sort_series(series)

    latest = latest_priced_point(ordered)
    if latest is None:
        logger.info(f"Skipping {entity_key}: no priced observations")
        return None

    entry = catalog.get(entity_key)
    if entry is None:
        logger.info(f"Skipping {entity_key}: not in catalog")
        return None

    returns = {
        years: _horizon_return(ordered, latest, years, require_full_horizon)
        for years in HORIZONS
    }

    record = KPIRecord(
        external_id=entry.external_id,
        display_name=entry.display_name,
        ticker=entry.ticker,
        latest_price=latest.adjusted_close,
        latest_date=latest.date,
        one_year_return=returns[1],
        three_year_return=returns[3],
        five_year_return=returns[5],
    )
    logger.debug(f"Computed KPIs for {entity_key}: {record}")
    return record


def assemble_kpis(
    points: Iterable[PricePoint],
    catalog: Mapping[str, EntityCatalogEntry],
    workers: int = 1,
    require_full_horizon: bool = True
) -> List[KPIRecord]:
    """
    Compute KPI records for every entity in a flat set of observations.

    Entities are independent, so with workers > 1 they are fanned out to a
    thread pool and gathered. Output follows the first-seen order of entity
    keys either way; entities without priced data or without a catalog
    entry are dropped.

    Args:
        points: Observations for any number of entities, any order
        catalog: Entity key to catalog entry mapping
        workers: Thread pool size (1 runs inline)
        require_full_horizon: See compute_entity_kpi

    Returns:
        List of KPIRecord (possibly empty)
    """
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")

    groups = group_by_entity(points)

    def process(item: Tuple[str, List[PricePoint]]) -> Optional[KPIRecord]:
        entity_key, series = item
        return compute_entity_kpi(entity_key, series, catalog, require_full_horizon)

    if workers == 1 or len(groups) <= 1:
        results = [process(item) for item in groups.items()]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(process, groups.items()))

    return [record for record in results if record is not None]


def sort_records(records: Iterable[KPIRecord], by: str = 'ticker') -> List[KPIRecord]:
    """Order KPI records by ticker, external_id or display_name."""
    if by not in SORT_FIELDS:
        raise ValueError(f"Cannot sort by {by!r}; choose from {SORT_FIELDS}")
    return sorted(records, key=lambda r: getattr(r, by))


def price_history(
    points: Iterable[PricePoint],
    catalog: Mapping[str, EntityCatalogEntry],
    external_id: str
) -> List[PricePoint]:
    """
    Return the date-sorted price series of one catalogued entity.

    Args:
        points: Observations for any number of entities
        catalog: Entity key to catalog entry mapping
        external_id: Public id of the entity (e.g. 'delta-airlines')

    Returns:
        The entity's observations sorted by date (empty if it has none)

    Raises:
        UnknownEntityError: If no catalog entry has this external id
    """
    entry = find_by_external_id(catalog, external_id)
    if entry is None:
        raise UnknownEntityError(f"Unknown entity: {external_id}")

    return sort_series(p for p in points if p.entity_key == entry.entity_key)


def _horizon_return(
    ordered: List[PricePoint],
    latest: PricePoint,
    years: int,
    require_full_horizon: bool
) -> ReturnValue:
    """Trailing return over one horizon for a sorted series."""
    target = years_before(latest.date, years)

    if require_full_horizon and not _covers(ordered, target):
        return NOT_AVAILABLE

    anchor = resolve_anchor(ordered, target)
    return trailing_return(anchor, latest.adjusted_close)


def _covers(ordered: List[PricePoint], target: date) -> bool:
    """True when some priced point is dated on or before the target."""
    return any(p.is_priced and p.date <= target for p in ordered)
