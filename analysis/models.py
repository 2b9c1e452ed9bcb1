"""
Core data model for the trailing-return engine.
Immutable records with small derived properties and dict rendering - no IO.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Any, Optional, Union

# Return fields hold either a percentage or this marker
NOT_AVAILABLE = 'N/A'

ReturnValue = Union[float, str]


@dataclass(frozen=True)
class PricePoint:
    """One dated price observation for an entity."""
    entity_key: str
    date: Optional[date]
    adjusted_close: Optional[float] = None

    @property
    def is_priced(self) -> bool:
        """True when the point can serve as a latest or anchor observation."""
        return self.date is not None and self.adjusted_close is not None


@dataclass(frozen=True)
class EntityCatalogEntry:
    """Static reference data used to decorate KPI output."""
    entity_key: str
    display_name: str
    ticker: str
    external_id: str


@dataclass(frozen=True)
class KPIRecord:
    """Trailing-return KPIs for one catalogued entity."""
    external_id: str
    display_name: str
    ticker: str
    latest_price: float
    latest_date: date
    one_year_return: ReturnValue
    three_year_return: ReturnValue
    five_year_return: ReturnValue

    def to_dict(self) -> Dict[str, Any]:
        """Render as a JSON-ready dictionary (dates as ISO strings)."""
        return {
            'external_id': self.external_id,
            'display_name': self.display_name,
            'ticker': self.ticker,
            'latest_price': self.latest_price,
            'latest_date': self.latest_date.isoformat(),
            'one_year_return': self.one_year_return,
            'three_year_return': self.three_year_return,
            'five_year_return': self.five_year_return,
        }
