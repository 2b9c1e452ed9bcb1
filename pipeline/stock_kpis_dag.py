"""
Stock KPIs DAG - orchestrates the trailing-return pipeline.
Composes: Source → Normalize → Assemble → Write.
"""

import json
import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

from dotenv import load_dotenv

from analysis.catalog import load_catalog, DEFAULT_CATALOG_PATH
from analysis.kpi_assembler import assemble_kpis, price_history, sort_records
from analysis.models import KPIRecord, PricePoint
from ingestion.providers.file_adapter import read_price_rows
from ingestion.transforms.normalizers import normalize_price_rows

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_PATH = './data/processed/kpis/stock_kpis.json'


class PipelineError(Exception):
    """Raised when pipeline configuration is invalid."""
    pass


@dataclass
class StockKPIConfig:
    """Configuration for the stock KPIs pipeline."""
    prices_path: Union[str, Path]
    catalog_path: Optional[Union[str, Path]] = None
    output_path: Optional[Union[str, Path]] = None
    workers: int = 1
    require_full_horizon: bool = True
    sort_by: Optional[str] = None

    def __post_init__(self):
        """Validate and set defaults."""
        if not self.prices_path:
            raise PipelineError("prices_path must be set")
        self.prices_path = Path(self.prices_path)

        if self.catalog_path is None:
            self.catalog_path = DEFAULT_CATALOG_PATH
        self.catalog_path = Path(self.catalog_path)

        if self.output_path is None:
            self.output_path = DEFAULT_OUTPUT_PATH
        self.output_path = Path(self.output_path)

        if isinstance(self.workers, bool) or not isinstance(self.workers, int):
            raise PipelineError(f"workers must be an integer, got {type(self.workers)}")

        if self.workers < 1:
            raise PipelineError(f"workers must be >= 1, got {self.workers}")

    @classmethod
    def from_env(cls, **overrides: Any) -> 'StockKPIConfig':
        """
        Build a config from environment variables (and a .env file).

        Variables: KPI_PRICES_PATH, KPI_CATALOG_PATH, KPI_OUTPUT_PATH,
        KPI_WORKERS. Overrides that are not None win over the environment.
        """
        load_dotenv()

        workers_raw = os.getenv('KPI_WORKERS', '1')
        try:
            workers = int(workers_raw)
        except ValueError as e:
            raise PipelineError(f"KPI_WORKERS must be an integer, got {workers_raw!r}") from e

        values: Dict[str, Any] = {
            'prices_path': os.getenv('KPI_PRICES_PATH'),
            'catalog_path': os.getenv('KPI_CATALOG_PATH', DEFAULT_CATALOG_PATH),
            'output_path': os.getenv('KPI_OUTPUT_PATH', DEFAULT_OUTPUT_PATH),
            'workers': workers,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def run_stock_kpis(config: StockKPIConfig) -> Dict[str, Any]:
    """
    Run the complete stock KPIs pipeline.

    Pipeline stages:
    1. Load the entity catalog
    2. Read raw price rows
    3. Normalize rows (malformed rows dropped and counted)
    4. Assemble KPI records
    5. Write records and diagnostics to JSON

    Args:
        config: Pipeline configuration

    Returns:
        Dictionary with run results and diagnostics
    """
    start_time = time.monotonic()
    logger.info(f"Running stock KPIs for {config.prices_path}")

    result: Dict[str, Any] = {
        'status': 'running',
        'prices_path': str(config.prices_path),
        'output_path': None,
        'rows_in': 0,
        'rows_dropped': 0,
        'entities_seen': 0,
        'records_out': 0,
        'entities_skipped': 0,
        'records': [],
        'error_message': None
    }

    try:
        # Stage 1: Catalog
        catalog = load_catalog(config.catalog_path)

        # Stage 2-3: Source and normalize
        normalized = normalize_price_rows(read_price_rows(config.prices_path))
        result['rows_in'] = normalized.rows_in
        result['rows_dropped'] = normalized.rows_dropped

        # Stage 4: Assemble
        records = assemble_kpis(
            normalized.points,
            catalog,
            workers=config.workers,
            require_full_horizon=config.require_full_horizon
        )
        if config.sort_by:
            records = sort_records(records, by=config.sort_by)

        entities_seen = len({p.entity_key for p in normalized.points})
        result['entities_seen'] = entities_seen
        result['records_out'] = len(records)
        result['entities_skipped'] = entities_seen - len(records)
        result['records'] = [record.to_dict() for record in records]

        # Stage 5: Write
        write_kpi_output(records, config.output_path, diagnostics=_diagnostics(result))
        result['output_path'] = str(config.output_path)

        result['status'] = 'completed'
        logger.info(
            f"Stock KPIs completed: {len(records)} records, "
            f"{result['rows_dropped']} rows dropped"
        )

    except Exception as e:
        # Pipeline failed - record failure
        result['status'] = 'failed'
        result['error_message'] = str(e)
        logger.error(f"Stock KPIs failed: {e}")

    result['duration_seconds'] = time.monotonic() - start_time
    return result


def load_entity_history(config: StockKPIConfig, external_id: str) -> List[PricePoint]:
    """
    Load one catalogued entity's sorted price series.

    Args:
        config: Pipeline configuration (prices and catalog paths)
        external_id: Public id of the entity

    Returns:
        Date-sorted PricePoints for the entity

    Raises:
        UnknownEntityError: If the external id is not in the catalog
        CatalogError, PriceSourceError: If inputs cannot be read
    """
    catalog = load_catalog(config.catalog_path)
    normalized = normalize_price_rows(read_price_rows(config.prices_path))
    return price_history(normalized.points, catalog, external_id)


def write_kpi_output(
    records: List[KPIRecord],
    output_path: Path,
    diagnostics: Optional[Dict[str, Any]] = None
) -> None:
    """Write KPI records as JSON, creating parent directories."""
    payload = {
        'generated_at': datetime.now().isoformat(),
        'records': [record.to_dict() for record in records],
        'diagnostics': diagnostics or {},
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        json.dump(payload, f, indent=2, default=str, allow_nan=False)


def _diagnostics(result: Dict[str, Any]) -> Dict[str, int]:
    """Counts reported alongside the records."""
    keys = ('rows_in', 'rows_dropped', 'entities_seen', 'records_out', 'entities_skipped')
    return {key: result[key] for key in keys}
