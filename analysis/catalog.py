"""
Entity catalog - static reference data that decorates KPI output.
Loaded from YAML and injected into the assembler as a plain mapping.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Iterable, Mapping, Optional, Union

from dotenv import load_dotenv

from analysis.models import EntityCatalogEntry

# Load environment variables
load_dotenv()

DEFAULT_CATALOG_PATH = './config/airlines.yml'

REQUIRED_FIELDS = ('entity_key', 'display_name', 'ticker', 'external_id')


class CatalogError(Exception):
    """Raised when the entity catalog cannot be loaded or is invalid."""
    pass


def build_catalog(entries: Iterable[EntityCatalogEntry]) -> Dict[str, EntityCatalogEntry]:
    """
    Key catalog entries by entity key.

    Args:
        entries: Catalog entries

    Returns:
        Mapping of entity key to entry

    Raises:
        CatalogError: If two entries share an entity key
    """
    catalog: Dict[str, EntityCatalogEntry] = {}
    for entry in entries:
        if entry.entity_key in catalog:
            raise CatalogError(f"Duplicate entity_key in catalog: {entry.entity_key}")
        catalog[entry.entity_key] = entry
    return catalog


def load_catalog(config_path: Optional[Union[str, Path]] = None) -> Dict[str, EntityCatalogEntry]:
    """
    Load the entity catalog from a YAML file.

    Expected shape:
        entities:
          - entity_key: Delta Air Lines Inc.
            display_name: Delta Air Lines Inc.
            ticker: DAL
            external_id: delta-airlines

    Args:
        config_path: Path to catalog file (defaults to KPI_CATALOG_PATH env
            var, then ./config/airlines.yml)

    Returns:
        Mapping of entity key to EntityCatalogEntry

    Raises:
        CatalogError: If the file is missing or malformed
    """
    if config_path is None:
        config_path = os.getenv('KPI_CATALOG_PATH', DEFAULT_CATALOG_PATH)

    config_file = Path(config_path)
    if not config_file.exists():
        raise CatalogError(f"Catalog file not found: {config_path}")

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CatalogError(f"Failed to parse catalog {config_path}: {e}") from e

    if not isinstance(config, dict) or not isinstance(config.get('entities'), list):
        raise CatalogError("Catalog missing 'entities' list")

    return build_catalog(_parse_entry(raw) for raw in config['entities'])


def find_by_external_id(
    catalog: Mapping[str, EntityCatalogEntry],
    external_id: str
) -> Optional[EntityCatalogEntry]:
    """Return the catalog entry with the given external id, if any."""
    for entry in catalog.values():
        if entry.external_id == external_id:
            return entry
    return None


def _parse_entry(raw: Any) -> EntityCatalogEntry:
    """Turn one YAML mapping into a catalog entry."""
    if not isinstance(raw, dict):
        raise CatalogError(f"Catalog entry must be a mapping, got {type(raw)}")

    missing = [field for field in REQUIRED_FIELDS if not raw.get(field)]
    if missing:
        raise CatalogError(f"Catalog entry missing fields {missing}: {raw}")

    return EntityCatalogEntry(**{field: str(raw[field]) for field in REQUIRED_FIELDS})
