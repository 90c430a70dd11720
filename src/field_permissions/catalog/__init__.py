"""Visibility configuration catalog.

* **LevelCatalog** -- ranked, named visibility levels.
* **GroupLevelMap** -- group -> maximum level assignments and group sets.
* **CatalogSnapshot** -- the two above, validated and loaded together.
* **validate_catalog** -- load-time configuration checks.
"""
from __future__ import annotations

from field_permissions.catalog.groups import GroupLevelMap
from field_permissions.catalog.levels import LevelCatalog
from field_permissions.catalog.loader import (
    CatalogSnapshot,
    load_snapshot,
    snapshot_from_config,
)
from field_permissions.catalog.validation import validate_catalog

__all__ = [
    "LevelCatalog",
    "GroupLevelMap",
    "CatalogSnapshot",
    "load_snapshot",
    "snapshot_from_config",
    "validate_catalog",
]
