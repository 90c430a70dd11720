"""Catalog snapshots.

A :class:`CatalogSnapshot` is the validated, immutable view of the
configuration that one or more sessions decide against.  It is loaded
wholesale at session start; administrative changes made afterwards only
show up in the next snapshot.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from field_permissions.catalog.groups import GroupLevelMap
from field_permissions.catalog.levels import LevelCatalog
from field_permissions.catalog.validation import validate_catalog
from field_permissions.core.types import (
    GroupLevelAssignment,
    GroupSet,
    VisibilityLevel,
)

if TYPE_CHECKING:
    from field_permissions.core.config import FieldPermissionsConfig
    from field_permissions.core.interfaces import ConfigurationStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class CatalogSnapshot:
    """Validated level catalog and group map loaded together.

    Attributes
    ----------
    levels:
        The ranked level catalog.
    groups:
        Group assignments and group sets.
    loaded_at:
        When the snapshot was built (UTC).
    """

    levels: LevelCatalog
    groups: GroupLevelMap
    loaded_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def build(
        cls,
        levels: list[VisibilityLevel],
        assignments: list[GroupLevelAssignment],
        group_sets: list[GroupSet],
    ) -> CatalogSnapshot:
        """Validate raw records and wrap them in a snapshot.

        Raises
        ------
        field_permissions.core.errors.ConfigurationError
            If the records are malformed or inconsistent.
        """
        validate_catalog(levels, assignments, group_sets)
        return cls(
            levels=LevelCatalog(levels),
            groups=GroupLevelMap(assignments, group_sets),
        )


async def load_snapshot(store: ConfigurationStore) -> CatalogSnapshot:
    """Read the full configuration from *store* and build a snapshot."""
    levels = await store.list_levels()
    assignments = await store.list_group_assignments()
    group_sets = await store.list_group_sets()
    snapshot = CatalogSnapshot.build(levels, assignments, group_sets)
    logger.info(
        "Loaded visibility catalog: %d levels, %d group assignments, %d group sets",
        len(levels), len(assignments), len(group_sets),
    )
    return snapshot


def snapshot_from_config(config: FieldPermissionsConfig) -> CatalogSnapshot:
    """Build a snapshot straight from static configuration, without a store.

    Level ids are assigned in ascending rank order starting at 1.
    """
    ordered = sorted(config.levels.items(), key=lambda item: (item[1], item[0]))
    levels = [
        VisibilityLevel(
            id=index,
            name=name,
            rank=rank,
            reference=config.level_references.get(name),
        )
        for index, (name, rank) in enumerate(ordered, start=1)
    ]
    assignments = [
        GroupLevelAssignment(group=group, level_name=level_name)
        for group, level_name in config.group_max_level.items()
    ]
    group_sets = [
        GroupSet(name=name, members=list(members))
        for name, members in config.group_sets.items()
    ]
    return CatalogSnapshot.build(levels, assignments, group_sets)
