"""Administrative management of visibility levels and group assignments.

Thin layer over a :class:`~field_permissions.core.interfaces.ConfigurationStore`
that refuses changes which would leave the configuration inconsistent.
Changes take effect from the next
:meth:`~field_permissions.engine.VisibilityEngine.begin_session`; sessions
already running keep their snapshot.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from field_permissions.catalog.validation import validate_group_sets, validate_levels
from field_permissions.core.errors import (
    DuplicateLevel,
    InvalidGroupDefinition,
    LevelInUse,
    LevelNotFound,
    UnknownLevelReference,
)
from field_permissions.core.types import GroupSet, VisibilityLevel
from field_permissions.visibility.normalizer import normalize

if TYPE_CHECKING:
    from field_permissions.core.interfaces import ConfigurationStore

logger = logging.getLogger(__name__)


class VisibilityAdmin:
    """Create, update and delete levels, assignments and group sets.

    Parameters
    ----------
    store:
        The configuration store to mutate.
    """

    def __init__(self, store: ConfigurationStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Levels
    # ------------------------------------------------------------------

    async def list_levels(self) -> list[VisibilityLevel]:
        """Return all levels ordered by rank."""
        return await self._store.list_levels()

    async def add_level(
        self, name: str, rank: int, reference: str | None = None
    ) -> VisibilityLevel:
        """Create a level.

        Raises
        ------
        InvalidLevelDefinition
            If the name is blank or the rank is negative.
        DuplicateLevel
            If a level with the same normalized name exists.
        """
        validate_levels([VisibilityLevel(id=0, name=name, rank=rank, reference=reference)])
        await self._ensure_name_free(name)
        level = await self._store.add_level(name.strip(), rank, reference)
        logger.info("Added visibility level: %s (%d)", level.name, level.rank)
        return level

    async def update_level(
        self,
        level_id: int,
        name: str,
        rank: int,
        reference: str | None = None,
    ) -> VisibilityLevel:
        """Replace a level's name, rank and reference.

        Renaming a level that groups are assigned to is refused, since the
        assignments refer to it by name.

        Raises
        ------
        LevelNotFound
            If *level_id* does not exist.
        DuplicateLevel
            If the new name collides with another level.
        LevelInUse
            If the level is renamed while still assigned to groups.
        """
        validate_levels([VisibilityLevel(id=level_id, name=name, rank=rank, reference=reference)])
        current = await self._get_level(level_id)
        if normalize(current.name) != normalize(name):
            await self._ensure_name_free(name)
            await self._ensure_unassigned(current)
        level = await self._store.update_level(level_id, name.strip(), rank, reference)
        logger.info(
            "Updated visibility level ID %d: %s (%d)", level_id, level.name, level.rank
        )
        return level

    async def delete_level(self, level_id: int) -> None:
        """Delete a level that no group is assigned to.

        Raises
        ------
        LevelNotFound
            If *level_id* does not exist.
        LevelInUse
            If a group assignment still names the level.
        """
        level = await self._get_level(level_id)
        await self._ensure_unassigned(level)
        await self._store.delete_level(level_id)
        logger.info("Deleted visibility level ID %d (%s)", level_id, level.name)

    # ------------------------------------------------------------------
    # Group assignments
    # ------------------------------------------------------------------

    async def set_group_level(self, group: str, level_name: str) -> None:
        """Assign *group* the maximum level *level_name*.

        Replaces any existing assignment of the group, whatever its
        spelling.

        Raises
        ------
        InvalidGroupDefinition
            If *group* is blank.
        UnknownLevelReference
            If no level called *level_name* exists.
        """
        if not normalize(group):
            raise InvalidGroupDefinition(
                "Group names in assignments must be non-empty strings"
            )
        level = await self._find_level(level_name)
        if level is None:
            raise UnknownLevelReference(
                f"Group '{group}' references unknown level '{level_name}'",
                details={"group": group, "level": level_name},
            )
        await self._drop_group_spellings(group)
        await self._store.set_group_level(group.strip(), level.name)
        logger.info("Set max level for group %s to %s", group, level.name)

    async def remove_group_level(self, group: str) -> None:
        """Remove the assignment of *group* (all spellings of it)."""
        await self._drop_group_spellings(group)
        logger.info("Removed mapping for group %s", group)

    # ------------------------------------------------------------------
    # Group sets
    # ------------------------------------------------------------------

    async def set_group_set(self, name: str, members: list[str]) -> None:
        """Create or replace a group set, whatever the spelling of its name.

        Raises
        ------
        InvalidGroupSet
            If the name or a member is blank.
        """
        validate_group_sets([GroupSet(name=name, members=list(members))])
        await self._drop_group_set_spellings(name)
        await self._store.set_group_set(name.strip(), [m.strip() for m in members])
        logger.info("Set group set %s: %s", name, ", ".join(members))

    async def remove_group_set(self, name: str) -> None:
        """Remove the group set called *name* (all spellings of it)."""
        await self._drop_group_set_spellings(name)
        logger.info("Removed group set %s", name)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _drop_group_spellings(self, group: str) -> None:
        key = normalize(group)
        for assignment in await self._store.list_group_assignments():
            if normalize(assignment.group) == key:
                await self._store.remove_group_level(assignment.group)

    async def _drop_group_set_spellings(self, name: str) -> None:
        key = normalize(name)
        for group_set in await self._store.list_group_sets():
            if normalize(group_set.name) == key:
                await self._store.remove_group_set(group_set.name)

    async def _get_level(self, level_id: int) -> VisibilityLevel:
        for level in await self._store.list_levels():
            if level.id == level_id:
                return level
        raise LevelNotFound(
            f"Visibility level not found: {level_id}", details={"level_id": level_id}
        )

    async def _find_level(self, name: str) -> VisibilityLevel | None:
        key = normalize(name)
        for level in await self._store.list_levels():
            if normalize(level.name) == key:
                return level
        return None

    async def _ensure_name_free(self, name: str) -> None:
        existing = await self._find_level(name)
        if existing is not None:
            raise DuplicateLevel(
                f"A visibility level named '{existing.name}' already exists",
                details={"name": name, "level_id": existing.id},
            )

    async def _ensure_unassigned(self, level: VisibilityLevel) -> None:
        key = normalize(level.name)
        groups = [
            a.group
            for a in await self._store.list_group_assignments()
            if normalize(a.level_name) == key
        ]
        if groups:
            raise LevelInUse(
                f"Visibility level '{level.name}' is assigned to: {', '.join(groups)}",
                details={"level": level.name, "groups": groups},
            )
