"""Field Permissions abstract interfaces and in-memory implementations.

This module defines the *structural* interfaces (``typing.Protocol``) for
the two external collaborators of the engine:

* :class:`ConfigurationStore` -- levels, group assignments and group sets,
  read wholesale at session start and mutated by the administrative API.
* :class:`AnnotationSource` -- the raw visibility annotations attached to a
  property.  It is called synchronously from the decision path, so
  implementations must be fast or pre-fetched.

Every Protocol class is decorated with ``@runtime_checkable`` so that
``isinstance`` checks work at run-time in addition to static analysis.

In-memory implementations are **not** thread-safe.  Production deployments
MUST substitute persistent, concurrency-safe backends.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from field_permissions.core.errors import LevelNotFound
from field_permissions.core.types import (
    GroupLevelAssignment,
    GroupSet,
    VisibilityLevel,
)
from field_permissions.visibility.normalizer import normalize

if TYPE_CHECKING:
    from field_permissions.core.config import FieldPermissionsConfig

# ===================================================================
# Protocol (interface) definitions
# ===================================================================

@runtime_checkable
class ConfigurationStore(Protocol):
    """Backend for visibility configuration.

    Readers receive records exactly as stored; validation happens when a
    catalog snapshot is built from them.
    """

    async def list_levels(self) -> list[VisibilityLevel]:
        """Return all levels ordered by ascending rank."""
        ...

    async def list_group_assignments(self) -> list[GroupLevelAssignment]:
        """Return every group -> level-name assignment."""
        ...

    async def list_group_sets(self) -> list[GroupSet]:
        """Return every named group set."""
        ...

    async def add_level(
        self, name: str, rank: int, reference: str | None = None
    ) -> VisibilityLevel:
        """Persist a new level and return it with its assigned id."""
        ...

    async def update_level(
        self,
        level_id: int,
        name: str,
        rank: int,
        reference: str | None = None,
    ) -> VisibilityLevel:
        """Replace the level identified by *level_id*.

        Raises :class:`LevelNotFound` if no such level exists.
        """
        ...

    async def delete_level(self, level_id: int) -> None:
        """Delete a level.  Raises :class:`LevelNotFound` if absent."""
        ...

    async def set_group_level(self, group: str, level_name: str) -> None:
        """Create or replace the assignment for *group*."""
        ...

    async def remove_group_level(self, group: str) -> None:
        """Remove the assignment for *group* (no-op when absent)."""
        ...

    async def set_group_set(self, name: str, members: list[str]) -> None:
        """Create or replace a group set."""
        ...

    async def remove_group_set(self, name: str) -> None:
        """Remove a group set (no-op when absent)."""
        ...


@runtime_checkable
class AnnotationSource(Protocol):
    """Raw visibility annotations attached to properties.

    Both methods receive the canonical property key and return free-form
    strings, e.g. ``"Visibility:PI Only"`` or ``"internal"``.  An empty
    list means nothing is declared.
    """

    def level_identifiers(self, property_key: str) -> list[str]:
        """Return the raw level identifiers declared for the property."""
        ...

    def allowed_group_identifiers(self, property_key: str) -> list[str]:
        """Return the raw allowed-group identifiers declared for the property."""
        ...


# ===================================================================
# In-memory implementations (testing / development)
# ===================================================================

class InMemoryConfigurationStore:
    """In-memory configuration store for testing and development."""

    def __init__(self) -> None:
        self._levels: dict[int, VisibilityLevel] = {}
        self._next_id = 1
        self._assignments: dict[str, str] = {}  # group -> level name
        self._group_sets: dict[str, list[str]] = {}

    @classmethod
    def from_config(cls, config: FieldPermissionsConfig) -> InMemoryConfigurationStore:
        """Build a store seeded from a :class:`FieldPermissionsConfig`."""
        store = cls()
        for name, rank in sorted(config.levels.items(), key=lambda item: (item[1], item[0])):
            store._insert_level(name, rank, config.level_references.get(name))
        store._assignments = dict(config.group_max_level)
        store._group_sets = {
            name: list(members) for name, members in config.group_sets.items()
        }
        return store

    def _insert_level(
        self, name: str, rank: int, reference: str | None
    ) -> VisibilityLevel:
        level = VisibilityLevel(
            id=self._next_id, name=name, rank=rank, reference=reference
        )
        self._levels[level.id] = level
        self._next_id += 1
        return level

    def _get_existing(self, level_id: int) -> VisibilityLevel:
        level = self._levels.get(level_id)
        if level is None:
            raise LevelNotFound(
                f"Visibility level not found: {level_id}",
                details={"level_id": level_id},
            )
        return level

    # -- Protocol implementation ---------------------------------------

    async def list_levels(self) -> list[VisibilityLevel]:
        """Return all levels ordered by ascending rank."""
        return sorted(self._levels.values(), key=lambda lvl: (lvl.rank, lvl.id))

    async def list_group_assignments(self) -> list[GroupLevelAssignment]:
        """Return every assignment in insertion order."""
        return [
            GroupLevelAssignment(group=group, level_name=level_name)
            for group, level_name in self._assignments.items()
        ]

    async def list_group_sets(self) -> list[GroupSet]:
        """Return every group set in insertion order."""
        return [
            GroupSet(name=name, members=list(members))
            for name, members in self._group_sets.items()
        ]

    async def add_level(
        self, name: str, rank: int, reference: str | None = None
    ) -> VisibilityLevel:
        """Persist a new level."""
        return self._insert_level(name, rank, reference)

    async def update_level(
        self,
        level_id: int,
        name: str,
        rank: int,
        reference: str | None = None,
    ) -> VisibilityLevel:
        """Replace an existing level, keeping its id."""
        self._get_existing(level_id)
        level = VisibilityLevel(id=level_id, name=name, rank=rank, reference=reference)
        self._levels[level_id] = level
        return level

    async def delete_level(self, level_id: int) -> None:
        """Delete an existing level."""
        self._get_existing(level_id)
        del self._levels[level_id]

    async def set_group_level(self, group: str, level_name: str) -> None:
        """Create or replace a group assignment."""
        self._assignments[group] = level_name

    async def remove_group_level(self, group: str) -> None:
        """Remove a group assignment."""
        self._assignments.pop(group, None)

    async def set_group_set(self, name: str, members: list[str]) -> None:
        """Create or replace a group set."""
        self._group_sets[name] = list(members)

    async def remove_group_set(self, name: str) -> None:
        """Remove a group set."""
        self._group_sets.pop(name, None)


class InMemoryAnnotationSource:
    """In-memory annotation source for testing and development.

    Property keys are normalized on write and read, so ``"Has Email"`` and
    ``"has_email"`` address the same annotations.
    """

    def __init__(self) -> None:
        self._levels: dict[str, list[str]] = {}
        self._allowed_groups: dict[str, list[str]] = {}

    # -- mutation helpers (not part of the Protocol) --------------------

    def put_level(self, property_key: str, *identifiers: str) -> None:
        """Declare raw level identifiers for a property (test helper)."""
        self._levels.setdefault(normalize(property_key), []).extend(identifiers)

    def put_allowed_groups(self, property_key: str, *identifiers: str) -> None:
        """Declare raw allowed-group identifiers for a property (test helper)."""
        self._allowed_groups.setdefault(normalize(property_key), []).extend(identifiers)

    def remove(self, property_key: str) -> None:
        """Drop every annotation for a property (test helper)."""
        key = normalize(property_key)
        self._levels.pop(key, None)
        self._allowed_groups.pop(key, None)

    # -- Protocol implementation ---------------------------------------

    def level_identifiers(self, property_key: str) -> list[str]:
        """Return the raw level identifiers for the property."""
        return list(self._levels.get(normalize(property_key), []))

    def allowed_group_identifiers(self, property_key: str) -> list[str]:
        """Return the raw allowed-group identifiers for the property."""
        return list(self._allowed_groups.get(normalize(property_key), []))
