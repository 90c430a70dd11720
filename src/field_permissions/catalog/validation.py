"""Load-time validation of visibility configuration.

Runs once per snapshot, before any decision is made.  A failure here is a
configuration error reported to the operator; it is never turned into an
allow or deny.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from field_permissions.core.errors import (
    DuplicateLevelName,
    EmptyLevelCatalog,
    InvalidGroupDefinition,
    InvalidGroupSet,
    InvalidLevelDefinition,
    UnknownLevelReference,
)
from field_permissions.visibility.normalizer import normalize

if TYPE_CHECKING:
    from collections.abc import Sequence

    from field_permissions.core.types import (
        GroupLevelAssignment,
        GroupSet,
        VisibilityLevel,
    )

logger = logging.getLogger(__name__)


def _is_rank(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_levels(levels: Sequence[VisibilityLevel]) -> None:
    """Check that levels exist, are well formed and have unique names.

    Raises
    ------
    EmptyLevelCatalog
        If *levels* is empty.
    InvalidLevelDefinition
        If a name is blank or a rank is not a non-negative integer.
    DuplicateLevelName
        If two names normalize to the same key.
    """
    if not levels:
        raise EmptyLevelCatalog()

    seen: dict[str, str] = {}
    for level in levels:
        if not level.name.strip():
            raise InvalidLevelDefinition(
                "Level name must be a non-empty string",
                details={"level_id": level.id},
            )
        if not _is_rank(level.rank):
            raise InvalidLevelDefinition(
                f"Level '{level.name}' must map to a non-negative integer",
                details={"level": level.name, "rank": level.rank},
            )
        key = normalize(level.name)
        if key in seen:
            raise DuplicateLevelName(
                f"Levels '{seen[key]}' and '{level.name}' share the key '{key}'",
                details={"key": key, "names": [seen[key], level.name]},
            )
        seen[key] = level.name


def validate_assignments(
    assignments: Sequence[GroupLevelAssignment],
    levels: Sequence[VisibilityLevel],
) -> None:
    """Check every group assignment names an existing level exactly once.

    Raises
    ------
    InvalidGroupDefinition
        If a group name is blank or assigned twice.
    UnknownLevelReference
        If an assignment names a level that is not defined.
    """
    level_keys = {normalize(level.name) for level in levels}
    seen: set[str] = set()
    for assignment in assignments:
        group = normalize(assignment.group)
        if not group:
            raise InvalidGroupDefinition(
                "Group names in assignments must be non-empty strings"
            )
        if group in seen:
            raise InvalidGroupDefinition(
                f"Group '{assignment.group}' is assigned more than once",
                details={"group": group},
            )
        seen.add(group)
        if normalize(assignment.level_name) not in level_keys:
            raise UnknownLevelReference(
                f"Group '{assignment.group}' references unknown level "
                f"'{assignment.level_name}'",
                details={"group": assignment.group, "level": assignment.level_name},
            )


def validate_group_sets(group_sets: Sequence[GroupSet]) -> None:
    """Check set names are unique non-empty strings and members are non-empty.

    Raises
    ------
    InvalidGroupSet
        On a blank or repeated set name, or a blank member.
    """
    seen: set[str] = set()
    for group_set in group_sets:
        if not group_set.name.strip():
            raise InvalidGroupSet("Group set names must be non-empty strings")
        key = normalize(group_set.name)
        if key in seen:
            raise InvalidGroupSet(
                f"Group set '{group_set.name}' is defined more than once",
                details={"set": key},
            )
        seen.add(key)
        for member in group_set.members:
            if not member.strip():
                raise InvalidGroupSet(
                    f"Group set '{group_set.name}' contains an invalid group name",
                    details={"set": group_set.name},
                )


def validate_catalog(
    levels: Sequence[VisibilityLevel],
    assignments: Sequence[GroupLevelAssignment],
    group_sets: Sequence[GroupSet],
) -> None:
    """Validate a complete configuration; raise on the first problem found."""
    logger.debug(
        "Validating catalog: %d levels, %d assignments, %d group sets",
        len(levels), len(assignments), len(group_sets),
    )
    validate_levels(levels)
    validate_assignments(assignments, levels)
    validate_group_sets(group_sets)
