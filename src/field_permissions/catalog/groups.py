"""Group -> maximum level assignments and named group sets."""
from __future__ import annotations

from typing import TYPE_CHECKING

from field_permissions.visibility.normalizer import normalize, normalize_all

if TYPE_CHECKING:
    from collections.abc import Iterable

    from field_permissions.core.types import GroupLevelAssignment, GroupSet


class GroupLevelMap:
    """Immutable lookup of group assignments and group-set aliases.

    Group and set names are stored normalized.  Set members are normalized
    too, so an expanded set can be intersected directly with a
    :class:`~field_permissions.core.types.VisibilityProfile` group list.

    Group sets expand exactly one level: a member that happens to name
    another set is treated as a literal group.
    """

    def __init__(
        self,
        assignments: Iterable[GroupLevelAssignment],
        group_sets: Iterable[GroupSet] = (),
    ) -> None:
        self._levels: dict[str, str] = {
            normalize(a.group): a.level_name for a in assignments
        }
        self._sets: dict[str, tuple[str, ...]] = {
            normalize(s.name): tuple(normalize_all(s.members)) for s in group_sets
        }

    def get_group_max_level_name(self, group: str) -> str | None:
        """Return the level name assigned to *group*, or ``None``."""
        return self._levels.get(normalize(group))

    def get_group_set(self, set_name: str) -> list[str] | None:
        """Return the members of the set called *set_name*, or ``None``."""
        members = self._sets.get(normalize(set_name))
        return list(members) if members is not None else None

    def all_assignments(self) -> dict[str, str]:
        """Return a copy of the normalized group -> level-name mapping."""
        return dict(self._levels)

    def all_group_sets(self) -> dict[str, list[str]]:
        """Return a copy of the normalized set-name -> members mapping."""
        return {name: list(members) for name, members in self._sets.items()}
