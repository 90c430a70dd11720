"""Ranked catalog of visibility levels.

Read-only view over the levels supplied by the configuration store.  Names
are looked up by their normalized form, so ``"Internal"`` and
``"internal"`` address the same level.  A missing level is reported as
``None``; callers treat that as "insufficient information".
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from field_permissions.visibility.normalizer import normalize

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from field_permissions.core.types import VisibilityLevel


class LevelCatalog:
    """Immutable set of named, ranked visibility levels.

    The catalog assumes its input was checked by
    :func:`~field_permissions.catalog.validation.validate_catalog`; it does
    not re-validate.  Instances are safe to share read-only between
    concurrent sessions.
    """

    def __init__(self, levels: Iterable[VisibilityLevel]) -> None:
        self._ordered: tuple[VisibilityLevel, ...] = tuple(
            sorted(levels, key=lambda lvl: (lvl.rank, normalize(lvl.name)))
        )
        self._by_key: dict[str, VisibilityLevel] = {
            normalize(lvl.name): lvl for lvl in self._ordered
        }

    def get_level(self, name: str) -> VisibilityLevel | None:
        """Return the level called *name*, or ``None``."""
        return self._by_key.get(normalize(name))

    def get_level_rank(self, name: str) -> int | None:
        """Return the rank of the level called *name*, or ``None``."""
        level = self.get_level(name)
        return level.rank if level is not None else None

    def has_level(self, name: str) -> bool:
        return normalize(name) in self._by_key

    def get_all_levels(self) -> list[VisibilityLevel]:
        """Return every level ordered by ascending rank."""
        return list(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self) -> Iterator[VisibilityLevel]:
        return iter(self._ordered)
