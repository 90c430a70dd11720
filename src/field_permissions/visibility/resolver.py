"""Resolution of the visibility requirement attached to a property.

For each property the resolver answers two questions:

* **required level** -- the rank of the level named by the property's level
  annotation.  The raw identifier (``"Visibility:PI Only"``, ``"pi_only"``,
  ``"Internal"``) is matched by normalized form against every level name,
  then every level reference; the first match wins.  No match means rank
  0: an unrecognized declaration never escalates restriction.
* **allowed groups** -- the normalized, de-duplicated groups named by the
  property's allow-list annotation.

Results are cached for the lifetime of the resolver, which is one session.

Failures of the annotation source, and values that are not a list of
strings, are logged and treated as "nothing declared" for that lookup only;
they are not cached and never propagate.  The final decision remains
fail-closed in :class:`~field_permissions.visibility.evaluator.PermissionEvaluator`.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from field_permissions.core.types import PUBLIC_RANK, PropertyVisibilityFact
from field_permissions.visibility.normalizer import (
    normalize,
    normalize_all,
    split_comma_separated,
)

if TYPE_CHECKING:
    from field_permissions.catalog.levels import LevelCatalog
    from field_permissions.core.interfaces import AnnotationSource
    from field_permissions.core.types import VisibilityLevel

logger = logging.getLogger(__name__)


def _as_identifiers(value: object) -> list[str]:
    """Return *value* as a list of raw identifiers, or raise ``TypeError``."""
    if not isinstance(value, (list, tuple)) or not all(
        isinstance(item, str) for item in value
    ):
        raise TypeError(
            f"expected a list of strings, got {type(value).__name__}: {value!r}"
        )
    return list(value)


class VisibilityResolver:
    """Resolves and caches per-property visibility requirements.

    Parameters
    ----------
    levels:
        The session's level catalog.
    annotations:
        Source of raw level / allowed-group annotations.

    Not thread-safe; create one instance per session.
    """

    def __init__(self, levels: LevelCatalog, annotations: AnnotationSource) -> None:
        self._levels = levels
        self._annotations = annotations
        self._level_cache: dict[str, int] = {}
        self._groups_cache: dict[str, frozenset[str]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_level(self, property_key: str) -> int:
        """Return the rank required to view *property_key* (0 = public)."""
        key = normalize(property_key)
        cached = self._level_cache.get(key)
        if cached is not None:
            return cached

        try:
            identifiers = _as_identifiers(self._annotations.level_identifiers(key))
        except Exception as exc:
            logger.warning(
                "Level annotation lookup failed for property '%s': %s", key, exc
            )
            return PUBLIC_RANK

        rank = PUBLIC_RANK
        for identifier in identifiers:
            level = self.match_level(identifier)
            if level is not None:
                rank = level.rank
                break
            logger.debug(
                "Unrecognized level identifier '%s' on property '%s'", identifier, key
            )

        self._level_cache[key] = rank
        return rank

    def resolve_allowed_groups(self, property_key: str) -> frozenset[str]:
        """Return the groups explicitly allowed to view *property_key*."""
        key = normalize(property_key)
        cached = self._groups_cache.get(key)
        if cached is not None:
            return cached

        try:
            identifiers = _as_identifiers(
                self._annotations.allowed_group_identifiers(key)
            )
        except Exception as exc:
            logger.warning(
                "Allowed-groups annotation lookup failed for property '%s': %s",
                key, exc,
            )
            return frozenset()

        tokens: list[str] = []
        for identifier in identifiers:
            tokens.extend(split_comma_separated(identifier))
        groups = frozenset(normalize_all(tokens))

        logger.debug(
            "Allowed groups for property '%s': %s", key, ", ".join(sorted(groups))
        )
        self._groups_cache[key] = groups
        return groups

    def resolve(self, property_key: str) -> PropertyVisibilityFact:
        """Return both requirements of *property_key* as one fact."""
        return PropertyVisibilityFact(
            required_level=self.resolve_level(property_key),
            allowed_groups=self.resolve_allowed_groups(property_key),
        )

    def match_level(self, identifier: str) -> VisibilityLevel | None:
        """Find the level named or referenced by *identifier*.

        Names are tried before references across the whole catalog, so a
        level name always wins over another level's reference.
        """
        wanted = normalize(identifier)
        if not wanted:
            return None
        levels = self._levels.get_all_levels()
        for level in levels:
            if normalize(level.name) == wanted:
                return level
        for level in levels:
            if level.reference and normalize(level.reference) == wanted:
                return level
        return None

    def clear_cache(self) -> None:
        """Forget every cached requirement."""
        self._level_cache.clear()
        self._groups_cache.clear()
