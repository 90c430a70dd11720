"""Per-user visibility profiles and view decisions.

Decision order for a property (:meth:`PermissionEvaluator.may_view`):

1. **Allowed-groups override** -- if the property names allowed groups, the
   user may view it iff one of their groups is listed.  Rank is not
   consulted at all.
2. **No assignment** -- a profile without any resolvable group assignment
   (``max_level is None``) may view nothing, not even rank 0.
3. **Numeric rank** -- otherwise allow iff ``max_level >= required_rank``.

Two further checks serve content annotations that bypass property
resolution: :meth:`~PermissionEvaluator.group_access` (allow-list only,
with group-set expansion) and :meth:`~PermissionEvaluator.level_access`
(rank only, by level name).

No decision method raises for missing data; every branch ends in a
deny-biased ``bool``.  Only malformed input to profile construction raises,
as a :class:`~field_permissions.core.errors.DecisionInputError`.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from field_permissions.core.errors import InvalidGroupList, InvalidUserIdentity
from field_permissions.core.types import (
    ANONYMOUS_GROUP,
    UserIdentity,
    VisibilityProfile,
)
from field_permissions.visibility.normalizer import normalize, normalize_all

if TYPE_CHECKING:
    from field_permissions.catalog.groups import GroupLevelMap
    from field_permissions.catalog.levels import LevelCatalog

logger = logging.getLogger(__name__)

GroupSetExpander = Callable[[str], list[str] | None]
"""Returns the members of a named group set, or ``None`` for unknown names."""


def _verdict(allowed: bool) -> str:
    return "ALLOW" if allowed else "DENY"


class PermissionEvaluator:
    """Computes visibility profiles and renders view decisions.

    Parameters
    ----------
    levels:
        The session's level catalog.
    groups:
        The session's group assignments and group sets.

    Profiles are cached per user identity for the evaluator's lifetime,
    which is one session.  Not thread-safe.
    """

    def __init__(self, levels: LevelCatalog, groups: GroupLevelMap) -> None:
        self._levels = levels
        self._groups = groups
        self._profiles: dict[str, VisibilityProfile] = {}

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def get_profile(
        self,
        user_groups: list[str] | tuple[str, ...],
        is_anonymous: bool,
        *,
        identity: str | None = None,
    ) -> VisibilityProfile:
        """Compute the visibility profile for a set of group memberships.

        Parameters
        ----------
        user_groups:
            The user's effective groups, in any textual form.
        is_anonymous:
            Whether the user is unauthenticated; ``"*"`` is added to the
            groups of anonymous users.
        identity:
            Optional stable cache key.  When given, a cached profile is
            returned on later calls with the same key.

        Raises
        ------
        InvalidGroupList
            If *user_groups* is not a list or tuple of strings.
        """
        if not isinstance(user_groups, (list, tuple)) or not all(
            isinstance(group, str) for group in user_groups
        ):
            raise InvalidGroupList(
                details={"type": type(user_groups).__name__},
            )

        if identity is not None:
            cached = self._profiles.get(identity)
            if cached is not None:
                return cached

        groups = normalize_all(user_groups)
        if is_anonymous and ANONYMOUS_GROUP not in groups:
            groups.append(ANONYMOUS_GROUP)

        max_level: int | None = None
        for group in groups:
            level_name = self._groups.get_group_max_level_name(group)
            if level_name is None:
                continue
            rank = self._levels.get_level_rank(level_name)
            if rank is None:
                continue
            if max_level is None or rank > max_level:
                max_level = rank

        profile = VisibilityProfile(max_level=max_level, groups=tuple(groups))
        logger.debug(
            "Profile %s: groups=[%s] max_level=%s",
            identity or "<uncached>", ", ".join(groups), max_level,
        )
        if identity is not None:
            self._profiles[identity] = profile
        return profile

    def profile_for(self, user: UserIdentity) -> VisibilityProfile:
        """Return the (cached) profile of *user*.

        Registered users are cached by id, anonymous users by normalized
        name.

        Raises
        ------
        InvalidUserIdentity
            If *user* is not a :class:`UserIdentity`.
        """
        if not isinstance(user, UserIdentity):
            raise InvalidUserIdentity(details={"type": type(user).__name__})
        return self.get_profile(
            user.groups, user.is_anonymous, identity=self.cache_key(user)
        )

    @staticmethod
    def cache_key(user: UserIdentity) -> str:
        if user.user_id > 0:
            return f"id:{user.user_id}"
        return f"name:{normalize(user.name)}"

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def may_view(
        self,
        profile: VisibilityProfile,
        required_rank: int,
        allowed_groups: Iterable[str] = (),
    ) -> bool:
        """Decide whether *profile* may view content with these requirements."""
        allowed = set(normalize_all(list(allowed_groups)))
        if allowed:
            matched = allowed.intersection(profile.groups)
            result = bool(matched)
            logger.debug(
                "may_view: allowed groups [%s] vs user groups [%s] -> %s",
                ", ".join(sorted(allowed)), ", ".join(profile.groups), _verdict(result),
            )
            return result

        if profile.max_level is None:
            logger.debug(
                "may_view: no group assignment for [%s], required rank %d -> DENY",
                ", ".join(profile.groups), required_rank,
            )
            return False

        result = profile.max_level >= required_rank
        logger.debug(
            "may_view: max level %d vs required rank %d -> %s",
            profile.max_level, required_rank, _verdict(result),
        )
        return result

    def group_access(
        self,
        profile: VisibilityProfile,
        required_groups: Iterable[str],
        expander: GroupSetExpander | None = None,
    ) -> bool:
        """Allow-list check with group-set expansion.

        Each required token naming a known group set is replaced by the
        set's members; other tokens are literal group names.  ``"*"`` in
        the expansion admits everyone.  An empty expansion denies.
        """
        expanded = self.expand_groups(required_groups, expander)
        if not expanded:
            logger.debug("group_access: no required groups -> DENY")
            return False
        if ANONYMOUS_GROUP in expanded:
            logger.debug("group_access: required groups include '*' -> ALLOW")
            return True
        result = not expanded.isdisjoint(profile.groups)
        logger.debug(
            "group_access: required [%s] vs user [%s] -> %s",
            ", ".join(sorted(expanded)), ", ".join(profile.groups), _verdict(result),
        )
        return result

    def expand_groups(
        self,
        required_groups: Iterable[str],
        expander: GroupSetExpander | None = None,
    ) -> set[str]:
        """Expand group-set names one level deep into normalized group names."""
        expand = expander if expander is not None else self._groups.get_group_set
        expanded: set[str] = set()
        for token in required_groups:
            if not token.strip():
                continue
            members = expand(token)
            if members is not None:
                expanded.update(normalize_all(members))
                continue
            name = normalize(token)
            if name:
                expanded.add(name)
        return expanded

    def level_access(self, profile: VisibilityProfile, level_name: str) -> bool:
        """Rank-only check against a level given by name.

        Unknown level names deny, as do profiles without an assignment.
        """
        required = self._levels.get_level_rank(level_name)
        if required is None:
            logger.debug("level_access: unknown level '%s' -> DENY", level_name)
            return False
        if profile.max_level is None:
            logger.debug("level_access: no group assignment -> DENY")
            return False
        result = profile.max_level >= required
        logger.debug(
            "level_access: max level %d vs '%s' (%d) -> %s",
            profile.max_level, level_name, required, _verdict(result),
        )
        return result

    def clear_cache(self) -> None:
        """Forget every cached profile."""
        self._profiles.clear()
