"""Field Permissions shared domain types.

Every value type shared across the engine lives here.  The public symbols
are re-exported from the top-level ``field_permissions`` package.

Key design decisions:
* Configuration records (:class:`VisibilityLevel`,
  :class:`GroupLevelAssignment`, :class:`GroupSet`) are frozen so a loaded
  snapshot cannot be mutated by a session.
* :class:`VisibilityProfile` uses ``max_level=None`` to mean "no group
  assignment was found".  This is different from an explicit
  rank 0.
* Range checks on configuration values are done by
  :mod:`field_permissions.catalog.validation` so that bad configuration
  surfaces as :class:`~field_permissions.core.errors.ConfigurationError`
  rather than a pydantic error.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

ANONYMOUS_GROUP = "*"
"""Reserved group name for the anonymous / unauthenticated population."""

PUBLIC_RANK = 0
"""Rank of unrestricted content."""


# ---------------------------------------------------------------------------
# Configuration records
# ---------------------------------------------------------------------------

class VisibilityLevel(BaseModel):
    """A named visibility level.

    Higher ``rank`` means more restrictive.  ``reference`` is an optional
    alternate identifier (for example the title of a page describing the
    level) that annotations may use instead of the name.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    id: int = Field(description="Opaque identifier assigned by the store.")
    name: str
    rank: int = Field(description="Non-negative ordering key.")
    reference: str | None = None


class GroupLevelAssignment(BaseModel):
    """Maps a group to the name of the highest level its members may view."""

    model_config = ConfigDict(strict=True, frozen=True)

    group: str
    level_name: str


class GroupSet(BaseModel):
    """A named alias expanding to concrete group names (one level deep)."""

    model_config = ConfigDict(strict=True, frozen=True)

    name: str
    members: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Derived values
# ---------------------------------------------------------------------------

class PropertyVisibilityFact(BaseModel):
    """The resolved visibility requirement of one property.

    An empty ``allowed_groups`` means "no explicit override, compare
    numeric ranks".
    """

    model_config = ConfigDict(strict=True, frozen=True)

    required_level: int = PUBLIC_RANK
    allowed_groups: frozenset[str] = frozenset()

    @property
    def is_public(self) -> bool:
        """``True`` when no rank and no allow-list is declared."""
        return self.required_level == PUBLIC_RANK and not self.allowed_groups


class VisibilityProfile(BaseModel):
    """A user's computed capability for one evaluation session."""

    model_config = ConfigDict(strict=True, frozen=True)

    max_level: int | None = Field(
        default=None,
        description="Highest rank reachable through group assignments, "
        "or None when no assignment was found.",
    )
    groups: tuple[str, ...] = Field(
        default=(),
        description="Normalized, de-duplicated group names in input order.",
    )


class UserIdentity(BaseModel):
    """The user on whose behalf a decision is made.

    ``user_id == 0`` denotes an anonymous user; ``groups`` are the effective
    groups reported by the host platform.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    user_id: int = Field(default=0, ge=0)
    name: str = ""
    groups: list[str] = Field(default_factory=list)

    @property
    def is_anonymous(self) -> bool:
        return self.user_id == 0
