"""Field Permissions static configuration.

Defines the pydantic model a host platform fills from its settings file.
It seeds the configuration store; a minimal (empty) configuration yields
the built-in three-level catalog, which is enough for development.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


def _default_levels() -> dict[str, int]:
    return {
        "public": 0,
        "internal": 10,
        "sensitive": 20,
    }


def _default_group_max_level() -> dict[str, str]:
    return {
        "*": "public",
        "user": "public",
        "lab_member": "internal",
        "pi": "sensitive",
    }


def _default_group_sets() -> dict[str, list[str]]:
    return {
        "all_admins": ["sysop", "pi"],
    }


class FieldPermissionsConfig(BaseModel):
    """Configuration for a Field Permissions deployment.

    The values are validated for shape by pydantic; cross references
    (assignments naming existing levels, unique level names) are checked
    by :func:`field_permissions.catalog.validation.validate_catalog` when a
    snapshot is loaded.
    """

    model_config = ConfigDict(strict=True)

    levels: dict[str, int] = Field(
        default_factory=_default_levels,
        description="Level name -> numeric rank (higher is more restrictive).",
    )
    level_references: dict[str, str] = Field(
        default_factory=dict,
        description=(
            "Optional level name -> alternate identifier, e.g. the title "
            "of the page documenting the level."
        ),
    )
    group_max_level: dict[str, str] = Field(
        default_factory=_default_group_max_level,
        description=(
            "Group name -> name of the highest level its members may view. "
            "The group '*' covers anonymous users."
        ),
    )
    group_sets: dict[str, list[str]] = Field(
        default_factory=_default_group_sets,
        description="Set name -> member group names, for allow-list checks.",
    )
