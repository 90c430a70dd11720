"""Field Permissions error-code hierarchy.

Hierarchy
---------
::

    FieldPermissionsError
    +-- ConfigurationError    (FP-E1xx)
    +-- DecisionInputError    (FP-E2xx)
    +-- AdministrationError   (FP-E3xx)

Configuration errors are raised while a catalog snapshot is loaded and are
fatal to starting a session.  Decision-input errors signal that a caller
broke the evaluator's input contract; they are never a policy outcome.
Allow/deny is always a plain ``bool`` and is never expressed as an
exception.

Usage
-----
Raise concrete subclasses directly::

    raise UnknownLevelReference("Group 'pi' references unknown level 'x'")

Catch by category::

    try:
        snapshot = await load_snapshot(store)
    except ConfigurationError:
        # handles EmptyLevelCatalog, DuplicateLevelName, ...
        ...
"""
from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class FieldPermissionsError(Exception):
    """Base exception for all Field Permissions errors.

    Attributes
    ----------
    code : str
        Error code, e.g. ``"FP-E100"``.
    message : str
        Human-readable description intended for operators.
    details : dict[str, Any]
        Machine-readable context specific to the error instance.
    resolution : str
        Suggested action for the operator or caller.
    """

    code: str = "FP-E000"
    message: str = "Unknown Field Permissions error"
    resolution: str = ""

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        resolution: str | None = None,
    ) -> None:
        self.details: dict[str, Any] = details or {}
        if message is not None:
            self.message = message
        if resolution is not None:
            self.resolution = resolution
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error for operator-facing reports."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["detail"] = self.details
        if self.resolution:
            payload["resolution"] = self.resolution
        return {"error": payload}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


# ===================================================================
# Category base classes
# ===================================================================

class ConfigurationError(FieldPermissionsError):
    """FP-E1xx -- Malformed or self-inconsistent level/group configuration."""

    code = "FP-E1XX"


class DecisionInputError(FieldPermissionsError):
    """FP-E2xx -- Invalid input passed to the permission evaluator."""

    code = "FP-E2XX"


class AdministrationError(FieldPermissionsError):
    """FP-E3xx -- Administrative mutation refused by the configuration layer."""

    code = "FP-E3XX"


# ===================================================================
# FP-E1xx  Configuration Errors
# ===================================================================

class EmptyLevelCatalog(ConfigurationError):
    """FP-E100 -- No visibility levels are defined."""

    code = "FP-E100"
    message = "At least one visibility level must be defined"
    resolution = "Define a level catalog, e.g. public=0, internal=10."


class InvalidLevelDefinition(ConfigurationError):
    """FP-E101 -- A level has an empty name or a negative/non-integer rank."""

    code = "FP-E101"
    message = "Visibility level definition is invalid"
    resolution = (
        "Every level needs a non-empty name and a non-negative integer rank."
    )


class DuplicateLevelName(ConfigurationError):
    """FP-E102 -- Two level names collide after normalization."""

    code = "FP-E102"
    message = "Visibility level names must be unique"
    resolution = (
        "Rename one of the levels; names are compared case-insensitively "
        "with spaces and underscores treated alike."
    )


class UnknownLevelReference(ConfigurationError):
    """FP-E103 -- A group assignment names a level that does not exist."""

    code = "FP-E103"
    message = "Group assignment references an unknown visibility level"
    resolution = "Create the level first or fix the assignment."


class InvalidGroupDefinition(ConfigurationError):
    """FP-E104 -- A group assignment has an empty or duplicate group name."""

    code = "FP-E104"
    message = "Group assignment definition is invalid"
    resolution = "Group names must be non-empty and assigned only once."


class InvalidGroupSet(ConfigurationError):
    """FP-E105 -- A group set has an empty name or invalid members."""

    code = "FP-E105"
    message = "Group set definition is invalid"
    resolution = (
        "Group sets need a non-empty name and a list of non-empty group names."
    )


# ===================================================================
# FP-E2xx  Decision-Input Errors
# ===================================================================

class InvalidGroupList(DecisionInputError):
    """FP-E200 -- The user group list is missing or not a list of strings."""

    code = "FP-E200"
    message = "User group list must be a list of strings"
    resolution = (
        "Pass the user's effective groups (an empty list for users "
        "without groups), never None."
    )


class InvalidUserIdentity(DecisionInputError):
    """FP-E201 -- The user identity is missing or malformed."""

    code = "FP-E201"
    message = "User identity is missing or invalid"
    resolution = "Pass a UserIdentity instance."


# ===================================================================
# FP-E3xx  Administration Errors
# ===================================================================

class LevelNotFound(AdministrationError):
    """FP-E300 -- The addressed visibility level does not exist."""

    code = "FP-E300"
    message = "Visibility level not found"
    resolution = "List the configured levels and use an existing id."


class LevelInUse(AdministrationError):
    """FP-E301 -- The level is still referenced by a group assignment."""

    code = "FP-E301"
    message = "Visibility level is still assigned to one or more groups"
    resolution = "Reassign or remove the group assignments first."


class DuplicateLevel(AdministrationError):
    """FP-E302 -- A level with the same (normalized) name already exists."""

    code = "FP-E302"
    message = "A visibility level with this name already exists"
    resolution = "Choose a different name or update the existing level."
