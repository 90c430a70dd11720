"""Visibility decisions.

* **normalize** -- canonical keys for group, level and property names.
* **VisibilityResolver** -- required level and allowed groups per property.
* **PermissionEvaluator** -- user profiles and allow/deny decisions.
* **PropertyPermissionRegistry** -- session-scoped declared requirements.
"""
from __future__ import annotations

from field_permissions.visibility.evaluator import PermissionEvaluator
from field_permissions.visibility.normalizer import (
    is_valid_property_name,
    normalize,
    split_comma_separated,
)
from field_permissions.visibility.registry import (
    PropertyPermissionRegistry,
    new_session_key,
)
from field_permissions.visibility.resolver import VisibilityResolver

__all__ = [
    "normalize",
    "split_comma_separated",
    "is_valid_property_name",
    "VisibilityResolver",
    "PermissionEvaluator",
    "PropertyPermissionRegistry",
    "new_session_key",
]
