"""Field Permissions -- visibility decision engine.

Decides, for one user and one protected property, whether the user may see
it.  Two independent authorities are combined with a fixed precedence:

1. an explicit allowed-groups list on the property, when present, decides
   alone;
2. otherwise the user's highest assigned level rank is compared with the
   property's required rank.

Every missing or ambiguous input resolves to *deny*.

Layout
------
* Configuration catalog (:mod:`field_permissions.catalog`)
* Visibility decisions (:mod:`field_permissions.visibility`)
* Sessions and the decision API (:mod:`field_permissions.engine`)
* Administrative changes (:mod:`field_permissions.admin`)
"""
from __future__ import annotations

__version__ = "1.0.0a1"

from field_permissions.admin import VisibilityAdmin
from field_permissions.catalog import (
    CatalogSnapshot,
    GroupLevelMap,
    LevelCatalog,
    load_snapshot,
    snapshot_from_config,
    validate_catalog,
)
from field_permissions.core.config import FieldPermissionsConfig
from field_permissions.core.errors import (
    AdministrationError,
    ConfigurationError,
    DecisionInputError,
    FieldPermissionsError,
)
from field_permissions.core.interfaces import (
    AnnotationSource,
    ConfigurationStore,
    InMemoryAnnotationSource,
    InMemoryConfigurationStore,
)
from field_permissions.core.types import (
    ANONYMOUS_GROUP,
    PUBLIC_RANK,
    GroupLevelAssignment,
    GroupSet,
    PropertyVisibilityFact,
    UserIdentity,
    VisibilityLevel,
    VisibilityProfile,
)
from field_permissions.engine import VisibilityEngine, VisibilitySession
from field_permissions.visibility import (
    PermissionEvaluator,
    PropertyPermissionRegistry,
    VisibilityResolver,
    new_session_key,
    normalize,
    split_comma_separated,
)

__all__ = [
    # Meta
    "__version__",
    # Core types
    "ANONYMOUS_GROUP",
    "PUBLIC_RANK",
    "VisibilityLevel",
    "GroupLevelAssignment",
    "GroupSet",
    "PropertyVisibilityFact",
    "VisibilityProfile",
    "UserIdentity",
    # Config
    "FieldPermissionsConfig",
    # Error hierarchy
    "FieldPermissionsError",
    "ConfigurationError",
    "DecisionInputError",
    "AdministrationError",
    # Interfaces
    "ConfigurationStore",
    "AnnotationSource",
    "InMemoryConfigurationStore",
    "InMemoryAnnotationSource",
    # Catalog
    "LevelCatalog",
    "GroupLevelMap",
    "CatalogSnapshot",
    "load_snapshot",
    "snapshot_from_config",
    "validate_catalog",
    # Visibility
    "normalize",
    "split_comma_separated",
    "VisibilityResolver",
    "PermissionEvaluator",
    "PropertyPermissionRegistry",
    "new_session_key",
    # Engine
    "VisibilityEngine",
    "VisibilitySession",
    # Admin
    "VisibilityAdmin",
]
