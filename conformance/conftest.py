"""Shared fixtures for Field Permissions conformance tests.

The fixtures reproduce the reference deployment:

* levels ``public=0``, ``internal=10``, ``sensitive=20``;
* groups ``* -> public``, ``user -> public``, ``lab_member -> internal``,
  ``pi -> sensitive``;
* property ``Email`` requires ``internal``;
* property ``Salary`` requires ``sensitive`` and is allow-listed to ``hr``.
"""
from __future__ import annotations

import pytest

from field_permissions.catalog.loader import CatalogSnapshot, snapshot_from_config
from field_permissions.core.config import FieldPermissionsConfig
from field_permissions.core.interfaces import InMemoryAnnotationSource
from field_permissions.engine import VisibilityEngine, VisibilitySession
from field_permissions.visibility.evaluator import PermissionEvaluator
from field_permissions.visibility.registry import PropertyPermissionRegistry

# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def config() -> FieldPermissionsConfig:
    return FieldPermissionsConfig()


@pytest.fixture()
def snapshot(config: FieldPermissionsConfig) -> CatalogSnapshot:
    return snapshot_from_config(config)


@pytest.fixture()
def annotations() -> InMemoryAnnotationSource:
    source = InMemoryAnnotationSource()
    source.put_level("Email", "internal")
    source.put_level("Salary", "sensitive")
    source.put_allowed_groups("Salary", "hr")
    return source


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def evaluator(snapshot: CatalogSnapshot) -> PermissionEvaluator:
    return PermissionEvaluator(snapshot.levels, snapshot.groups)


@pytest.fixture()
def registry() -> PropertyPermissionRegistry:
    return PropertyPermissionRegistry()


@pytest.fixture()
def engine(
    config: FieldPermissionsConfig,
    annotations: InMemoryAnnotationSource,
    registry: PropertyPermissionRegistry,
) -> VisibilityEngine:
    return VisibilityEngine.from_config(config, annotations, registry)


@pytest.fixture()
def session(engine: VisibilityEngine, snapshot: CatalogSnapshot) -> VisibilitySession:
    return engine.session_from_snapshot(snapshot)
