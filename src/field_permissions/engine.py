"""Field Permissions engine -- the entry point for host platforms.

The engine owns the long-lived collaborators (configuration store,
annotation source, property registry) and hands out one
:class:`VisibilitySession` per render or query request.  A session binds a
freshly loaded catalog snapshot to its own resolver and evaluator, so
their caches never outlive the request.

Usage
-----
::

    from field_permissions.core.config import FieldPermissionsConfig
    from field_permissions.core.interfaces import InMemoryAnnotationSource
    from field_permissions.core.types import UserIdentity
    from field_permissions.engine import VisibilityEngine

    annotations = InMemoryAnnotationSource()
    annotations.put_level("Email", "internal")

    engine = VisibilityEngine.from_config(FieldPermissionsConfig(), annotations)

    async with await engine.begin_session() as session:
        user = UserIdentity(user_id=7, name="Ada", groups=["lab_member"])
        session.decide(user, "Email")        # True
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from field_permissions.catalog.loader import load_snapshot
from field_permissions.core.interfaces import InMemoryConfigurationStore
from field_permissions.visibility.evaluator import PermissionEvaluator
from field_permissions.visibility.normalizer import is_valid_property_name
from field_permissions.visibility.registry import (
    PropertyPermissionRegistry,
    new_session_key,
)
from field_permissions.visibility.resolver import VisibilityResolver

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from field_permissions.catalog.loader import CatalogSnapshot
    from field_permissions.core.config import FieldPermissionsConfig
    from field_permissions.core.interfaces import (
        AnnotationSource,
        ConfigurationStore,
    )
    from field_permissions.core.types import PropertyVisibilityFact, UserIdentity

logger = logging.getLogger(__name__)

V = TypeVar("V")


class VisibilitySession:
    """One render / query pass: a snapshot plus its own resolver and evaluator.

    Parameters
    ----------
    key:
        Opaque session key used for the property registry.
    snapshot:
        The validated catalog this session decides against.
    annotations:
        Source of raw property annotations.
    registry:
        The (possibly shared) property registry.
    """

    def __init__(
        self,
        key: str,
        snapshot: CatalogSnapshot,
        annotations: AnnotationSource,
        registry: PropertyPermissionRegistry,
    ) -> None:
        self._key = key
        self._snapshot = snapshot
        self._registry = registry
        self._resolver = VisibilityResolver(snapshot.levels, annotations)
        self._evaluator = PermissionEvaluator(snapshot.levels, snapshot.groups)
        self._ended = False

    @property
    def key(self) -> str:
        """The opaque session key."""
        return self._key

    @property
    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    @property
    def resolver(self) -> VisibilityResolver:
        return self._resolver

    @property
    def evaluator(self) -> PermissionEvaluator:
        return self._evaluator

    @property
    def ended(self) -> bool:
        return self._ended

    # ------------------------------------------------------------------
    # Decision API
    # ------------------------------------------------------------------

    def fact(self, property_key: str) -> PropertyVisibilityFact:
        """Return the resolved requirement of *property_key*."""
        return self._resolver.resolve(property_key)

    def decide(self, user: UserIdentity, property_key: str) -> bool:
        """Decide whether *user* may see *property_key*.

        Raises
        ------
        field_permissions.core.errors.InvalidUserIdentity
            If *user* is not a :class:`UserIdentity`.
        """
        profile = self._evaluator.profile_for(user)
        fact = self._resolver.resolve(property_key)
        allowed = self._evaluator.may_view(
            profile, fact.required_level, fact.allowed_groups
        )
        logger.debug(
            "decide: user=%s property=%s level=%d groups=[%s] -> %s",
            user.name, property_key, fact.required_level,
            ", ".join(sorted(fact.allowed_groups)), "ALLOW" if allowed else "DENY",
        )
        return allowed

    def filter_properties(
        self, user: UserIdentity, properties: Mapping[str, V]
    ) -> dict[str, V]:
        """Return *properties* without the entries *user* may not see.

        A property is kept only if :meth:`decide` allows it and the user
        satisfies every level declared for it in this session's registry.
        """
        visible: dict[str, V] = {}
        for property_key, values in properties.items():
            if self.decide(user, property_key) and self.satisfies_declared(
                user, property_key
            ):
                visible[property_key] = values
            else:
                logger.debug(
                    "filter_properties: hid '%s' from user '%s'", property_key, user.name
                )
        return visible

    def may_view_level(self, user: UserIdentity, level_name: str) -> bool:
        """Rank-only check of *user* against a level given by name."""
        return self._evaluator.level_access(self._evaluator.profile_for(user), level_name)

    def group_access(self, user: UserIdentity, required_groups: Iterable[str]) -> bool:
        """Allow-list check of *user* with group-set expansion."""
        return self._evaluator.group_access(
            self._evaluator.profile_for(user), required_groups
        )

    # ------------------------------------------------------------------
    # Declared requirements (property registry)
    # ------------------------------------------------------------------

    def declare(self, property_key: str, level_name: str) -> None:
        """Record that *property_key* requires *level_name* in this session.

        Names that cannot be property keys (empty, or starting with ``#``)
        are ignored.
        """
        if not is_valid_property_name(property_key):
            logger.debug("declare: ignoring invalid property name %r", property_key)
            return
        self._registry.register(self._key, property_key, level_name)

    def declared_levels(self, property_key: str) -> set[str]:
        return self._registry.get_levels(self._key, property_key)

    def is_protected(self, property_key: str) -> bool:
        return self._registry.is_protected(self._key, property_key)

    def satisfies_declared(self, user: UserIdentity, property_key: str) -> bool:
        """``True`` if *user* passes every level declared for *property_key*.

        Properties without declarations pass.  An unknown declared level
        denies.
        """
        levels = self.declared_levels(property_key)
        if not levels:
            return True
        profile = self._evaluator.profile_for(user)
        return all(self._evaluator.level_access(profile, level) for level in levels)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def end(self) -> None:
        """Finish the session and discard its registry entries."""
        if self._ended:
            return
        self._registry.reset(self._key)
        self._ended = True
        logger.debug("Session %s ended", self._key)

    def __enter__(self) -> VisibilitySession:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.end()

    async def __aenter__(self) -> VisibilitySession:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.end()


class VisibilityEngine:
    """Creates visibility sessions over a configuration store.

    Parameters
    ----------
    store:
        Backend holding levels, group assignments and group sets.
    annotations:
        Source of raw property annotations.
    registry:
        Property registry shared by all sessions.  A private one is
        created when ``None``.
    """

    def __init__(
        self,
        store: ConfigurationStore,
        annotations: AnnotationSource,
        registry: PropertyPermissionRegistry | None = None,
    ) -> None:
        self._store = store
        self._annotations = annotations
        self._registry = registry if registry is not None else PropertyPermissionRegistry()

    @classmethod
    def from_config(
        cls,
        config: FieldPermissionsConfig,
        annotations: AnnotationSource,
        registry: PropertyPermissionRegistry | None = None,
    ) -> VisibilityEngine:
        """Build an engine over an in-memory store seeded from *config*."""
        return cls(InMemoryConfigurationStore.from_config(config), annotations, registry)

    @property
    def store(self) -> ConfigurationStore:
        return self._store

    @property
    def registry(self) -> PropertyPermissionRegistry:
        return self._registry

    async def begin_session(self, session_key: str | None = None) -> VisibilitySession:
        """Load a fresh snapshot and open a session on it.

        Raises
        ------
        field_permissions.core.errors.ConfigurationError
            If the stored configuration is invalid.
        """
        snapshot = await load_snapshot(self._store)
        return self.session_from_snapshot(snapshot, session_key)

    def session_from_snapshot(
        self, snapshot: CatalogSnapshot, session_key: str | None = None
    ) -> VisibilitySession:
        """Open a session on an already loaded snapshot (no I/O)."""
        key = session_key if session_key is not None else new_session_key()
        logger.debug("Session %s started", key)
        return VisibilitySession(key, snapshot, self._annotations, self._registry)
