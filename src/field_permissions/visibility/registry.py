"""Session-scoped registry of declared property requirements.

During a render pass, content annotations declare that a property is
protected by one or more level names.  A later query-filtering pass of the
same render reads those declarations back.  The two passes do not share a
call stack, so the registry is keyed by an explicit session key that the
host threads through both.

Structure::

    {
        "<session key>": {
            "email":  ["internal"],
            "salary": ["internal", "sensitive"],
        },
    }

Property keys are normalized before storage and lookup; level names are
trimmed.  All operations hold one re-entrant lock, so a registry instance
can be shared by concurrent sessions.  Entries live until the host calls
:meth:`PropertyPermissionRegistry.reset` for the session.
"""
from __future__ import annotations

import logging
import threading
import uuid

from field_permissions.visibility.normalizer import normalize

logger = logging.getLogger(__name__)


def new_session_key() -> str:
    """Return a fresh opaque render-session key."""
    return uuid.uuid4().hex


class PropertyPermissionRegistry:
    """Thread-safe, session-keyed map of property -> required level names."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: dict[str, dict[str, list[str]]] = {}

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def register(self, session_key: str, property_key: str, level_name: str) -> None:
        """Record that *property_key* requires *level_name* in this session.

        Registering the same pair twice is a no-op.  Empty property or
        level names are ignored.
        """
        prop = normalize(property_key)
        level = level_name.strip()
        if not prop or not level:
            logger.debug(
                "Ignoring empty registration %r -> %r", property_key, level_name
            )
            return

        with self._lock:
            levels = self._sessions.setdefault(session_key, {}).setdefault(prop, [])
            if level not in levels:
                levels.append(level)

    def remove_level(self, session_key: str, property_key: str, level_name: str) -> None:
        """Drop one level requirement; the property disappears with its last level."""
        prop = normalize(property_key)
        with self._lock:
            entries = self._sessions.get(session_key)
            if entries is None or prop not in entries:
                return
            remaining = [lvl for lvl in entries[prop] if lvl != level_name.strip()]
            if remaining:
                entries[prop] = remaining
            else:
                del entries[prop]

    def remove_property(self, session_key: str, property_key: str) -> None:
        """Drop every requirement of *property_key* in this session."""
        with self._lock:
            entries = self._sessions.get(session_key)
            if entries is not None:
                entries.pop(normalize(property_key), None)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_levels(self, session_key: str, property_key: str) -> set[str]:
        """Return the level names declared for *property_key* (a copy)."""
        with self._lock:
            entries = self._sessions.get(session_key, {})
            return set(entries.get(normalize(property_key), ()))

    def is_protected(self, session_key: str, property_key: str) -> bool:
        """Return ``True`` if any level is declared for *property_key*."""
        with self._lock:
            entries = self._sessions.get(session_key, {})
            return bool(entries.get(normalize(property_key)))

    def protected_properties(self, session_key: str) -> list[str]:
        """Return the normalized keys of every protected property in the session."""
        with self._lock:
            return list(self._sessions.get(session_key, {}))

    def session_keys(self) -> list[str]:
        """Return the keys of sessions that currently hold declarations."""
        with self._lock:
            return list(self._sessions)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self, session_key: str) -> None:
        """Discard every declaration of one session."""
        with self._lock:
            self._sessions.pop(session_key, None)

    def reset_all(self) -> None:
        """Discard every declaration of every session (test isolation)."""
        with self._lock:
            self._sessions.clear()
