"""Canonical keys for level, group and property identifiers.

Identifiers reach the engine in inconsistent forms: ``"Group:PI"``,
``"Lab Member"``, ``"lab_member"``, ``"Visibility:PI Only"``.  Two
identifiers name the same entity iff their normalized forms are equal.

Rules, applied in order:

1. trim surrounding whitespace;
2. the anonymous sentinel ``"*"`` is returned unchanged;
3. keep only the text after the last ``:`` (drops a namespace prefix) and
   trim it again;
4. replace spaces with underscores;
5. lowercase.

:func:`normalize` is total and idempotent.
"""
from __future__ import annotations

from field_permissions.core.types import ANONYMOUS_GROUP

NAMESPACE_SEPARATOR = ":"


def normalize(raw: str) -> str:
    """Return the canonical comparison key for *raw*.

    Examples
    --------
    >>> normalize("Group:PI")
    'pi'
    >>> normalize("  Research Team ")
    'research_team'
    >>> normalize("*")
    '*'
    """
    value = raw.strip()
    if value == ANONYMOUS_GROUP:
        return value
    if NAMESPACE_SEPARATOR in value:
        value = value.rsplit(NAMESPACE_SEPARATOR, 1)[1].strip()
    return value.replace(" ", "_").lower()


def normalize_all(raw_values: list[str] | tuple[str, ...]) -> list[str]:
    """Normalize and de-duplicate, keeping first-seen order and dropping empties."""
    seen: dict[str, None] = {}
    for raw in raw_values:
        key = normalize(raw)
        if key:
            seen.setdefault(key, None)
    return list(seen)


def split_comma_separated(text: str, *, dedupe: bool = True) -> list[str]:
    """Split a comma-separated list into trimmed, non-empty entries.

    Internal whitespace is preserved::

        >>> split_comma_separated(" admin , staff , , editors ")
        ['admin', 'staff', 'editors']
        >>> split_comma_separated("New York,Los Angeles")
        ['New York', 'Los Angeles']
    """
    parts = [part.strip() for part in text.split(",")]
    parts = [part for part in parts if part]
    if not dedupe:
        return parts
    return list(dict.fromkeys(parts))


def is_valid_property_name(name: str) -> bool:
    """Return ``True`` if *name* can be used as a property key.

    Property labels are permissive; only empty names and names starting
    with ``#`` (reserved for parser functions) are rejected.
    """
    name = name.strip()
    return bool(name) and not name.startswith("#")
