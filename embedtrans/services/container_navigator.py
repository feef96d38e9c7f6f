# File: embedtrans/services/container_navigator.py
"""
Container Navigator

Reads a translations container at a given locale and implements the
locale-chain fallback algorithm. Both the in-memory translator and the
SQLite rendition of the server-side resolver functions resolve values
through this module, so they agree on every edge case.

A locale can be in one of three states inside a container:
- ABSENT: the locale key does not exist (sparse containers only, or a
  locale that is not one of the slots of a fixed container)
- EMPTY_AT_LOCALE: the key exists but holds null or an empty mapping
- FOUND: the key holds a per-field mapping
"""

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple, Optional, Sequence

from embedtrans.core.locales import normalize_key
from embedtrans.db.registry import ContainerShape

logger = logging.getLogger(__name__)

_MISSING = object()


class LookupStatus(enum.Enum):
    FOUND = "found"
    EMPTY_AT_LOCALE = "empty_at_locale"
    ABSENT = "absent"


@dataclass(frozen=True)
class LocaleLookup:
    """Outcome of reading a container at one locale."""

    status: LookupStatus
    submap: Any = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    @property
    def present(self) -> bool:
        """True when the locale key exists, whether or not it holds data."""
        return self.status is not LookupStatus.ABSENT


ABSENT = LocaleLookup(LookupStatus.ABSENT)
EMPTY_AT_LOCALE = LocaleLookup(LookupStatus.EMPTY_AT_LOCALE)


class Resolution(NamedTuple):
    """
    Result of resolving one field against a locale chain.

    Attributes:
        value: The resolved value
        locale: Locale that supplied the value, None for the implicit fallback
        fallback: True when the chain was exhausted without a match
    """

    value: Any
    locale: Optional[str]
    fallback: bool


def _read_key(value: Any, key: str) -> Any:
    """Read a key or attribute, treating str and enum keys as equal."""
    if value is None:
        return _MISSING
    if isinstance(value, Mapping):
        if key in value:
            return value[key]
        for stored_key, stored_value in value.items():
            if normalize_key(stored_key) == key:
                return stored_value
        return _MISSING
    return getattr(value, key, _MISSING)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, Mapping):
        return len(value) == 0
    return False


def lookup(
    container_value: Any,
    locale: str,
    shape: ContainerShape = ContainerShape.SPARSE,
    slots: Sequence[str] = (),
) -> LocaleLookup:
    """
    Read a translations container at a locale.

    Args:
        container_value: The container (mapping or slot object), may be None
        locale: Canonical locale string
        shape: Container layout declared at registration
        slots: Locale slots of a fixed container

    Returns:
        A LocaleLookup describing whether the locale is found, empty or absent
    """
    if shape is ContainerShape.FIXED and locale not in slots:
        return ABSENT

    submap = _read_key(container_value, locale)
    if submap is _MISSING:
        # a fixed container always carries its slots, a missing container
        # value means nothing was ever stored
        return ABSENT if shape is ContainerShape.SPARSE or container_value is None else EMPTY_AT_LOCALE
    if _is_empty(submap):
        # keep the stored value, {} and null read back differently
        return LocaleLookup(LookupStatus.EMPTY_AT_LOCALE, submap)
    return LocaleLookup(LookupStatus.FOUND, submap)


def field_lookup(submap: Any, attribute: str) -> Any:
    """
    Read one field of a per-locale submap.

    Returns:
        The stored value, or None when the field is absent or null
    """
    value = _read_key(submap, attribute)
    if value is _MISSING:
        return None
    return value


def resolve_field(
    container_value: Any,
    own_value: Any,
    attribute: str,
    chain: Sequence[str],
    default_locale: Optional[str] = None,
    shape: ContainerShape = ContainerShape.SPARSE,
    slots: Sequence[str] = (),
) -> Resolution:
    """
    Resolve a field against a locale chain, first match wins.

    The default locale short-circuits to the record's own value at its
    position in the chain. When no locale resolves, the record's own value
    is returned as the fallback of last resort.
    """
    for locale in chain:
        if default_locale is not None and locale == default_locale:
            return Resolution(own_value, locale, False)

        result = lookup(container_value, locale, shape, slots)
        if not result.found:
            continue

        value = field_lookup(result.submap, attribute)
        if value is not None:
            return Resolution(value, locale, False)

    logger.debug(f"No translation of '{attribute}' for {list(chain)}, using own value")
    return Resolution(own_value, None, True)


def resolve_submap(
    container_value: Any,
    chain: Sequence[str],
    shape: ContainerShape = ContainerShape.SPARSE,
    slots: Sequence[str] = (),
) -> LocaleLookup:
    """
    Return the first locale entry that is present in the container.

    Unlike resolve_field there is no default-locale short-circuit: the
    default locale is looked up in the container like any other locale.
    A present-but-null entry stops the walk, matching the server-side
    whole-submap resolver.
    """
    for locale in chain:
        result = lookup(container_value, locale, shape, slots)
        if result.present:
            return result
    return ABSENT
