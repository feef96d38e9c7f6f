# File: embedtrans/core/locales.py
"""
Locale normalization helpers.

Locales are opaque identifiers. They may be given as plain strings or as
enum members (for example a ``class Locale(str, Enum)``) and are compared
by their canonical string form.
"""

import enum
from typing import Any, List, Optional

from embedtrans.core.exceptions import InvalidLocaleException, MissingLocaleException


def normalize_locale(locale: Any) -> str:
    """Return the canonical string form of a single locale."""
    if isinstance(locale, enum.Enum):
        return str(locale.value)
    if isinstance(locale, str):
        return locale
    raise InvalidLocaleException(locale)


def normalize_optional_locale(locale: Any) -> Optional[str]:
    if locale is None:
        return None
    return normalize_locale(locale)


def normalize_chain(locale_or_chain: Any, operation: str = "translate") -> List[str]:
    """
    Turn a locale or an ordered collection of locales into a chain.

    A single locale becomes a one-element chain. An empty collection is a
    valid chain that always falls through to the record's own values.

    Raises:
        MissingLocaleException: If no locale was given at all
        InvalidLocaleException: If an element is not a locale
    """
    if locale_or_chain is None:
        raise MissingLocaleException(operation)
    if isinstance(locale_or_chain, (list, tuple)):
        return [normalize_locale(locale) for locale in locale_or_chain]
    return [normalize_locale(locale_or_chain)]


def normalize_key(key: Any) -> Any:
    """Map enum keys to their string value, leave anything else untouched."""
    if isinstance(key, enum.Enum):
        return str(key.value)
    return key
