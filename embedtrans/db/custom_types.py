"""
Custom SQLAlchemy column types for embedtrans.

This module provides the column type that stores translation containers and
the bind type used to pass locale chains to the server-side resolver
functions. Both pick a native PostgreSQL type and fall back to JSON text on
other databases.
"""

import enum
import json
import logging
from collections.abc import Mapping
from typing import Any, List, Optional

from pydantic import BaseModel
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.engine import Dialect
from sqlalchemy.types import JSON, String, Text, TypeDecorator

from embedtrans.core.locales import normalize_key, normalize_locale

logger = logging.getLogger(__name__)


def _plain(value: Any) -> Any:
    """Convert a container into JSON-ready builtins with string keys."""
    if isinstance(value, BaseModel):
        return _plain(value.model_dump())
    if isinstance(value, Mapping):
        return {str(normalize_key(key)): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, enum.Enum):
        return value.value
    return value


class TranslationsType(TypeDecorator):
    """
    SQLAlchemy column type for translation containers.

    Stored as JSONB on PostgreSQL, so that ``NULLIF(container->'es', 'null')``
    compares JSON values, and as JSON text elsewhere. Locale and field keys
    given as enum members are stored by value, and pydantic models (used for
    fixed per-locale slots) are dumped to dictionaries.

    Usage:
        class Article(Base):
            translations = Column(TranslationsType, nullable=True)
    """

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB(none_as_null=True))
        return dialect.type_descriptor(JSON(none_as_null=True))

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        return _plain(value)

    @property
    def python_type(self):
        return dict


class LocaleArrayType(TypeDecorator):
    """
    Bind type for a locale chain passed to the resolver functions.

    PostgreSQL receives a ``VARCHAR[]``; other databases receive the chain as
    a JSON array string. A single locale bound at execution time becomes a
    one-element chain.
    """

    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(ARRAY(String))
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        locales = _as_chain(value)
        if dialect.name == "postgresql":
            return locales
        return json.dumps(locales)


def _as_chain(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [normalize_locale(locale) for locale in value]
    return [normalize_locale(value)]


def decode_locale_array(value: Optional[str]) -> List[str]:
    """Decode a chain bound by LocaleArrayType on a non-PostgreSQL database."""
    if value is None:
        return []
    decoded = json.loads(value)
    if isinstance(decoded, list):
        return [str(locale) for locale in decoded]
    return [str(decoded)]
