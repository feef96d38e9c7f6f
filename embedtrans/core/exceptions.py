# File: embedtrans/core/exceptions.py

from typing import Dict, Any, List, Optional, Sequence
from datetime import datetime


class EmbedTransException(Exception):
    """Base exception for all embedtrans errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize an embedtrans exception.

        Args:
            message: Human-readable error message
            code: Optional machine-processable error code
            details: Additional error details
        """
        self.message = message
        self.code = code or "GENERIC_ERROR"
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for API responses.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "timestamp": datetime.now().isoformat(),
        }


def _type_name(model: Any) -> str:
    if not isinstance(model, type):
        model = type(model)
    return model.__name__


def _format_locales(locales: Sequence[str]) -> str:
    if len(locales) == 1:
        return locales[0]
    return ", ".join(locales)


# Metadata exceptions
class MetadataException(EmbedTransException):
    """Base exception for translation metadata errors."""

    CODE_PREFIX = "METADATA_"


class NotRegisteredException(MetadataException):
    """Raised when a type was never bound to translation metadata."""

    def __init__(self, model: Any):
        super().__init__(
            f"'{_type_name(model)}' has no translation metadata, decorate it with @translates",
            f"{self.CODE_PREFIX}001",
            {"model": _type_name(model)},
        )


class TranslationRegistrationException(MetadataException):
    """Raised when a @translates declaration does not match the type."""

    def __init__(self, model: Any, message: str, fields: Optional[List[str]] = None):
        super().__init__(
            message,
            f"{self.CODE_PREFIX}002",
            {"model": _type_name(model), "fields": fields or []},
        )


# Translation exceptions
class TranslationException(EmbedTransException):
    """Base exception for translation lookup errors."""

    CODE_PREFIX = "TRANSLATION_"


class NotTranslatableException(TranslationException):
    """Raised when the requested attribute is not declared as translatable."""

    def __init__(self, model: Any, field: str):
        super().__init__(
            f"'{_type_name(model)}' must declare '{field}' as translatable",
            f"{self.CODE_PREFIX}001",
            {"model": _type_name(model), "field": field},
        )


class NoTranslationException(TranslationException):
    """Raised by strict lookups when no locale in the chain resolves."""

    def __init__(self, field: str, locales: Sequence[str]):
        super().__init__(
            f"translation doesn't exist for field '{field}' in language '{_format_locales(locales)}'",
            f"{self.CODE_PREFIX}002",
            {"field": field, "locales": list(locales)},
        )


# Locale exceptions
class LocaleException(EmbedTransException):
    """Base exception for locale argument errors."""

    CODE_PREFIX = "LOCALE_"


class MissingLocaleException(LocaleException):
    """Raised when a locale-requiring call receives no locale at all."""

    def __init__(self, operation: str):
        super().__init__(
            f"{operation} requires a locale or a list of locales",
            f"{self.CODE_PREFIX}001",
            {"operation": operation},
        )


class InvalidLocaleException(LocaleException):
    """Raised when a locale is neither a string nor an enum member."""

    def __init__(self, locale: Any):
        super().__init__(
            f"Invalid locale {locale!r}: expected a string or an enum member",
            f"{self.CODE_PREFIX}002",
            {"locale": repr(locale)},
        )


# Query construction exceptions
class QueryBuildException(EmbedTransException):
    """Base exception for errors raised while building query expressions."""

    CODE_PREFIX = "QUERY_"


class UntranslatableAttributeException(QueryBuildException):
    """Raised while building a query on an attribute that is not translatable."""

    def __init__(self, model: Any, field: str):
        super().__init__(
            f"'{_type_name(model)}' must declare '{field}' as translatable",
            f"{self.CODE_PREFIX}001",
            {"model": _type_name(model), "field": field},
        )


# Database exceptions
class DatabaseException(EmbedTransException):
    """Raised when a database operation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "DATABASE_001", details or {})
