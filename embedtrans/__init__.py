# File: embedtrans/__init__.py
"""
embedtrans: translations embedded in a JSON attribute of each record.

This module exports the public API: model registration, the in-memory
translator and the query expression builder.
"""

from embedtrans.core.exceptions import (
    EmbedTransException,
    InvalidLocaleException,
    MissingLocaleException,
    NoTranslationException,
    NotRegisteredException,
    NotTranslatableException,
    TranslationRegistrationException,
    UntranslatableAttributeException,
)
from embedtrans.db.custom_types import TranslationsType
from embedtrans.db.mixins import TranslatableMixin
from embedtrans.db.registry import (
    ContainerShape,
    container,
    default_locale,
    fields,
    get_metadata,
    register_model,
    translatable,
    translates,
)
from embedtrans.repositories.query_builder import (
    has_translation,
    translated,
    translated_as,
    translated_contains,
    translated_icontains,
    translated_matches,
)
from embedtrans.services.translator import translate, translate_field, translate_field_strict

__version__ = "0.1.0"

__all__ = [
    # Registration
    'translates', 'register_model', 'ContainerShape', 'TranslationsType', 'TranslatableMixin',
    'translatable', 'fields', 'container', 'default_locale', 'get_metadata',

    # Translator
    'translate', 'translate_field', 'translate_field_strict',

    # Query expressions
    'translated', 'translated_as', 'has_translation',
    'translated_matches', 'translated_contains', 'translated_icontains',

    # Errors
    'EmbedTransException', 'NotRegisteredException', 'NotTranslatableException',
    'NoTranslationException', 'UntranslatableAttributeException',
    'MissingLocaleException', 'InvalidLocaleException', 'TranslationRegistrationException',
]
