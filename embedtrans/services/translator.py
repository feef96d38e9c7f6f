# File: embedtrans/services/translator.py
"""
Translator

Reads translated values from records whose translations live embedded in
a container attribute, falling back to the record's own values when the
requested locales have no translation.

Example, with a default locale of "en":

    article.title         == "How to Write a Spelling Corrector"
    article.translations  == {"es": {"title": "Cómo escribir un corrector ortográfico"}}

    translate_field(article, "title", "es")          -> "Cómo escribir un corrector ortográfico"
    translate_field(article, "title", ["de", "es"])  -> "Cómo escribir un corrector ortográfico"
    translate_field(article, "title", "de")          -> "How to Write a Spelling Corrector"
    translate_field_strict(article, "title", "de")   -> raises NoTranslationException
"""

import copy
import logging
from typing import Any, Dict, List

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import RelationshipProperty
from sqlalchemy.orm.attributes import set_committed_value

from embedtrans.core.exceptions import NoTranslationException, NotTranslatableException
from embedtrans.core.locales import normalize_chain
from embedtrans.db.registry import (
    TranslationMetadata,
    TranslationRegistry,
    attribute_name,
    get_metadata,
)
from embedtrans.services.container_navigator import Resolution, resolve_field

logger = logging.getLogger(__name__)


def _checked_field(metadata: TranslationMetadata, attribute: Any) -> str:
    name = attribute_name(attribute)
    if not metadata.is_translatable(name):
        raise NotTranslatableException(metadata.model, name)
    return name


def _resolve(
    metadata: TranslationMetadata, record: Any, name: str, chain: List[str]
) -> Resolution:
    return resolve_field(
        metadata.get_container(record),
        metadata.get_value(record, name),
        name,
        chain,
        default_locale=metadata.default_locale,
        shape=metadata.shape,
        slots=metadata.locales,
    )


def translate_field(record: Any, attribute: Any, locale_or_chain: Any) -> Any:
    """
    Get a translated value, falling back to the record's own value.

    Args:
        record: A record of a type registered with @translates
        attribute: Name of a translatable attribute
        locale_or_chain: A locale or an ordered list of locales

    Returns:
        The first translation found along the chain, or the record's own value

    Raises:
        NotRegisteredException: If the record's type has no translation metadata
        NotTranslatableException: If the attribute is not translatable
    """
    metadata = get_metadata(record)
    name = _checked_field(metadata, attribute)
    chain = normalize_chain(locale_or_chain, "translate_field")
    return _resolve(metadata, record, name, chain).value


def translate_field_strict(record: Any, attribute: Any, locale_or_chain: Any) -> Any:
    """
    Get a translated value, failing when no locale of the chain resolves.

    Reaching the default locale counts as a match.

    Raises:
        NotTranslatableException: If the attribute is not translatable
        NoTranslationException: If the chain is exhausted without a match
    """
    metadata = get_metadata(record)
    name = _checked_field(metadata, attribute)
    chain = normalize_chain(locale_or_chain, "translate_field_strict")
    resolution = _resolve(metadata, record, name, chain)
    if resolution.fallback:
        raise NoTranslationException(name, chain)
    return resolution.value


def translate(record: Any, locale_or_chain: Any) -> Any:
    """
    Translate every translatable attribute of a record.

    Returns a copy of the record with its translatable attributes replaced
    by their translations. Loaded relationships whose records carry
    translation metadata are translated too; relationships that were never
    loaded stay unloaded and the walk never emits queries. The original
    record is left untouched.

    Raises:
        NotRegisteredException: If the record's type has no translation metadata
    """
    get_metadata(record)
    chain = normalize_chain(locale_or_chain, "translate")
    return _translate_record(record, chain, {})


def _translate_record(record: Any, chain: List[str], memo: Dict[int, Any]) -> Any:
    # bidirectional relationships point back at records already visited
    if id(record) in memo:
        return memo[id(record)]

    metadata = TranslationRegistry.get(type(record))
    if metadata is None:
        return record

    if metadata.is_mapped:
        duplicate = _copy_mapped(record, chain, memo)
    else:
        duplicate = _copy_plain(record, chain, memo)

    for name in metadata.fields:
        metadata.set_value(duplicate, name, _resolve(metadata, record, name, chain).value)
    return duplicate


def _translate_related(value: Any, chain: List[str], memo: Dict[int, Any]) -> Any:
    if isinstance(value, (list, tuple)):
        return type(value)(_translate_record(item, chain, memo) for item in value)
    if value is None:
        return None
    return _translate_record(value, chain, memo)


def _copy_mapped(record: Any, chain: List[str], memo: Dict[int, Any]) -> Any:
    """Build a transient copy from the record's loaded state only."""
    state = sa_inspect(record)
    mapper = state.mapper
    duplicate = mapper.class_manager.new_instance()
    memo[id(record)] = duplicate

    loaded = state.dict
    for prop in mapper.iterate_properties:
        if prop.key not in loaded:
            continue
        value = loaded[prop.key]
        if isinstance(prop, RelationshipProperty):
            if prop.uselist:
                value = [_translate_record(item, chain, memo) for item in value]
            elif value is not None:
                value = _translate_record(value, chain, memo)
        set_committed_value(duplicate, prop.key, value)
    return duplicate


def _copy_plain(record: Any, chain: List[str], memo: Dict[int, Any]) -> Any:
    duplicate = copy.copy(record)
    memo[id(record)] = duplicate

    for name, value in list(getattr(duplicate, "__dict__", {}).items()):
        if _holds_translatable(value):
            setattr(duplicate, name, _translate_related(value, chain, memo))
    return duplicate


def _holds_translatable(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return any(TranslationRegistry.is_registered(type(item)) for item in value)
    return TranslationRegistry.is_registered(type(value))
