# File: embedtrans/repositories/query_builder.py
"""
Query expressions over embedded translations.

``translated()`` builds a SQLAlchemy column expression that resolves a
translation inside the database, so results can be filtered and ordered by
translated values. The expression composes with the usual operators:

    # articles that have a Spanish translation
    select(Article).where(has_translation(Article, Article, "es"))

    # articles with a given French title
    select(Article).where(translated(Article, Article.title, "fr") == "Elixir")

    # case-insensitive search, German falling back to Spanish
    select(Article).where(translated(Article, Article.body, ["de", "es"]).ilike("%elixir%"))

    # select the translated title into the title slot
    select(Article.id, translated_as(Article, Article.title, ["de", "en"]))

When the locales are literals, the fallback chain is unrolled into
``COALESCE`` of JSON reads. When any locale is a SQL expression (a bound
parameter, a column, a function call) the chain is only known at execution
time and the expression calls the server-side ``translate_field`` function
instead (see ``embedtrans.db.functions``).

A static chain only falls back to the record's own column where it names the
default locale, so rows without a translation in the requested locales
resolve to NULL. The server-side function always ends in the own value.

Invalid attributes raise ``UntranslatableAttributeException`` while the
expression is built, before any statement reaches the database.
"""

import enum
import itertools
import logging
from typing import Any, List, Optional, Tuple

from sqlalchemy import String, cast, func, inspect as sa_inspect, literal, literal_column, null, type_coerce
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm.attributes import QueryableAttribute
from sqlalchemy.sql import ColumnElement
from sqlalchemy.sql.elements import BindParameter, ClauseElement, _truncated_label
from sqlalchemy.sql.functions import FunctionElement
from sqlalchemy.sql.visitors import InternalTraversal

from embedtrans.core.exceptions import (
    InvalidLocaleException,
    MissingLocaleException,
    UntranslatableAttributeException,
)
from embedtrans.core.locales import normalize_chain, normalize_locale
from embedtrans.db.custom_types import LocaleArrayType, TranslationsType
from embedtrans.db.functions import resolver_name
from embedtrans.db.registry import ContainerShape, TranslationMetadata, attribute_name, get_metadata

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Locale classification
# -----------------------------------------------------------------------------


def _is_sql_expression(value: Any) -> bool:
    return isinstance(value, ClauseElement) or hasattr(value, "__clause_element__")


def is_static_locale(value: Any) -> bool:
    """
    Whether a locale argument is fully known while building the query.

    Literal locales (strings, enum members) and lists of them are static.
    Anything holding a SQL expression is dynamic.
    """
    if isinstance(value, (list, tuple)):
        return all(is_static_locale(item) for item in value)
    return isinstance(value, (str, enum.Enum))


def _is_dynamic_locale(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return any(_is_dynamic_locale(item) for item in value)
    return _is_sql_expression(value)


# -----------------------------------------------------------------------------
# SQL constructs for the dynamic strategy
# -----------------------------------------------------------------------------


class LocaleArray(ColumnElement):
    """An array of locales assembled from literals and SQL expressions."""

    __visit_name__ = "locale_array"
    inherit_cache = True
    type = LocaleArrayType()

    _traverse_internals = [("elements", InternalTraversal.dp_clauseelement_list)]

    def __init__(self, elements: List[ColumnElement]):
        self.elements = tuple(elements)

    @property
    def _from_objects(self):
        return list(itertools.chain(*[element._from_objects for element in self.elements]))


@compiles(LocaleArray)
def _compile_locale_array(element, compiler, **kw):
    return "ARRAY[%s]" % ", ".join(compiler.process(item, **kw) for item in element.elements)


@compiles(LocaleArray, "sqlite")
def _compile_locale_array_sqlite(element, compiler, **kw):
    return "json_array(%s)" % ", ".join(compiler.process(item, **kw) for item in element.elements)


class TranslateFieldFunction(FunctionElement):
    """
    Call of the single-field resolver.

    Arguments: container column, own column, container name, field name,
    default locale, locales.
    """

    name = "translate_field"
    type = String()
    inherit_cache = True


class TranslateSubmapFunction(FunctionElement):
    """
    Call of the whole-submap resolver.

    Arguments: container column, container name, default locale, locales.
    """

    name = "translate_field"
    type = TranslationsType()
    inherit_cache = True


def _row_reference(compiler, column) -> str:
    """Render the FROM entity owning a column, passed whole to PL/pgSQL."""
    selectable = column.table
    name = selectable.name
    if isinstance(name, _truncated_label):
        name = compiler._truncated_identifier("alias", name)
    return compiler.preparer.quote(name)


@compiles(TranslateFieldFunction)
def _compile_translate_field(element, compiler, **kw):
    container, _own, container_name, field, default_locale, locales = list(element.clauses)
    return "%s(%s, %s, %s, %s, CAST(%s AS VARCHAR[]))" % (
        resolver_name(),
        _row_reference(compiler, container),
        compiler.process(container_name, **kw),
        compiler.process(field, **kw),
        compiler.process(default_locale, **kw),
        compiler.process(locales, **kw),
    )


@compiles(TranslateFieldFunction, "sqlite")
def _compile_translate_field_sqlite(element, compiler, **kw):
    container, own, _container_name, field, default_locale, locales = list(element.clauses)
    return "%s(%s, %s, %s, %s, %s)" % (
        resolver_name(qualified=False),
        compiler.process(container, **kw),
        compiler.process(own, **kw),
        compiler.process(field, **kw),
        compiler.process(default_locale, **kw),
        compiler.process(locales, **kw),
    )


@compiles(TranslateSubmapFunction)
def _compile_translate_submap(element, compiler, **kw):
    container, container_name, default_locale, locales = list(element.clauses)
    return "%s(%s, %s, %s, CAST(%s AS VARCHAR[]))" % (
        resolver_name(),
        _row_reference(compiler, container),
        compiler.process(container_name, **kw),
        compiler.process(default_locale, **kw),
        compiler.process(locales, **kw),
    )


@compiles(TranslateSubmapFunction, "sqlite")
def _compile_translate_submap_sqlite(element, compiler, **kw):
    container, _container_name, default_locale, locales = list(element.clauses)
    return "%s(%s, %s, %s)" % (
        resolver_name(qualified=False),
        compiler.process(container, **kw),
        compiler.process(default_locale, **kw),
        compiler.process(locales, **kw),
    )


def _locale_array(locale_or_chain: Any) -> ColumnElement:
    """Coerce a dynamic locale argument into an array of locale strings."""
    if isinstance(locale_or_chain, BindParameter):
        return type_coerce(locale_or_chain, LocaleArrayType())

    items = locale_or_chain if isinstance(locale_or_chain, (list, tuple)) else [locale_or_chain]
    elements = []
    for item in items:
        if _is_sql_expression(item):
            expression = item.__clause_element__() if hasattr(item, "__clause_element__") else item
            if isinstance(expression.type, ARRAY) and len(items) == 1:
                return cast(expression, LocaleArrayType())
            elements.append(expression)
        elif isinstance(item, (str, enum.Enum)):
            elements.append(literal(normalize_locale(item), String()))
        else:
            raise InvalidLocaleException(item)
    return LocaleArray(elements)


# -----------------------------------------------------------------------------
# Builders
# -----------------------------------------------------------------------------


def _target(model: Any, translatable: Any) -> Tuple[Any, Optional[str]]:
    """Split an attribute or entity into (entity, field name or None)."""
    if isinstance(translatable, (str, enum.Enum)):
        name = attribute_name(translatable)
        if not isinstance(getattr(model, name, None), QueryableAttribute):
            raise UntranslatableAttributeException(model, name)
        return model, name

    if isinstance(translatable, QueryableAttribute):
        return translatable.parent.entity, translatable.key

    insp = sa_inspect(translatable, raiseerr=False)
    if insp is not None and (insp.is_mapper or getattr(insp, "is_aliased_class", False)):
        return insp.entity, None

    raise TypeError(
        f"Expected a mapped class, an aliased class or a mapped attribute, got {translatable!r}"
    )


def _validated(model: Any, field: Optional[str]) -> TranslationMetadata:
    metadata = get_metadata(model)
    if field is not None and not metadata.is_translatable(field):
        raise UntranslatableAttributeException(metadata.model, field)
    return metadata


def _static_field(
    metadata: TranslationMetadata, entity: Any, field: str, chain: List[str]
) -> ColumnElement:
    container = getattr(entity, metadata.container)
    own = getattr(entity, field)

    fragments = []
    for locale in chain:
        if locale == metadata.default_locale:
            # the own column ends the chain
            fragments.append(own)
            break
        fragments.append(container[(locale, field)].as_string())

    if not fragments:
        return type_coerce(null(), own.expression.type)
    if len(fragments) == 1:
        return fragments[0]
    return func.coalesce(*fragments)


def _static_submap(
    metadata: TranslationMetadata, entity: Any, chain: List[str]
) -> ColumnElement:
    container = getattr(entity, metadata.container)
    container_type = container.expression.type

    # NULLIF turns the stored JSON 'null' of fixed containers into SQL NULL
    fragments = [
        func.nullif(container[locale], literal_column("'null'"), type_=container_type)
        for locale in chain
    ]

    if not fragments:
        return type_coerce(null(), container_type)
    if len(fragments) == 1:
        return fragments[0]
    return func.coalesce(*fragments, type_=container_type)


def _dynamic(
    metadata: TranslationMetadata, entity: Any, field: Optional[str], locale_or_chain: Any
) -> ColumnElement:
    container = getattr(entity, metadata.container)
    locales = _locale_array(locale_or_chain)
    default_locale = literal(metadata.default_locale or "", String())
    container_name = literal(metadata.container, String())

    if field is None:
        return TranslateSubmapFunction(container, container_name, default_locale, locales)
    return TranslateFieldFunction(
        container,
        getattr(entity, field),
        container_name,
        literal(field, String()),
        default_locale,
        locales,
    )


def translated(model: Any, translatable: Any, locale_or_chain: Any) -> ColumnElement:
    """
    Build an expression resolving a translation inside the database.

    Args:
        model: The registered model class
        translatable: The model (or an alias of it) for the whole per-locale
            entry, or one of its attributes, e.g. ``Article.title`` or ``"title"``
        locale_or_chain: A locale, a list of locales, or SQL expressions
            evaluated at execution time

    Returns:
        A column expression usable in select(), where() and order_by()

    Raises:
        NotRegisteredException: If the model has no translation metadata
        UntranslatableAttributeException: If the attribute is not translatable
        MissingLocaleException: If no locale is given
    """
    entity, field = _target(model, translatable)
    metadata = _validated(model, field)

    if locale_or_chain is None:
        raise MissingLocaleException("translated")

    if _is_dynamic_locale(locale_or_chain):
        return _dynamic(metadata, entity, field, locale_or_chain)

    chain = normalize_chain(locale_or_chain, "translated")
    if field is None:
        return _static_submap(metadata, entity, chain)
    return _static_field(metadata, entity, field, chain)


def translated_as(model: Any, translatable: Any, locale_or_chain: Any) -> ColumnElement:
    """
    Like ``translated()``, labeled with the attribute's own name.

    Selecting ``translated_as(Article, Article.title, "es")`` yields a
    ``title`` column, so the translated value can be loaded in place of the
    original one. Whole-entry expressions are returned unlabeled.
    """
    expression = translated(model, translatable, locale_or_chain)
    _entity, field = _target(model, translatable)
    if field is None:
        return expression
    return expression.label(field)


# -----------------------------------------------------------------------------
# Predicates
# -----------------------------------------------------------------------------


def has_translation(model: Any, entity: Any, locale_or_chain: Any) -> ColumnElement:
    """
    Whether a record has a translation entry in any of the given locales.

    Fixed containers store every locale slot and keep JSON 'null' in
    empty ones, sparse containers simply lack the key, so the comparison
    follows the container shape declared for the model.
    """
    metadata = get_metadata(model)
    expression = translated(model, entity, locale_or_chain)
    if metadata.shape is ContainerShape.FIXED:
        return expression != literal_column("'null'")
    return expression.is_not(None)


def translated_matches(model: Any, attribute: Any, locale_or_chain: Any, value: Any) -> ColumnElement:
    return translated(model, attribute, locale_or_chain) == value


def translated_contains(model: Any, attribute: Any, locale_or_chain: Any, value: str) -> ColumnElement:
    """Case-sensitive substring match on a translated attribute."""
    return translated(model, attribute, locale_or_chain).contains(value, autoescape=True)


def translated_icontains(model: Any, attribute: Any, locale_or_chain: Any, value: str) -> ColumnElement:
    """Case-insensitive substring match on a translated attribute."""
    return translated(model, attribute, locale_or_chain).icontains(value, autoescape=True)
