# File: embedtrans/db/registry.py
"""
Translation metadata registry.

This module binds model classes to their translation metadata:
- which attributes are translatable
- the attribute holding the translations container
- the default locale, whose values live on the record itself
- the container shape (sparse mapping or fixed per-locale slots)

Metadata is declared once with the ``@translates`` class decorator and is
immutable afterwards, so it can be read from any thread without locking.

Usage:
    @translates("title", "body", default_locale="en")
    class Article(Base):
        __tablename__ = "articles"

        id = Column(Integer, primary_key=True)
        title = Column(String)
        body = Column(Text)
        translations = Column(TranslationsType)
"""

import dataclasses
import enum
import logging
import operator
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, Iterable, Optional, Tuple, Type

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm.attributes import QueryableAttribute, set_committed_value

from embedtrans.core.config import settings
from embedtrans.core.exceptions import (
    NotRegisteredException,
    TranslationRegistrationException,
)
from embedtrans.core.locales import normalize_locale, normalize_optional_locale

logger = logging.getLogger(__name__)


class ContainerShape(str, enum.Enum):
    """How a translations container lays out its locales."""

    # dict of locale -> dict of field -> value, locale keys may be missing
    SPARSE = "sparse"
    # one slot per configured locale, always present, possibly null
    FIXED = "fixed"


@dataclass(frozen=True)
class FieldAccessor:
    """Getter and setter for one attribute, built once at registration."""

    name: str
    get: Callable[[Any], Any]
    set: Callable[[Any, Any], None]


@dataclass(frozen=True)
class TranslationMetadata:
    """
    Immutable translation metadata for a single model class.

    Attributes:
        model: The registered class
        fields: Translatable attribute names, in declaration order
        container: Name of the attribute holding the translations
        default_locale: Locale stored on the record itself, or None
        shape: Layout of the translations container
        locales: Slot names for fixed-shape containers
        accessors: Attribute name -> FieldAccessor, container included
        is_mapped: Whether the class is mapped by SQLAlchemy
    """

    model: Type[Any]
    fields: Tuple[str, ...]
    container: str
    default_locale: Optional[str]
    shape: ContainerShape
    locales: Tuple[str, ...] = ()
    accessors: Dict[str, FieldAccessor] = field(default_factory=dict, compare=False)
    is_mapped: bool = False

    def is_translatable(self, name: str) -> bool:
        return name in self.fields

    def get_value(self, record: Any, name: str) -> Any:
        return self.accessors[name].get(record)

    def set_value(self, record: Any, name: str, value: Any) -> None:
        self.accessors[name].set(record, value)

    def get_container(self, record: Any) -> Any:
        return self.accessors[self.container].get(record)


class TranslationRegistry:
    """
    Registry of translation metadata, keyed by model class.

    Lookups walk the MRO so that subclasses of a registered model
    (for example polymorphic mapped subclasses) share its metadata.
    """

    _metadata: ClassVar[Dict[Type[Any], TranslationMetadata]] = {}

    @classmethod
    def register(cls, metadata: TranslationMetadata) -> None:
        """
        Register metadata for its model class.

        Args:
            metadata: The metadata to register
        """
        cls._metadata[metadata.model] = metadata
        logger.debug(
            f"Registered translation metadata for {metadata.model.__name__}: "
            f"fields={list(metadata.fields)}, container='{metadata.container}', "
            f"default_locale={metadata.default_locale!r}, shape={metadata.shape.value}"
        )

    @classmethod
    def unregister(cls, model: Type[Any]) -> None:
        cls._metadata.pop(model, None)

    @classmethod
    def get(cls, model: Type[Any]) -> Optional[TranslationMetadata]:
        """
        Get the metadata of a class or of the closest registered base class.

        Args:
            model: The model class

        Returns:
            The metadata if found, None otherwise
        """
        for klass in getattr(model, "__mro__", ()):
            metadata = cls._metadata.get(klass)
            if metadata is not None:
                return metadata
        return None

    @classmethod
    def is_registered(cls, model: Type[Any]) -> bool:
        return cls.get(model) is not None

    @classmethod
    def get_all(cls) -> Dict[Type[Any], TranslationMetadata]:
        """
        Get all registered metadata.

        Returns:
            Dictionary mapping model classes to their metadata
        """
        return cls._metadata.copy()


def _is_mapped(model: Type[Any]) -> bool:
    return sa_inspect(model, raiseerr=False) is not None


def _defines(model: Type[Any], name: str, mapped: bool) -> bool:
    # Mapper.attrs would configure every mapper, which fails while
    # relationship targets are still being declared
    if mapped:
        return isinstance(getattr(model, name, None), QueryableAttribute)
    if dataclasses.is_dataclass(model):
        return name in {f.name for f in dataclasses.fields(model)}
    return any(
        name in getattr(klass, "__annotations__", {}) or name in vars(klass)
        for klass in model.__mro__
    )


def _build_accessor(name: str, mapped: bool) -> FieldAccessor:
    if mapped:
        def _set(record: Any, value: Any) -> None:
            set_committed_value(record, name, value)
    else:
        def _set(record: Any, value: Any) -> None:
            setattr(record, name, value)

    return FieldAccessor(name=name, get=operator.attrgetter(name), set=_set)


def translates(
    *fields: str,
    container: Optional[str] = None,
    default_locale: Any = None,
    shape: ContainerShape = ContainerShape.SPARSE,
    locales: Iterable[Any] = (),
) -> Callable[[Type[Any]], Type[Any]]:
    """
    Class decorator declaring the translatable attributes of a model.

    Args:
        *fields: Names of the translatable attributes
        container: Attribute holding the translations, defaults to
            ``settings.DEFAULT_CONTAINER``
        default_locale: Locale whose values are the record's own attributes
        shape: Layout of the translations container
        locales: Slot names, required for ``ContainerShape.FIXED``

    Raises:
        TranslationRegistrationException: If the declaration does not match the class
    """

    def decorator(model: Type[Any]) -> Type[Any]:
        register_model(
            model,
            fields,
            container=container,
            default_locale=default_locale,
            shape=shape,
            locales=locales,
        )
        return model

    return decorator


def register_model(
    model: Type[Any],
    fields: Iterable[str],
    container: Optional[str] = None,
    default_locale: Any = None,
    shape: ContainerShape = ContainerShape.SPARSE,
    locales: Iterable[Any] = (),
) -> TranslationMetadata:
    """Validate a declaration and register it. See ``translates``."""
    field_names = tuple(attribute_name(name) for name in fields)
    container_name = container or settings.DEFAULT_CONTAINER
    shape = ContainerShape(shape)
    slots = tuple(normalize_locale(locale) for locale in locales)

    if not field_names:
        raise TranslationRegistrationException(
            model,
            f"{model.__name__} requires a non-empty list of translatable field names",
        )

    mapped = _is_mapped(model)

    invalid = [name for name in field_names if not _defines(model, name, mapped)]
    if len(invalid) == 1:
        raise TranslationRegistrationException(
            model,
            f"{model.__name__} declares '{invalid[0]}' as translatable "
            f"but it is not defined in the type",
            invalid,
        )
    if invalid:
        raise TranslationRegistrationException(
            model,
            f"{model.__name__} declares {invalid} as translatable "
            f"but they are not defined in the type",
            invalid,
        )

    if not _defines(model, container_name, mapped):
        raise TranslationRegistrationException(
            model,
            f"The field {container_name} used as the translation container "
            f"is not defined in {model.__name__}",
            [container_name],
        )

    if shape is ContainerShape.FIXED and not slots:
        raise TranslationRegistrationException(
            model,
            f"{model.__name__} uses a fixed translations container but declares no locales",
        )

    accessors = {
        name: _build_accessor(name, mapped) for name in field_names + (container_name,)
    }
    metadata = TranslationMetadata(
        model=model,
        fields=field_names,
        container=container_name,
        default_locale=normalize_optional_locale(default_locale),
        shape=shape,
        locales=slots,
        accessors=accessors,
        is_mapped=mapped,
    )
    TranslationRegistry.register(metadata)
    return metadata


def attribute_name(attribute: Any) -> str:
    """Accept attribute names as strings, enum members or instrumented attributes."""
    if isinstance(attribute, QueryableAttribute):
        return attribute.key
    if isinstance(attribute, enum.Enum):
        return str(attribute.value)
    return str(attribute)


def _model_of(type_or_instance: Any) -> Type[Any]:
    if isinstance(type_or_instance, type):
        return type_or_instance
    return type(type_or_instance)


def get_metadata(type_or_instance: Any) -> TranslationMetadata:
    """
    Get the translation metadata of a class or instance.

    Raises:
        NotRegisteredException: If the class has no translation metadata
    """
    model = _model_of(type_or_instance)
    metadata = TranslationRegistry.get(model)
    if metadata is None:
        raise NotRegisteredException(model)
    return metadata


def translatable(type_or_instance: Any, attribute: Any) -> bool:
    """Check whether an attribute is declared translatable."""
    return get_metadata(type_or_instance).is_translatable(attribute_name(attribute))


def fields(model: Any) -> Tuple[str, ...]:
    return get_metadata(model).fields


def container(model: Any) -> str:
    return get_metadata(model).container


def default_locale(model: Any) -> Optional[str]:
    return get_metadata(model).default_locale
