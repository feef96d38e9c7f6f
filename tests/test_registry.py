# tests/test_registry.py
"""
Tests for translation metadata registration and the metadata accessors.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import pytest
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import declarative_base

from embedtrans.core.exceptions import NotRegisteredException, TranslationRegistrationException
from embedtrans.db.custom_types import TranslationsType
from embedtrans.db.registry import (
    ContainerShape,
    TranslationRegistry,
    container,
    default_locale,
    fields,
    get_metadata,
    register_model,
    translatable,
    translates,
)
from tests.support.models import Article, Book, Comment, Locale, Product


@pytest.fixture()
def cleanup():
    registered = []
    yield registered
    for model in registered:
        TranslationRegistry.unregister(model)


def test_metadata_of_mapped_models():
    assert fields(Article) == ("title", "body")
    assert container(Article) == "translations"
    assert default_locale(Article) == "en"

    assert fields(Comment) == ("comment",)
    assert container(Comment) == "transcriptions"
    assert default_locale(Comment) is None

    metadata = get_metadata(Book)
    assert metadata.shape is ContainerShape.FIXED
    assert metadata.locales == ("es", "fr", "it")
    assert metadata.is_mapped


def test_metadata_of_plain_records():
    metadata = get_metadata(Product)
    assert metadata.default_locale == "en"  # given as Locale.EN
    assert not metadata.is_mapped
    assert get_metadata(Product(name="Wallet")) is metadata


def test_translatable_accepts_types_and_instances(article):
    assert translatable(Article, "title")
    assert translatable(article, "body")
    assert translatable(Article, Article.title)
    assert not translatable(Article, "translations")
    assert not translatable(article, "id")


def test_unregistered_type_raises():
    class Plain:
        pass

    with pytest.raises(NotRegisteredException) as exc_info:
        get_metadata(Plain)
    assert exc_info.value.code == "METADATA_001"

    with pytest.raises(NotRegisteredException):
        translatable(Plain(), "title")


def test_subclasses_share_metadata():
    class SpecialProduct(Product):
        pass

    assert get_metadata(SpecialProduct) is get_metadata(Product)


def test_single_undefined_field_is_rejected():
    with pytest.raises(TranslationRegistrationException) as exc_info:

        @translates("title", "subtitle")
        @dataclass
        class Post:
            title: str
            translations: Dict[str, Any] = field(default_factory=dict)

    assert str(exc_info.value) == (
        "Post declares 'subtitle' as translatable but it is not defined in the type"
    )
    assert exc_info.value.details["fields"] == ["subtitle"]


def test_several_undefined_fields_are_rejected():
    with pytest.raises(TranslationRegistrationException) as exc_info:

        @translates("title", "subtitle", "teaser")
        @dataclass
        class Post:
            title: str
            translations: Dict[str, Any] = field(default_factory=dict)

    assert "['subtitle', 'teaser']" in str(exc_info.value)
    assert "they are not defined in the type" in str(exc_info.value)


def test_missing_container_is_rejected():
    with pytest.raises(TranslationRegistrationException) as exc_info:

        @translates("title", container="i18n")
        @dataclass
        class Post:
            title: str

    assert str(exc_info.value) == (
        "The field i18n used as the translation container is not defined in Post"
    )


def test_empty_field_list_is_rejected():
    with pytest.raises(TranslationRegistrationException):

        @translates()
        @dataclass
        class Post:
            title: str
            translations: Optional[dict] = None


def test_fixed_shape_requires_locales():
    with pytest.raises(TranslationRegistrationException):

        @translates("title", shape=ContainerShape.FIXED)
        @dataclass
        class Post:
            title: str
            translations: Optional[dict] = None


def test_mapped_model_fields_are_checked():
    Base = declarative_base()

    with pytest.raises(TranslationRegistrationException):

        @translates("title", "summary")
        class Chapter(Base):
            __tablename__ = "chapters"

            id = Column(Integer, primary_key=True)
            title = Column(String(100))
            translations = Column(TranslationsType)


def test_register_model_without_decorator(cleanup):
    class Note:
        text: str
        translations: dict

        def __init__(self, text, translations=None):
            self.text = text
            self.translations = translations or {}

    metadata = register_model(Note, ["text"], default_locale=Locale.FR)
    cleanup.append(Note)

    assert metadata.fields == ("text",)
    assert metadata.default_locale == "fr"
    assert TranslationRegistry.is_registered(Note)
    assert Note in TranslationRegistry.get_all()


def test_metadata_is_immutable():
    metadata = get_metadata(Article)
    with pytest.raises(AttributeError):
        metadata.container = "other"
