# tests/test_translatable_repository.py
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from embedtrans.core.exceptions import (
    DatabaseException,
    NotRegisteredException,
    UntranslatableAttributeException,
)
from embedtrans.repositories.translatable_repository import TranslatableRepository
from tests.support.models import Article, Book


@pytest.fixture()
def articles(session):
    return TranslatableRepository(session, Article)


def test_repository_requires_registered_model(session):
    with pytest.raises(NotRegisteredException):
        TranslatableRepository(session, object)


def test_get_by_id(seeded, articles):
    article_id = seeded["spelling"].id

    assert articles.get_by_id(article_id).title == "How to Write a Spelling Corrector"
    assert articles.get_by_id(article_id, "es").title == "Cómo escribir un corrector ortográfico"
    assert articles.get_by_id(9999) is None
    assert articles.get_by_id(9999, "es") is None


def test_list_translated(seeded, articles):
    translated = articles.list_translated(["de", "fr"])
    assert [article.title for article in translated] == [
        "Comment écrire un correcteur orthographique",
        "Elixir in Action",
        "Zebra patterns",
    ]
    assert len(articles.list_translated("es", skip=1, limit=1)) == 1


def test_find_by_translation(seeded, articles):
    found = articles.find_by_translation(Article.title, "es", "Elixir en acción")
    assert [article.id for article in found] == [seeded["elixir"].id]
    assert articles.find_by_translation("title", "fr", "Elixir en acción") == []


def test_search_translation(seeded, articles):
    found = articles.search_translation(Article.body, ["es"], "norvig")
    assert [article.id for article in found] == [seeded["spelling"].id]

    found = articles.search_translation(Article.title, ["es"], "Elixir", case_sensitive=True)
    assert [article.id for article in found] == [seeded["elixir"].id]


def test_list_with_translation(seeded, session):
    assert [article.id for article in TranslatableRepository(session, Article).list_with_translation("fr")] == [
        seeded["spelling"].id
    ]
    hobbit, dune = seeded["books"]
    assert [book.id for book in TranslatableRepository(session, Book).list_with_translation("fr")] == [
        dune.id
    ]


def test_order_by_translation(seeded, articles):
    ascending = articles.order_by_translation(Article.title, "es")
    descending = articles.order_by_translation(Article.title, "es", descending=True)

    assert [article.id for article in ascending] == [
        # no Spanish title, NULL sorts first on SQLite
        seeded["untranslated"].id,
        seeded["spelling"].id,
        seeded["elixir"].id,
    ]
    assert [article.id for article in descending] == list(reversed([a.id for a in ascending]))


def test_untranslatable_attribute_is_rejected(seeded, articles):
    with pytest.raises(UntranslatableAttributeException):
        articles.find_by_translation(Article.id, "es", 1)


def test_database_errors_are_wrapped():
    session = MagicMock()
    session.execute.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
    session.get.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
    repository = TranslatableRepository(session, Article)

    with pytest.raises(DatabaseException) as exc_info:
        repository.list_translated("es")
    assert exc_info.value.code == "DATABASE_001"

    with pytest.raises(DatabaseException):
        repository.get_by_id(1)
    with pytest.raises(DatabaseException):
        repository.search_translation(Article.title, "es", "x")
