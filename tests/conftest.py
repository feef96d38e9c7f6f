# tests/conftest.py
import pytest

from embedtrans.db.session import create_session_factory, create_translation_engine
from tests.support.models import Article, Base, Book, Comment


@pytest.fixture()
def engine():
    engine = create_translation_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session(engine):
    SessionLocal = create_session_factory(engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def article():
    """The article used throughout the examples, not persisted."""
    return Article(
        title="How to Write a Spelling Corrector",
        body="A wonderful article by Peter Norvig",
        translations={
            "es": {
                "title": "Cómo escribir un corrector ortográfico",
                "body": "Un artículo maravilloso de Peter Norvig",
            },
            "fr": {
                "title": "Comment écrire un correcteur orthographique",
                "body": "Un merveilleux article de Peter Norvig",
            },
        },
    )


@pytest.fixture()
def seeded(session):
    """Articles, comments and books stored in the database."""
    spelling = Article(
        title="How to Write a Spelling Corrector",
        body="A wonderful article by Peter Norvig",
        translations={
            "es": {
                "title": "Cómo escribir un corrector ortográfico",
                "body": "Un artículo maravilloso de Peter Norvig",
            },
            "fr": {
                "title": "Comment écrire un correcteur orthographique",
                "body": "Un merveilleux article de Peter Norvig",
            },
        },
    )
    spelling.comments = [
        Comment(
            comment="Fantastic!",
            transcriptions={"es": {"comment": "¡Fantástico!"}, "fr": {"comment": "Fantastique !"}},
        ),
        Comment(comment="Very useful", transcriptions={"es": {"comment": "Muy útil"}}),
    ]
    elixir = Article(
        title="Elixir in Action",
        body="Concurrency on the BEAM",
        translations={"es": {"title": "Elixir en acción"}, "de": {}},
    )
    untranslated = Article(title="Zebra patterns", body="Stripes", translations=None)
    books = [
        Book(
            title="The Hobbit",
            summary="There and back again",
            translations={
                "es": {"title": "El hobbit", "summary": "Historia de una ida y de una vuelta"},
                "fr": None,
                "it": {"title": "Lo Hobbit", "summary": None},
            },
        ),
        Book(
            title="Dune",
            summary="Spice",
            translations={"es": None, "fr": {"title": "Dune", "summary": "Épice"}, "it": None},
        ),
    ]
    session.add_all([spelling, elixir, untranslated, *books])
    session.commit()
    return {"spelling": spelling, "elixir": elixir, "untranslated": untranslated, "books": books}
