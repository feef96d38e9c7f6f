# File: embedtrans/db/session.py
"""
Engine and session helpers for embedtrans.

Usage:
    from embedtrans.db.session import create_translation_engine, transaction

    engine = create_translation_engine("sqlite://")
    SessionLocal = create_session_factory(engine)

    with transaction(SessionLocal) as session:
        session.add(article)

SQLite engines get the resolver functions registered on every connection,
so queries built with a locale chain known only at execution time run the
same way they do against PostgreSQL, where the functions are installed by
a migration.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from embedtrans.core.config import settings
from embedtrans.db.functions import enable_sqlite_translate_functions

logger = logging.getLogger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    return make_url(url).database in (None, "", ":memory:")


def create_translation_engine(url: Optional[str] = None, **kwargs: Any) -> Engine:
    """
    Create an engine ready for translated queries.

    Args:
        url: Database URL, defaults to ``settings.DATABASE_URL``
        **kwargs: Passed through to ``create_engine``

    Returns:
        A SQLAlchemy engine
    """
    url = url or settings.DATABASE_URL
    kwargs.setdefault("echo", settings.DATABASE_ECHO)

    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if _is_memory_sqlite(url):
            # one shared connection, or every checkout sees an empty database
            kwargs.setdefault("poolclass", StaticPool)

    engine = create_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":
        enable_sqlite_translate_functions(engine)

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.close()

    logger.info(f"Created translation engine for {engine.url.render_as_string(hide_password=True)}")
    return engine


def create_session_factory(engine: Engine) -> Callable[[], Session]:
    """Session factory bound to an engine, configured like the rest of the library."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def verify_connection(engine: Engine) -> bool:
    """
    Verify that we can connect to the database.

    Returns:
        True if connection succeeds, False otherwise
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1")).scalar()
            return True
    except Exception as e:
        logger.error(f"Database connection verification failed: {e}")
        return False


@contextmanager
def transaction(session_factory: Callable[[], Session]) -> Iterator[Session]:
    """
    Context manager for database transactions.

    Commits when the block exits cleanly and rolls back otherwise.

    Yields:
        Database session for use within the transaction
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
