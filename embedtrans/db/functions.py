# File: embedtrans/db/functions.py
"""
Server-side translation resolver functions.

Query expressions built with a locale chain that is only known at execution
time call a ``translate_field`` function inside the database instead of
unrolling the fallback chain into ``COALESCE``. Two overloads exist:

- ``translate_field(record, container, field, default_locale, locales[])``
  returns the translated text of one field, falling back to the record's
  own value;
- ``translate_field(record, container, default_locale, locales[])`` returns
  the first per-locale entry present in the container, or NULL. This form
  does not short-circuit on the default locale.

PostgreSQL gets PL/pgSQL definitions (installed by a migration, see
``embedtrans gen-migration``). SQLite, used in tests and local tooling, gets
Python implementations registered on every connection, built on the same
navigator the in-memory translator uses.
"""

import json
import logging
from typing import Any, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import Connection, Engine

from embedtrans.core.config import settings
from embedtrans.db.custom_types import decode_locale_array
from embedtrans.services.container_navigator import resolve_field, resolve_submap

logger = logging.getLogger(__name__)


def resolver_name(qualified: bool = True) -> str:
    """Name of the resolver function, schema-qualified for PostgreSQL."""
    if qualified:
        return f"{settings.TRANSLATE_FUNCTION_SCHEMA}.{settings.TRANSLATE_FUNCTION_NAME}"
    return settings.TRANSLATE_FUNCTION_NAME


def translate_field_sql() -> str:
    return f"""
CREATE OR REPLACE FUNCTION {resolver_name()}(record record, container varchar, field varchar, default_locale varchar, locales varchar[])
RETURNS varchar
STRICT
STABLE
LANGUAGE plpgsql
AS $$
  DECLARE
    locale varchar;
    j json;
    c json;
  BEGIN
    j := row_to_json(record);
    c := j->container;

    FOREACH locale IN ARRAY locales LOOP
      IF locale = default_locale THEN
        RETURN j->>field;
      ELSEIF c->locale IS NOT NULL THEN
        IF c->locale->>field IS NOT NULL THEN
          RETURN c->locale->>field;
        END IF;
      END IF;
    END LOOP;
    RETURN j->>field;
  END;
$$;
""".strip()


def translate_submap_sql() -> str:
    return f"""
CREATE OR REPLACE FUNCTION {resolver_name()}(record record, container varchar, default_locale varchar, locales varchar[])
RETURNS jsonb
STRICT
STABLE
LANGUAGE plpgsql
AS $$
  DECLARE
    locale varchar;
    j json;
    c json;
  BEGIN
    j := row_to_json(record);
    c := j->container;

    FOREACH locale IN ARRAY locales LOOP
      IF c->locale IS NOT NULL THEN
        RETURN c->locale;
      END IF;
    END LOOP;
    RETURN NULL;
  END;
$$;
""".strip()


def drop_translate_functions_sql() -> list:
    return [
        f"DROP FUNCTION IF EXISTS {resolver_name()}(record, varchar, varchar, varchar, varchar[])",
        f"DROP FUNCTION IF EXISTS {resolver_name()}(record, varchar, varchar, varchar[])",
    ]


def create_translate_functions(connection: Connection) -> None:
    """
    Install both resolver functions on a PostgreSQL connection.

    Args:
        connection: An open SQLAlchemy connection
    """
    if connection.dialect.name != "postgresql":
        raise ValueError(
            f"Resolver functions are installed with DDL on PostgreSQL only, "
            f"got '{connection.dialect.name}'. Use enable_sqlite_translate_functions() for SQLite."
        )
    logger.info(f"Creating resolver functions {resolver_name()}")
    connection.execute(text(translate_field_sql()))
    connection.execute(text(translate_submap_sql()))


def drop_translate_functions(connection: Connection) -> None:
    """Remove both resolver functions from a PostgreSQL connection."""
    logger.info(f"Dropping resolver functions {resolver_name()}")
    for statement in drop_translate_functions_sql():
        connection.execute(text(statement))


# -----------------------------------------------------------------------------
# SQLite emulation
# -----------------------------------------------------------------------------


def _load_container(value: Optional[str]) -> Any:
    if value is None:
        return None
    return json.loads(value)


def _as_text(value: Any) -> Any:
    # mirrors ->> which yields JSON scalars as text
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value)


def sqlite_translate_field(
    container: Optional[str],
    own_value: Any,
    field: str,
    default_locale: Optional[str],
    locales: Optional[str],
) -> Any:
    """SQLite rendition of ``translate_field(record, container, field, ...)``."""
    default_locale = default_locale or None
    resolution = resolve_field(
        _load_container(container),
        own_value,
        field,
        decode_locale_array(locales),
        default_locale=default_locale,
    )
    if resolution.fallback or resolution.locale == default_locale:
        return own_value
    return _as_text(resolution.value)


def sqlite_translate_submap(
    container: Optional[str],
    default_locale: Optional[str],
    locales: Optional[str],
) -> Optional[str]:
    """SQLite rendition of ``translate_field(record, container, default_locale, ...)``."""
    result = resolve_submap(_load_container(container), decode_locale_array(locales))
    if not result.present:
        return None
    return json.dumps(result.submap)


def install_sqlite_functions(dbapi_connection: Any) -> None:
    """Register the resolver functions on a sqlite3 DBAPI connection."""
    name = resolver_name(qualified=False)
    dbapi_connection.create_function(name, 5, sqlite_translate_field, deterministic=True)
    dbapi_connection.create_function(name, 3, sqlite_translate_submap, deterministic=True)


def enable_sqlite_translate_functions(engine: Engine) -> None:
    """
    Register the resolver functions on every new connection of a SQLite engine.

    Args:
        engine: A SQLAlchemy engine using the sqlite dialect
    """
    if engine.dialect.name != "sqlite":
        raise ValueError(f"Expected a sqlite engine, got '{engine.dialect.name}'")

    @event.listens_for(engine, "connect")
    def _install_translate_functions(dbapi_connection, connection_record):
        install_sqlite_functions(dbapi_connection)

    logger.debug(f"SQLite resolver functions enabled for {engine.url}")
