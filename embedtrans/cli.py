#!/usr/bin/env python
"""
embedtrans/cli.py

Command line tooling for the server-side resolver functions.

    embedtrans sql            print the CREATE FUNCTION statements
    embedtrans sql --drop     print the DROP FUNCTION statements
    embedtrans gen-migration  write an Alembic revision installing them
"""

import argparse
import logging
import os
import re
import sys
from datetime import datetime
from typing import List, Optional

from alembic.util import rev_id

from embedtrans.core.config import settings
from embedtrans.db.functions import (
    drop_translate_functions_sql,
    translate_field_sql,
    translate_submap_sql,
)

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "trans_gen_translate_function"


def _indent(sql: str) -> str:
    return "\n".join(("        " + line) if line else line for line in sql.splitlines())


def render_migration(revision: str, down_revision: Optional[str], message: str) -> str:
    """
    Render the source of an Alembic revision creating the resolver functions.

    The DDL is written into the revision as literal SQL, so the migration
    keeps working if the library changes later.
    """
    create_statements = [translate_field_sql(), translate_submap_sql()]
    drop_statements = drop_translate_functions_sql()

    upgrade_body = "\n".join(
        f'    op.execute(\n        """\n{_indent(sql)}\n        """\n    )' for sql in create_statements
    )
    downgrade_body = "\n".join(f'    op.execute("{sql}")' for sql in drop_statements)

    return f'''"""{message}

Revision ID: {revision}
Revises: {down_revision or ""}
Create Date: {datetime.now().isoformat(sep=" ")}

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = {revision!r}
down_revision: Union[str, None] = {down_revision!r}
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
{upgrade_body}


def downgrade() -> None:
{downgrade_body}
'''


def _slug(message: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", message.lower()).strip("_") or DEFAULT_MESSAGE


def generate_migration(
    path: Optional[str] = None,
    down_revision: Optional[str] = None,
    message: str = DEFAULT_MESSAGE,
) -> str:
    """
    Write a migration file and return its path.

    Args:
        path: Directory of the Alembic versions, defaults to ``settings.MIGRATIONS_PATH``
        down_revision: Revision the new one follows
        message: Revision message, also used in the file name

    Returns:
        Path of the written file
    """
    path = path or settings.MIGRATIONS_PATH
    os.makedirs(path, exist_ok=True)

    revision = rev_id()
    filename = os.path.join(path, f"{revision}_{_slug(message)}.py")
    with open(filename, "w", encoding="utf-8") as f:
        f.write(render_migration(revision, down_revision, message))

    logger.info(f"Generated migration {filename}")
    return filename


def print_sql(drop: bool = False, stream=None) -> None:
    stream = stream or sys.stdout
    statements = drop_translate_functions_sql() if drop else [translate_field_sql(), translate_submap_sql()]
    for statement in statements:
        stream.write(statement.rstrip(";") + ";\n\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="embedtrans",
        description="Manage the embedtrans resolver functions",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    sql_parser = subparsers.add_parser("sql", help="Print the PostgreSQL DDL")
    sql_parser.add_argument("--drop", action="store_true", help="Print DROP statements instead")

    migration_parser = subparsers.add_parser(
        "gen-migration", help="Write an Alembic revision installing the functions"
    )
    migration_parser.add_argument("--path", help=f"Versions directory (default: {settings.MIGRATIONS_PATH})")
    migration_parser.add_argument("--down-revision", help="Revision the new one follows")
    migration_parser.add_argument("--message", "-m", default=DEFAULT_MESSAGE, help="Revision message")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main function for the embedtrans command"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.LOG_LEVEL),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if args.command == "sql":
        print_sql(drop=args.drop)
        return 0
    if args.command == "gen-migration":
        filename = generate_migration(args.path, args.down_revision, args.message)
        print(filename)
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
