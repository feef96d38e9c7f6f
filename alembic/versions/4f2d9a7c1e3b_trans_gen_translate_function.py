"""trans_gen_translate_function

Revision ID: 4f2d9a7c1e3b
Revises: 
Create Date: 2026-10-19 10:42:17.381904

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '4f2d9a7c1e3b'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute(
        """
        CREATE OR REPLACE FUNCTION public.translate_field(record record, container varchar, field varchar, default_locale varchar, locales varchar[])
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
        """
    )
    op.execute(
        """
        CREATE OR REPLACE FUNCTION public.translate_field(record record, container varchar, default_locale varchar, locales varchar[])
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
        """
    )


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS public.translate_field(record, varchar, varchar, varchar, varchar[])")
    op.execute("DROP FUNCTION IF EXISTS public.translate_field(record, varchar, varchar, varchar[])")
