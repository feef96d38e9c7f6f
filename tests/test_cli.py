# tests/test_cli.py
import importlib.util
import io
import os
from unittest.mock import MagicMock, patch

from embedtrans.cli import generate_migration, main, print_sql, render_migration
from embedtrans.db.functions import drop_translate_functions_sql, translate_field_sql

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SHIPPED_REVISION = os.path.join(
    REPO_ROOT, "alembic", "versions", "4f2d9a7c1e3b_trans_gen_translate_function.py"
)


def load_revision(path):
    spec = importlib.util.spec_from_file_location("revision_under_test", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def run_revision(module):
    """Run upgrade() and downgrade() against a mocked alembic op."""
    op = MagicMock()
    with patch.object(module, "op", op):
        module.upgrade()
        upgraded = [call.args[0] for call in op.execute.call_args_list]
        op.reset_mock()
        module.downgrade()
        downgraded = [call.args[0] for call in op.execute.call_args_list]
    return upgraded, downgraded


def test_print_sql():
    out = io.StringIO()
    print_sql(stream=out)
    assert out.getvalue().count("CREATE OR REPLACE FUNCTION public.translate_field(") == 2

    out = io.StringIO()
    print_sql(drop=True, stream=out)
    assert out.getvalue().count("DROP FUNCTION IF EXISTS") == 2


def test_render_migration_header():
    source = render_migration("abc123", "def456", "install resolvers")

    assert source.startswith('"""install resolvers\n\nRevision ID: abc123\nRevises: def456\n')
    assert "revision: str = 'abc123'" in source
    assert "down_revision: Union[str, None] = 'def456'" in source


def test_generate_migration_writes_revision(tmp_path):
    filename = generate_migration(str(tmp_path), down_revision="def456", message="Install resolvers")

    assert os.path.dirname(filename) == str(tmp_path)
    assert filename.endswith("_install_resolvers.py")

    module = load_revision(filename)
    assert module.down_revision == "def456"
    assert os.path.basename(filename).startswith(module.revision)

    upgraded, downgraded = run_revision(module)
    assert len(upgraded) == 2
    assert "RETURNS varchar" in upgraded[0]
    assert "RETURNS jsonb" in upgraded[1]
    assert downgraded == drop_translate_functions_sql()


def test_generated_sql_matches_library_ddl(tmp_path):
    module = load_revision(generate_migration(str(tmp_path)))
    upgraded, _ = run_revision(module)

    def normalize(sql):
        return [line.strip() for line in sql.strip().splitlines()]

    assert normalize(upgraded[0]) == normalize(translate_field_sql())


def test_shipped_revision_matches_library_ddl():
    module = load_revision(SHIPPED_REVISION)
    assert module.revision == "4f2d9a7c1e3b"
    assert module.down_revision is None

    upgraded, downgraded = run_revision(module)
    assert [line.strip() for line in upgraded[0].strip().splitlines()] == [
        line.strip() for line in translate_field_sql().splitlines()
    ]
    assert downgraded == drop_translate_functions_sql()


def test_main_gen_migration(tmp_path, capsys):
    assert main(["gen-migration", "--path", str(tmp_path), "--message", "first"]) == 0

    written = os.listdir(tmp_path)
    assert len(written) == 1
    assert written[0].endswith("_first.py")
    assert str(tmp_path) in capsys.readouterr().out


def test_main_sql(capsys):
    assert main(["sql", "--drop"]) == 0
    assert "DROP FUNCTION IF EXISTS public.translate_field" in capsys.readouterr().out


def test_main_without_command(capsys):
    assert main([]) == 1
