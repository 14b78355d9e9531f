import sqlite3

import pytest

from tholvi.adapters.sqlite.migrator import SQLiteMigrator

TABLES = {"users", "content_items", "sections", "payments", "notifications", "site_settings"}


@pytest.fixture
def temp_db_path(tmp_path):
    return str(tmp_path / "test_db.sqlite")


@pytest.fixture
def migrations_dir():
    return "migrations"


def _tables(db_path):
    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    finally:
        conn.close()
    return {r[0] for r in rows}


def test_migrator_applies_initial(temp_db_path, migrations_dir):
    applied = SQLiteMigrator(temp_db_path, migrations_dir).run_migrations()
    assert applied == ["0001_init.sql"]
    assert TABLES | {"_migrations"} <= _tables(temp_db_path)


def test_migrator_is_idempotent(temp_db_path, migrations_dir):
    migrator = SQLiteMigrator(temp_db_path, migrations_dir)
    migrator.run_migrations()
    assert migrator.run_migrations() == []
    assert migrator.pending() == []

    conn = sqlite3.connect(temp_db_path)
    count = conn.execute("SELECT count(*) FROM _migrations").fetchone()[0]
    conn.close()
    assert count == 1


def test_down_section_is_not_applied(tmp_path, temp_db_path):
    (tmp_path / "m").mkdir()
    (tmp_path / "m" / "0001_t.sql").write_text(
        "-- Up\nCREATE TABLE t (id INTEGER);\n-- Down\nDROP TABLE t;\n"
    )
    SQLiteMigrator(temp_db_path, str(tmp_path / "m")).run_migrations()
    assert "t" in _tables(temp_db_path)


def test_broken_migration_raises(tmp_path, temp_db_path):
    (tmp_path / "m").mkdir()
    (tmp_path / "m" / "0001_bad.sql").write_text("CREATE TABLE (;")
    migrator = SQLiteMigrator(temp_db_path, str(tmp_path / "m"))
    with pytest.raises(RuntimeError, match="0001_bad.sql"):
        migrator.run_migrations()
    assert migrator.pending() == ["0001_bad.sql"]


def test_section_count_cannot_go_negative(temp_db_path, migrations_dir):
    SQLiteMigrator(temp_db_path, migrations_dir).run_migrations()
    conn = sqlite3.connect(temp_db_path)
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(
            "INSERT INTO content_items (id, kind, title, section_count, created_at, updated_at) "
            "VALUES ('c1', 'course', 'C', -1, '2025-01-01', '2025-01-01')"
        )
    conn.close()
