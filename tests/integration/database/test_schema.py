"""Integration tests for the database and migrated schema.

Uses real SQLite files to verify actual behavior.
"""

import pytest

from investfolio.database import Database, SQLiteError


class TestDatabaseIntegration:
    """Integration tests with real SQLite connections."""

    def test_connection_enables_wal_and_foreign_keys(self, temp_db_path):
        db = Database(db_path=temp_db_path)

        with db.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("PRAGMA journal_mode")
            assert cursor.fetchone()[0].lower() == "wal"
            cursor.execute("PRAGMA foreign_keys")
            assert cursor.fetchone()[0] == 1

    def test_writes_are_visible_to_the_next_connection(self, temp_db_path):
        db = Database(db_path=temp_db_path)

        with db.connection() as conn:
            conn.execute("CREATE TABLE notes (id INTEGER PRIMARY KEY, body TEXT)")
            conn.execute("INSERT INTO notes (body) VALUES (?)", ("hello",))

        with db.connection() as conn:
            row = conn.execute("SELECT body FROM notes").fetchone()
        assert row[0] == "hello"

    def test_parent_directory_created_before_first_connection(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "portfolio.db"
        db = Database(db_path=str(db_path))

        assert db_path.parent.exists()
        assert not db_path.exists()

        with db.connection() as conn:
            conn.execute("SELECT 1")
        assert db_path.exists()

    def test_fresh_file_is_not_initialized(self, temp_db_path):
        assert Database(db_path=temp_db_path).is_initialized() is False


class TestMigratedSchema:
    """The Alembic head revision creates the expected tables."""

    def test_schema_is_initialized(self, test_db):
        assert test_db.is_initialized() is True

    def test_tables_exist(self, test_db):
        with test_db.connection() as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
        names = {row[0] for row in rows}
        assert {"investments", "known_assets"} <= names

    def test_investment_category_is_constrained(self, test_db):
        with pytest.raises(SQLiteError):
            with test_db.connection() as conn:
                conn.execute(
                    "INSERT INTO investments (id, user_id, asset_name, category, "
                    "amount_invested, current_value, created_at, updated_at) "
                    "VALUES ('a1', 'u1', 'PETR4', 'Stocks', 1000000, 1000000, 'x', 'x')"
                )

    def test_amount_invested_must_be_positive(self, test_db):
        with pytest.raises(SQLiteError):
            with test_db.connection() as conn:
                conn.execute(
                    "INSERT INTO investments (id, user_id, asset_name, category, "
                    "amount_invested, current_value, created_at, updated_at) "
                    "VALUES ('a1', 'u1', 'PETR4', 'Ações', 0, 0, 'x', 'x')"
                )

    def test_known_asset_symbol_is_unique(self, test_db):
        insert = (
            "INSERT INTO known_assets (symbol, name, category, created_at, updated_at) "
            "VALUES ('PETR4', 'Petrobras PN', 'Ações', 'x', 'x')"
        )
        with test_db.connection() as conn:
            conn.execute(insert)
        with pytest.raises(SQLiteError):
            with test_db.connection() as conn:
                conn.execute(insert)
