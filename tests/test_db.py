import os
import sqlite3

import pytest

from user_registry_api.app.core.config import Settings
from user_registry_api.app.core.db import MIGRATIONS, Database, get_database_path
from user_registry_api.app.core.exceptions import StoreError


def test_absolute_path_is_kept(tmp_path):
    path = str(tmp_path / "a.sqlite3")
    assert get_database_path(path) == path


def test_relative_path_resolves_against_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert get_database_path("data/users.sqlite3") == str((tmp_path / "data" / "users.sqlite3").resolve())


def test_from_settings_uses_url_and_timeout(tmp_path):
    settings = Settings(database_url=str(tmp_path / "x.sqlite3"), database_timeout=1.5)

    db = Database.from_settings(settings)

    assert db.path == str(tmp_path / "x.sqlite3")
    assert db.timeout == 1.5


def test_init_db_creates_missing_directories_and_tables(tmp_path):
    db = Database(str(tmp_path / "nested" / "dir" / "users.sqlite3"))

    db.init_db()

    assert os.path.exists(db.path)
    with db.cursor() as cursor:
        tables = {
            row["name"]
            for row in cursor.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
    assert {"users", "uuid_map", "migrations"} <= tables


def test_init_db_is_idempotent(database):
    database.init_db()
    database.init_db()

    assert database.schema_version() == MIGRATIONS[-1][0]
    with database.cursor() as cursor:
        assert cursor.execute("SELECT COUNT(*) AS n FROM migrations").fetchone()["n"] == len(MIGRATIONS)


def test_mapping_requires_existing_user(database):
    with pytest.raises(StoreError):
        with database.transaction() as cursor:
            cursor.execute("INSERT INTO uuid_map (uuid, user_id) VALUES ('dangling', 999)")


def test_transaction_commits_on_success(database):
    with database.transaction() as cursor:
        cursor.execute(
            "INSERT INTO users (username, age, email, phone, created_at) VALUES ('a', 1, 'a@b', '1', 'now')"
        )

    with database.cursor() as cursor:
        assert cursor.execute("SELECT COUNT(*) AS n FROM users").fetchone()["n"] == 1


def test_transaction_rolls_back_on_non_store_error(database):
    with pytest.raises(RuntimeError):
        with database.transaction() as cursor:
            cursor.execute(
                "INSERT INTO users (username, age, email, phone, created_at) VALUES ('a', 1, 'a@b', '1', 'now')"
            )
            raise RuntimeError("boom")

    with database.cursor() as cursor:
        assert cursor.execute("SELECT COUNT(*) AS n FROM users").fetchone()["n"] == 0


def test_driver_errors_become_store_errors(database):
    with pytest.raises(StoreError) as excinfo:
        with database.cursor() as cursor:
            cursor.execute("SELECT * FROM no_such_table")

    assert isinstance(excinfo.value.__cause__, sqlite3.Error)
    assert "no_such_table" in str(excinfo.value)


def test_unopenable_database_is_store_error(tmp_path):
    db = Database(str(tmp_path / "missing-dir" / "users.sqlite3"))

    with pytest.raises(StoreError):
        db.get_connection()
