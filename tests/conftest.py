import pytest
from fastapi.testclient import TestClient

from user_registry_api.app.core.config import Settings
from user_registry_api.app.core.db import Database
from user_registry_api.app.main import create_app
from user_registry_api.app.services.user_service import UserService


ALICE = {"username": "alice", "age": 30, "email": "a@x.com", "phone": "555"}


@pytest.fixture
def settings(tmp_path):
    return Settings(database_url=str(tmp_path / "users.sqlite3"), log_level="WARNING")


@pytest.fixture
def database(settings):
    db = Database.from_settings(settings)
    db.init_db()
    return db


@pytest.fixture
def service(database):
    return UserService(database)


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def block_user_deletes(database):
    """Install a trigger that makes every delete from ``users`` fail."""
    conn = database.get_connection()
    try:
        conn.execute(
            "CREATE TRIGGER block_user_delete BEFORE DELETE ON users "
            "BEGIN SELECT RAISE(ABORT, 'user deletes are blocked'); END;"
        )
    finally:
        conn.close()
