import uuid
from datetime import datetime

import pytest

from user_registry_api.app.core.exceptions import NotFoundError, StoreError
from user_registry_api.app.schemas.user import UserCreate, UserUpdate
from user_registry_api.app.services import user_service as user_service_module

from tests.conftest import ALICE, block_user_deletes


def count_rows(database, table):
    with database.cursor() as cursor:
        return cursor.execute(f"SELECT COUNT(*) AS n FROM {table}").fetchone()["n"]


def test_create_assigns_uuid_and_timestamp(service):
    user = service.create_user(UserCreate(**ALICE))

    assert uuid.UUID(user.uuid).version == 4
    assert datetime.fromisoformat(user.create_at).tzinfo is not None
    assert (user.username, user.age, user.email, user.phone) == ("alice", 30, "a@x.com", "555")


def test_create_writes_user_and_mapping(service, database):
    user = service.create_user(UserCreate(**ALICE))

    assert count_rows(database, "users") == 1
    with database.cursor() as cursor:
        row = cursor.execute(
            "SELECT u.username FROM users u JOIN uuid_map m ON m.user_id = u.id WHERE m.uuid = ?",
            (user.uuid,),
        ).fetchone()
    assert row["username"] == "alice"


def test_created_identifiers_are_unique(service):
    uids = {service.create_user(UserCreate(**ALICE)).uuid for _ in range(20)}
    assert len(uids) == 20


def test_get_returns_stored_fields(service):
    created = service.create_user(UserCreate(**ALICE))

    fetched = service.get_user(created.uuid)

    assert fetched == created


def test_get_unknown_raises_not_found(service):
    with pytest.raises(NotFoundError) as excinfo:
        service.get_user("no-such-id")
    assert "no-such-id" in str(excinfo.value)


def test_list_returns_all_in_creation_order(service):
    created = [
        service.create_user(UserCreate(**dict(ALICE, username=f"user{i}")))
        for i in range(3)
    ]

    listed = service.list_users()

    assert [u.uuid for u in listed] == [u.uuid for u in created]


def test_list_empty(service):
    assert service.list_users() == []


def test_update_replaces_fields_and_keeps_identity(service):
    created = service.create_user(UserCreate(**ALICE))

    updated = service.update_user(
        UserUpdate(uuid=created.uuid, username="alice2", age=31, email="b@y.org", phone="+1 555-0100")
    )

    assert updated.uuid == created.uuid
    assert updated.create_at == created.create_at
    assert (updated.username, updated.age, updated.email, updated.phone) == (
        "alice2", 31, "b@y.org", "+1 555-0100",
    )
    assert service.get_user(created.uuid) == updated


def test_update_only_touches_target(service):
    first = service.create_user(UserCreate(**ALICE))
    second = service.create_user(UserCreate(**dict(ALICE, username="bob")))

    service.update_user(UserUpdate(uuid=first.uuid, **dict(ALICE, username="carol")))

    assert service.get_user(second.uuid).username == "bob"


def test_update_unknown_raises_not_found(service, database):
    with pytest.raises(NotFoundError):
        service.update_user(UserUpdate(uuid="missing", **ALICE))
    assert count_rows(database, "users") == 0


def test_delete_removes_user_and_mapping(service, database):
    created = service.create_user(UserCreate(**ALICE))

    assert service.delete_user(created.uuid) is True

    with pytest.raises(NotFoundError):
        service.get_user(created.uuid)
    assert count_rows(database, "users") == 0
    assert count_rows(database, "uuid_map") == 0


def test_delete_unknown_is_not_an_error(service):
    kept = service.create_user(UserCreate(**ALICE))

    assert service.delete_user("missing") is False
    assert service.get_user(kept.uuid) == kept


def test_create_rolls_back_user_when_mapping_insert_fails(service, database, monkeypatch):
    existing = service.create_user(UserCreate(**ALICE))
    # Force the next identifier to collide with the existing mapping.
    monkeypatch.setattr(user_service_module.uuid, "uuid4", lambda: uuid.UUID(existing.uuid))

    with pytest.raises(StoreError):
        service.create_user(UserCreate(**dict(ALICE, username="bob")))

    assert count_rows(database, "users") == 1
    assert count_rows(database, "uuid_map") == 1
    assert [u.username for u in service.list_users()] == ["alice"]


def test_delete_rolls_back_mapping_when_user_delete_fails(service, database):
    created = service.create_user(UserCreate(**ALICE))
    block_user_deletes(database)

    with pytest.raises(StoreError) as excinfo:
        service.delete_user(created.uuid)

    assert "blocked" in str(excinfo.value)
    assert count_rows(database, "uuid_map") == 1
    assert service.get_user(created.uuid) == created
