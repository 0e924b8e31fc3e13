"""
Business logic for users.

Every user row in ``users`` is paired with exactly one row in
``uuid_map`` which binds the public UUID to the internal integer key.
``UserService`` keeps that pairing intact: both rows are written in one
transaction on create, both are removed in one transaction on delete,
and lookups always go through the mapping.  The internal key is used
inside this module only.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from ..core.db import Database
from ..core.exceptions import NotFoundError
from ..schemas.user import UserCreate, UserRead, UserUpdate

logger = logging.getLogger(__name__)

SELECT_USER = (
    "SELECT u.id, m.uuid, u.username, u.age, u.email, u.phone, u.created_at "
    "FROM users u JOIN uuid_map m ON m.user_id = u.id"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class UserService:
    """Create, read, update and delete users addressed by UUID."""

    def __init__(self, database: Database) -> None:
        self.database = database

    @staticmethod
    def _row_to_user_read(row: sqlite3.Row) -> UserRead:
        return UserRead(
            uuid=row["uuid"],
            username=row["username"],
            age=row["age"],
            email=row["email"],
            phone=row["phone"],
            create_at=row["created_at"],
        )

    @staticmethod
    def _resolve_key(cursor: sqlite3.Cursor, uid: str) -> Optional[int]:
        """Translate an external identifier into the internal key."""
        row = cursor.execute("SELECT user_id FROM uuid_map WHERE uuid = ?", (uid,)).fetchone()
        return row["user_id"] if row else None

    def create_user(self, data: UserCreate) -> UserRead:
        """Insert a user and its identifier mapping.

        A fresh UUID4 and the creation timestamp are assigned here.  The
        user row and the mapping row are inserted in a single
        transaction; if either insert fails neither is kept.
        """
        uid = str(uuid.uuid4())
        created_at = _now()
        with self.database.transaction() as cursor:
            cursor.execute(
                "INSERT INTO users (username, age, email, phone, created_at) VALUES (?, ?, ?, ?, ?)",
                (data.username, data.age, data.email, data.phone, created_at),
            )
            user_id = cursor.lastrowid
            cursor.execute(
                "INSERT INTO uuid_map (uuid, user_id) VALUES (?, ?)",
                (uid, user_id),
            )
        logger.info("Created user %s", uid)
        return UserRead(
            uuid=uid,
            username=data.username,
            age=data.age,
            email=data.email,
            phone=data.phone,
            create_at=created_at,
        )

    def get_user(self, uid: str) -> UserRead:
        """Return the user mapped to ``uid``.

        Raises ``NotFoundError`` when no mapping exists.
        """
        with self.database.cursor() as cursor:
            row = cursor.execute(f"{SELECT_USER} WHERE m.uuid = ?", (uid,)).fetchone()
        if row is None:
            logger.debug("Lookup missed for %s", uid)
            raise NotFoundError(uid)
        return self._row_to_user_read(row)

    def list_users(self) -> List[UserRead]:
        """Return every user ordered by creation."""
        with self.database.cursor() as cursor:
            rows = cursor.execute(f"{SELECT_USER} ORDER BY u.id").fetchall()
        return [self._row_to_user_read(row) for row in rows]

    def update_user(self, data: UserUpdate) -> UserRead:
        """Overwrite username, age, email and phone of an existing user.

        The identifier and creation timestamp are preserved.  Resolution
        and update share one transaction, so a concurrent delete cannot
        slip in between them.
        """
        with self.database.transaction() as cursor:
            user_id = self._resolve_key(cursor, data.uuid)
            if user_id is None:
                logger.debug("Update missed for %s", data.uuid)
                raise NotFoundError(data.uuid)
            cursor.execute(
                "UPDATE users SET username = ?, age = ?, email = ?, phone = ? WHERE id = ?",
                (data.username, data.age, data.email, data.phone, user_id),
            )
            cursor.execute(
                "UPDATE uuid_map SET updated_at = CURRENT_TIMESTAMP WHERE user_id = ?",
                (user_id,),
            )
            row = cursor.execute(f"{SELECT_USER} WHERE u.id = ?", (user_id,)).fetchone()
        logger.info("Updated user %s", data.uuid)
        return self._row_to_user_read(row)

    def delete_user(self, uid: str) -> bool:
        """Delete the user mapped to ``uid`` together with its mapping.

        Returns ``False`` when the identifier is unknown; that is not an
        error.  The mapping row goes first because it references the
        user row; both deletes commit or roll back together.
        """
        with self.database.transaction() as cursor:
            user_id = self._resolve_key(cursor, uid)
            if user_id is None:
                logger.debug("Delete missed for %s", uid)
                return False
            cursor.execute("DELETE FROM uuid_map WHERE uuid = ?", (uid,))
            cursor.execute("DELETE FROM users WHERE id = ?", (user_id,))
        logger.info("Deleted user %s", uid)
        return True
