"""SQLite storage for Expensiver groups and users.

Records are stored as JSON blobs keyed by id. Loading returns exactly what
was last saved; every save is committed before it returns.
"""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from .exceptions import StorageError
from .models import Group, User

logger = logging.getLogger(__name__)

CURRENT_USER_KEY = "current_user_id"


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        # Groups table (GROUPS is an SQLite keyword)
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expense_groups (
                id TEXT PRIMARY KEY,
                invite_code TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                payload TEXT NOT NULL,
                last_activity TIMESTAMP NOT NULL
            )
        """
        )

        # Users table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        # Config table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Config operations
    # ========================================================================

    def get_config(self, key: str) -> str | None:
        """Get a config value by key."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT value FROM config WHERE key = ?", (key,))
        row = cursor.fetchone()
        return str(row["value"]) if row else None

    def set_config(self, key: str, value: str):
        """Set a config value."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO config (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, value, datetime.now().isoformat()),
        )
        self.conn.commit()

    def get_current_user_id(self) -> str | None:
        """Get the id of the local user."""
        return self.get_config(CURRENT_USER_KEY)

    def set_current_user_id(self, user_id: str):
        """Set the id of the local user."""
        self.set_config(CURRENT_USER_KEY, user_id)

    # ========================================================================
    # Group operations
    # ========================================================================

    def save_group(self, group: Group):
        """Insert or replace a group record."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO expense_groups (id, invite_code, name, payload, last_activity)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                invite_code = excluded.invite_code,
                name = excluded.name,
                payload = excluded.payload,
                last_activity = excluded.last_activity
            """,
            (
                group.id,
                group.invite_code,
                group.name,
                group.model_dump_json(),
                group.last_activity.isoformat(),
            ),
        )
        self.conn.commit()
        logger.debug(f"Saved group {group.id}")

    def load_group(self, group_id: str) -> Group | None:
        """Get a group by id."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT payload FROM expense_groups WHERE id = ?", (group_id,))
        row = cursor.fetchone()
        return self._parse_group(row["payload"]) if row else None

    def find_group(self, id_or_invite_code: str) -> Group | None:
        """Get a group by id or invite code."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT payload FROM expense_groups WHERE id = ? OR invite_code = ?",
            (id_or_invite_code, id_or_invite_code.upper()),
        )
        row = cursor.fetchone()
        return self._parse_group(row["payload"]) if row else None

    def list_groups(self) -> list[Group]:
        """Get all groups, most recently active first."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT payload FROM expense_groups ORDER BY last_activity DESC")
        return [self._parse_group(row["payload"]) for row in cursor.fetchall()]

    def delete_group(self, group_id: str) -> bool:
        """Delete a group. Returns False if it didn't exist."""
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM expense_groups WHERE id = ?", (group_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    def _parse_group(self, payload: str) -> Group:
        try:
            return Group.model_validate_json(payload)
        except ValidationError as e:
            raise StorageError(f"Stored group record is corrupt: {e}") from e

    # ========================================================================
    # User operations
    # ========================================================================

    def save_user(self, user: User):
        """Insert or replace a user record."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO users (id, payload, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                payload = excluded.payload,
                updated_at = excluded.updated_at
            """,
            (user.id, user.model_dump_json(), datetime.now().isoformat()),
        )
        self.conn.commit()

    def load_user(self, user_id: str) -> User | None:
        """Get a user by id."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT payload FROM users WHERE id = ?", (user_id,))
        row = cursor.fetchone()
        if not row:
            return None
        try:
            return User.model_validate_json(row["payload"])
        except ValidationError as e:
            raise StorageError(f"Stored user record is corrupt: {e}") from e
