"""Storage of users, messages and daily statistics in SQLite."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date, datetime
from pathlib import Path
from typing import Any

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    telegram_id INTEGER NOT NULL UNIQUE,
    username TEXT NOT NULL DEFAULT '',
    first_name TEXT NOT NULL DEFAULT '',
    last_name TEXT NOT NULL DEFAULT '',
    command_count INTEGER NOT NULL DEFAULT 0,
    message_count INTEGER NOT NULL DEFAULT 0,
    last_interaction TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    message_text TEXT NOT NULL DEFAULT '',
    is_command INTEGER NOT NULL DEFAULT 0,
    message_type TEXT NOT NULL DEFAULT 'text',
    chat_id INTEGER NOT NULL DEFAULT 0,
    chat_type TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS messages_user_id ON messages (user_id);
CREATE INDEX IF NOT EXISTS messages_created_at ON messages (created_at);
CREATE TABLE IF NOT EXISTS statistics (
    date TEXT PRIMARY KEY,
    total_commands INTEGER NOT NULL DEFAULT 0,
    total_messages INTEGER NOT NULL DEFAULT 0,
    active_users INTEGER NOT NULL DEFAULT 0,
    new_users INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL
);
"""

_USER_COLUMNS = (
    "id, telegram_id, username, first_name, last_name, "
    "command_count, message_count, last_interaction, created_at"
)
_MESSAGE_COLUMNS = (
    "id, user_id, message_text, is_command, message_type, chat_id, chat_type, created_at"
)


class DatabaseError(Exception):
    """Raised when a database operation fails."""


def _to_text(moment: datetime) -> str:
    if moment.tzinfo is not None:
        moment = moment.astimezone().replace(tzinfo=None)
    return moment.strftime(_TIMESTAMP_FORMAT)


def _from_text(value: str) -> datetime:
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class UserRecord:
    """A stored user and their activity counters."""

    telegram_id: int
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    command_count: int = 0
    message_count: int = 0
    last_interaction: datetime | None = None
    created_at: datetime | None = None
    id: int = 0

    @classmethod
    def _from_row(cls, row: sqlite3.Row) -> UserRecord:
        return cls(
            id=row["id"],
            telegram_id=row["telegram_id"],
            username=row["username"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            command_count=row["command_count"],
            message_count=row["message_count"],
            last_interaction=_from_text(row["last_interaction"]),
            created_at=_from_text(row["created_at"]),
        )


@dataclass(frozen=True)
class MessageRecord:
    """A stored chat message."""

    user_id: int
    message_text: str = ""
    is_command: bool = False
    message_type: str = "text"
    chat_id: int = 0
    chat_type: str = ""
    created_at: datetime | None = None
    id: int = 0

    @classmethod
    def _from_row(cls, row: sqlite3.Row) -> MessageRecord:
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            message_text=row["message_text"],
            is_command=bool(row["is_command"]),
            message_type=row["message_type"],
            chat_id=row["chat_id"],
            chat_type=row["chat_type"],
            created_at=_from_text(row["created_at"]),
        )


def _check_limit(limit: int, what: str) -> None:
    if limit < 0:
        raise DatabaseError(f"failed to get {what}: limit must not be negative")


class Database:
    """A connection to the bot's database."""

    def __init__(self, path: str | Path) -> None:
        try:
            self._conn = sqlite3.connect(str(path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            with self._conn:
                self._conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise DatabaseError(f"failed to connect to database: {exc}") from exc
        self._lock = threading.RLock()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def _transaction(self, failure: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.Error as exc:
                raise DatabaseError(f"{failure}: {exc}") from exc

    def close(self) -> None:
        """Close the connection."""
        with self._lock:
            self._conn.close()

    def ping(self) -> None:
        """Check that the connection is usable."""
        with self._transaction("database ping failed") as conn:
            conn.execute("SELECT 1").fetchone()

    # Messages

    def save_message(self, message: MessageRecord) -> MessageRecord:
        """Store a message and return it with its id and creation time set."""
        created_at = message.created_at or datetime.now()
        with self._transaction("failed to save message") as conn:
            cursor = conn.execute(
                "INSERT INTO messages (user_id, message_text, is_command, message_type,"
                " chat_id, chat_type, created_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    message.user_id,
                    message.message_text,
                    int(message.is_command),
                    message.message_type,
                    message.chat_id,
                    message.chat_type,
                    _to_text(created_at),
                ),
            )
            new_id = cursor.lastrowid
        return replace(message, id=new_id, created_at=created_at)

    def messages_by_user(self, user_id: int, limit: int) -> list[MessageRecord]:
        """Return a user's most recent messages, newest first."""
        _check_limit(limit, "messages")
        with self._transaction("failed to get messages") as conn:
            rows = conn.execute(
                f"SELECT {_MESSAGE_COLUMNS} FROM messages WHERE user_id = ?"
                " ORDER BY created_at DESC, id DESC LIMIT ?",
                (user_id, limit),
            ).fetchall()
        return [MessageRecord._from_row(row) for row in rows]

    def message_stats(self) -> dict[str, int]:
        """Return overall message counts."""
        with self._transaction("failed to get message stats") as conn:
            row = conn.execute(
                """
                SELECT
                    COUNT(*),
                    COUNT(DISTINCT user_id),
                    COALESCE(SUM(CASE WHEN is_command = 1 THEN 1 ELSE 0 END), 0),
                    COALESCE(SUM(CASE WHEN is_command = 0 THEN 1 ELSE 0 END), 0),
                    COALESCE(SUM(CASE WHEN chat_type = 'private' THEN 1 ELSE 0 END), 0),
                    COALESCE(SUM(CASE WHEN chat_type != 'private' THEN 1 ELSE 0 END), 0)
                FROM messages
                """
            ).fetchone()
        keys = (
            "total_messages",
            "unique_users",
            "command_count",
            "regular_msg_count",
            "private_messages",
            "group_messages",
        )
        return dict(zip(keys, (int(value) for value in row)))

    # Daily statistics

    def update_daily_stats(self) -> None:
        """Recompute and store the statistics of the current day."""
        today = date.today().isoformat()
        with self._transaction("failed to update daily stats") as conn:
            total_messages, total_commands, active_users = conn.execute(
                "SELECT COUNT(*),"
                " COALESCE(SUM(CASE WHEN is_command = 1 THEN 1 ELSE 0 END), 0),"
                " COUNT(DISTINCT user_id)"
                " FROM messages WHERE DATE(created_at) = ?",
                (today,),
            ).fetchone()
            (new_users,) = conn.execute(
                "SELECT COUNT(*) FROM users WHERE DATE(created_at) = ?", (today,)
            ).fetchone()
            conn.execute(
                """
                INSERT INTO statistics
                    (date, total_commands, total_messages, active_users, new_users, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (date) DO UPDATE SET
                    total_commands = excluded.total_commands,
                    total_messages = excluded.total_messages,
                    active_users = excluded.active_users,
                    new_users = excluded.new_users,
                    updated_at = excluded.updated_at
                """,
                (
                    today,
                    total_commands,
                    total_messages,
                    active_users,
                    new_users,
                    _to_text(datetime.now()),
                ),
            )

    def daily_stats(self, days: int) -> list[dict[str, Any]]:
        """Return the stored statistics of the most recent days, newest first."""
        _check_limit(days, "daily stats")
        with self._transaction("failed to get daily stats") as conn:
            rows = conn.execute(
                "SELECT date, total_commands, total_messages, active_users, new_users"
                " FROM statistics ORDER BY date DESC LIMIT ?",
                (days,),
            ).fetchall()
        return [
            {
                "date": row["date"],
                "total_commands": row["total_commands"],
                "total_messages": row["total_messages"],
                "active_users": row["active_users"],
                "new_users": row["new_users"],
            }
            for row in rows
        ]

    # Users

    def create_user(self, user: UserRecord) -> UserRecord:
        """Store a new user and return it with its id and times set."""
        now = datetime.now()
        created_at = user.created_at or now
        last_interaction = user.last_interaction or now
        with self._transaction("failed to create user") as conn:
            cursor = conn.execute(
                "INSERT INTO users (telegram_id, username, first_name, last_name,"
                " created_at, last_interaction) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    user.telegram_id,
                    user.username,
                    user.first_name,
                    user.last_name,
                    _to_text(created_at),
                    _to_text(last_interaction),
                ),
            )
            new_id = cursor.lastrowid
        return replace(
            user, id=new_id, created_at=created_at, last_interaction=last_interaction
        )

    def user_by_telegram_id(self, telegram_id: int) -> UserRecord:
        """Return the user with a Telegram id."""
        with self._transaction("failed to get user") as conn:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE telegram_id = ?",
                (telegram_id,),
            ).fetchone()
        if row is None:
            raise DatabaseError(f"failed to get user: no user with telegram id {telegram_id}")
        return UserRecord._from_row(row)

    def get_or_create_user(
        self, telegram_id: int, username: str, first_name: str, last_name: str
    ) -> UserRecord:
        """Return the user with a Telegram id, creating them if needed."""
        try:
            return self.user_by_telegram_id(telegram_id)
        except DatabaseError:
            pass
        now = datetime.now()
        try:
            return self.create_user(
                UserRecord(
                    telegram_id=telegram_id,
                    username=username,
                    first_name=first_name,
                    last_name=last_name,
                    created_at=now,
                    last_interaction=now,
                )
            )
        except DatabaseError as exc:
            raise DatabaseError(f"failed to create user: {exc}") from exc

    def update_user_activity(self, telegram_id: int, is_command: bool) -> None:
        """Count one more command or message for a user."""
        column = "command_count" if is_command else "message_count"
        with self._transaction("failed to update user activity") as conn:
            conn.execute(
                f"UPDATE users SET {column} = {column} + 1, last_interaction = ?"
                " WHERE telegram_id = ?",
                (_to_text(datetime.now()), telegram_id),
            )

    def top_users(self, limit: int) -> list[UserRecord]:
        """Return the most active users, most active first."""
        _check_limit(limit, "top users")
        with self._transaction("failed to get top users") as conn:
            rows = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users"
                " ORDER BY (command_count + message_count) DESC, id ASC LIMIT ?",
                (limit,),
            ).fetchall()
        return [UserRecord._from_row(row) for row in rows]