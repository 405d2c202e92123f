"""Token registry backed by SQLite."""

import json
from collections.abc import Iterable
from datetime import datetime, timezone
from types import TracebackType
from typing import Any

import aiosqlite

from order_tracking.adapters.base import TokenRegistry
from order_tracking.errors import RegistryError
from order_tracking.shared import NotificationToken, parse_timestamp

_SCHEMA = """
CREATE TABLE IF NOT EXISTS notification_tokens (
    token TEXT PRIMARY KEY,
    user_id TEXT,
    device_info TEXT NOT NULL DEFAULT '{}',
    updated_at TEXT NOT NULL
)
"""

_UPSERT = """
INSERT INTO notification_tokens (token, user_id, device_info, updated_at)
VALUES (?, ?, ?, ?)
ON CONFLICT(token) DO UPDATE SET
    user_id = excluded.user_id,
    device_info = excluded.device_info,
    updated_at = excluded.updated_at
"""

_SELECT = "SELECT token, user_id, device_info, updated_at FROM notification_tokens"

# Stay under SQLite's bound-parameter limit.
_DELETE_CHUNK = 500


def _row_to_token(row: aiosqlite.Row) -> NotificationToken:
    try:
        device_info = json.loads(row["device_info"] or "{}")
    except ValueError:
        device_info = {}
    return NotificationToken(
        token=row["token"],
        user_id=row["user_id"],
        device_info=device_info,
        updated_at=parse_timestamp(row["updated_at"]),
    )


class SqliteTokenRegistry(TokenRegistry):
    """Notification tokens in a single SQLite table.

    Use :meth:`open` to connect and create the table, and close the registry
    (or use it as an async context manager) when done.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn
        self._conn.row_factory = aiosqlite.Row

    @classmethod
    async def open(cls, db_path: str = "notification_tokens.db") -> "SqliteTokenRegistry":
        try:
            conn = await aiosqlite.connect(db_path)
            await conn.execute(_SCHEMA)
            await conn.commit()
        except aiosqlite.Error as err:
            raise RegistryError(f"cannot open token registry {db_path!r}: {err}") from err
        return cls(conn)

    async def close(self) -> None:
        await self._conn.close()

    async def __aenter__(self) -> "SqliteTokenRegistry":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def upsert(
        self,
        token: str,
        user_id: str | None,
        device_info: dict[str, Any] | None = None,
        updated_at: datetime | None = None,
    ) -> None:
        stamp = (updated_at or datetime.now(timezone.utc)).isoformat()
        try:
            await self._conn.execute(
                _UPSERT, (token, user_id, json.dumps(device_info or {}), stamp)
            )
            await self._conn.commit()
        except aiosqlite.Error as err:
            raise RegistryError(f"failed to store token: {err}") from err

    async def list_all(self) -> list[NotificationToken]:
        return await self._select(_SELECT + " ORDER BY updated_at", ())

    async def list_by_user(self, user_id: str) -> list[NotificationToken]:
        return await self._select(
            _SELECT + " WHERE user_id = ? ORDER BY updated_at", (user_id,)
        )

    async def delete_by_tokens(self, tokens: Iterable[str]) -> int:
        values = sorted(set(tokens))
        removed = 0
        try:
            for start in range(0, len(values), _DELETE_CHUNK):
                chunk = values[start : start + _DELETE_CHUNK]
                placeholders = ", ".join("?" for _ in chunk)
                cursor = await self._conn.execute(
                    f"DELETE FROM notification_tokens WHERE token IN ({placeholders})",
                    chunk,
                )
                removed += cursor.rowcount
            await self._conn.commit()
        except aiosqlite.Error as err:
            raise RegistryError(f"failed to delete tokens: {err}") from err
        return removed

    async def _select(
        self, query: str, params: tuple[Any, ...]
    ) -> list[NotificationToken]:
        try:
            async with self._conn.execute(query, params) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as err:
            raise RegistryError(f"failed to list tokens: {err}") from err
        return [_row_to_token(row) for row in rows]
