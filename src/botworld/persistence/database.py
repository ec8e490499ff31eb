"""Player store — aiosqlite-backed document store for accounts.

Every account (human or bot) is one row in ``players``: the username as
primary key, two indexed flag columns for the common bot / Beer Base
queries, and the full record as a JSON document.

Partial updates address fields by dotted path (``"resources.metal"``,
``"bot_config.attack_cooldown"``).  ``set`` and ``inc`` of one call are
applied in a single transaction.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import aiosqlite

from botworld.models.account import Account, BotPlayer, HumanPlayer
from botworld.persistence.documents import account_from_document, encode_value, to_document

log = logging.getLogger(__name__)

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS players (
    username TEXT PRIMARY KEY,
    is_bot INTEGER NOT NULL DEFAULT 0,
    is_special_base INTEGER NOT NULL DEFAULT 0,
    doc TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_players_bot ON players (is_bot, is_special_base);
"""


class RecordNotFound(KeyError):
    """No account with the given username."""


def _flags(doc: dict[str, Any]) -> tuple[int, int]:
    is_bot = bool(doc.get("is_bot"))
    special = is_bot and bool((doc.get("bot_config") or {}).get("is_special_base"))
    return int(is_bot), int(special)


def _set_path(doc: dict[str, Any], path: str, value: Any) -> None:
    *parents, leaf = path.split(".")
    node = doc
    for key in parents:
        node = node.setdefault(key, {})
    node[leaf] = value


def _get_path(doc: dict[str, Any], path: str) -> Any:
    node: Any = doc
    for key in path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _where(is_bot: Optional[bool], beer_bases: Optional[bool]) -> tuple[str, list[int]]:
    clauses: list[str] = []
    params: list[int] = []
    if is_bot is not None:
        clauses.append("is_bot = ?")
        params.append(int(is_bot))
    if beer_bases is not None:
        clauses.append("is_special_base = ?")
        params.append(int(beer_bases))
    sql = (" WHERE " + " AND ".join(clauses)) if clauses else ""
    return sql, params


class PlayerStore:
    """Async SQLite store of account documents.

    Args:
        db_path: Path to the SQLite database file (``":memory:"`` for tests).
    """

    def __init__(self, db_path: str = "botworld.db") -> None:
        self._db_path = db_path
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    async def connect(self) -> None:
        """Open the database connection and create tables if needed."""
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row
        await self._conn.executescript(_SCHEMA)
        await self._conn.commit()
        log.info("Player store connected: %s", self._db_path)

    async def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    # -- Reads -----------------------------------------------------------

    async def get(self, username: str) -> Account | None:
        """Look up an account by username."""
        assert self._conn is not None
        async with self._conn.execute(
            "SELECT doc FROM players WHERE username = ?", (username,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return account_from_document(json.loads(row[0]))

    async def _find(self, is_bot: Optional[bool], beer_bases: Optional[bool]) -> list[Account]:
        assert self._conn is not None
        where, params = _where(is_bot, beer_bases)
        async with self._conn.execute(
            f"SELECT doc FROM players{where} ORDER BY username", params,
        ) as cursor:
            rows = await cursor.fetchall()
        return [account_from_document(json.loads(r[0])) for r in rows]

    async def find_bots(self, beer_bases: Optional[bool] = None) -> list[BotPlayer]:
        """All bots; ``beer_bases`` filters to (True) or excludes (False) Beer Bases."""
        return [a for a in await self._find(True, beer_bases) if isinstance(a, BotPlayer)]

    async def find_humans(self) -> list[HumanPlayer]:
        return [a for a in await self._find(False, None) if isinstance(a, HumanPlayer)]

    async def count(self, is_bot: Optional[bool] = None, beer_bases: Optional[bool] = None) -> int:
        assert self._conn is not None
        where, params = _where(is_bot, beer_bases)
        async with self._conn.execute(f"SELECT COUNT(*) FROM players{where}", params) as cursor:
            row = await cursor.fetchone()
        return int(row[0])

    # -- Writes ----------------------------------------------------------

    async def insert(self, account: Account) -> None:
        """Insert a new account.

        Raises:
            sqlite3.IntegrityError: If the username is taken.
        """
        assert self._conn is not None
        doc = to_document(account)
        is_bot, special = _flags(doc)
        async with self._write_lock:
            await self._conn.execute(
                "INSERT INTO players (username, is_bot, is_special_base, doc) VALUES (?, ?, ?, ?)",
                (account.username, is_bot, special, json.dumps(doc)),
            )
            await self._conn.commit()

    async def save(self, account: Account) -> None:
        """Insert or fully replace an account."""
        assert self._conn is not None
        doc = to_document(account)
        is_bot, special = _flags(doc)
        async with self._write_lock:
            await self._conn.execute(
                "INSERT INTO players (username, is_bot, is_special_base, doc) VALUES (?, ?, ?, ?) "
                "ON CONFLICT(username) DO UPDATE SET is_bot = excluded.is_bot, "
                "is_special_base = excluded.is_special_base, doc = excluded.doc, "
                "updated_at = CURRENT_TIMESTAMP",
                (account.username, is_bot, special, json.dumps(doc)),
            )
            await self._conn.commit()

    async def update(
        self,
        username: str,
        set_fields: Optional[dict[str, Any]] = None,
        inc_fields: Optional[dict[str, float]] = None,
    ) -> Account:
        """Apply dotted-path ``set`` and ``inc`` operations to one account.

        Returns:
            The updated account.

        Raises:
            RecordNotFound: If the username does not exist.
        """
        assert self._conn is not None
        async with self._write_lock:
            async with self._conn.execute(
                "SELECT doc FROM players WHERE username = ?", (username,),
            ) as cursor:
                row = await cursor.fetchone()
            if row is None:
                raise RecordNotFound(username)
            doc = json.loads(row[0])
            for path, value in (set_fields or {}).items():
                _set_path(doc, path, encode_value(value))
            for path, delta in (inc_fields or {}).items():
                _set_path(doc, path, (_get_path(doc, path) or 0) + delta)
            is_bot, special = _flags(doc)
            await self._conn.execute(
                "UPDATE players SET doc = ?, is_bot = ?, is_special_base = ?, "
                "updated_at = CURRENT_TIMESTAMP WHERE username = ?",
                (json.dumps(doc), is_bot, special, username),
            )
            await self._conn.commit()
        return account_from_document(doc)

    async def delete(self, username: str) -> bool:
        """Delete an account by username. Returns True if deleted."""
        assert self._conn is not None
        async with self._write_lock:
            async with self._conn.execute(
                "DELETE FROM players WHERE username = ?", (username,),
            ) as cursor:
                deleted = cursor.rowcount > 0
            await self._conn.commit()
        if deleted:
            log.debug("Deleted account %s", username)
        return deleted

    async def delete_many(self, is_bot: Optional[bool] = None, beer_bases: Optional[bool] = None) -> int:
        """Delete every account matching the flags. Returns the count."""
        assert self._conn is not None
        where, params = _where(is_bot, beer_bases)
        async with self._write_lock:
            async with self._conn.execute(f"DELETE FROM players{where}", params) as cursor:
                deleted = cursor.rowcount
            await self._conn.commit()
        log.info("Deleted %d accounts (is_bot=%s, beer_bases=%s)", deleted, is_bot, beer_bases)
        return deleted
