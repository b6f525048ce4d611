from __future__ import annotations

import sqlite3
from contextlib import contextmanager

from sql_forwarder.errors import PersistenceError
from sql_forwarder.state.base import ensure_parent_dir
from sql_forwarder.utils.logging import get_logger
from sql_forwarder.utils.time import utc_now_iso


class SQLiteCursorStore:
    """SQLite-backed cursor store; one row per cursor key."""

    def __init__(self, path: str, key: str, default_value: str = ""):
        self.path = path
        self.key = key
        self.default_value = default_value
        self.log = get_logger("sql_forwarder.state.sqlite")
        ensure_parent_dir(path)
        self._ensure_schema()

    def read(self) -> str:
        try:
            with self._session() as conn:
                row = conn.execute(
                    "SELECT value FROM cursor_state WHERE key = ?",
                    (self.key,),
                ).fetchone()
        except sqlite3.Error as e:
            self.log.error(
                "Cursor read failed for %s/%s (%s); falling back to default %r",
                self.path,
                self.key,
                e,
                self.default_value,
            )
            return self.default_value

        if not row:
            return self.default_value
        return str(row["value"] or "")

    def write(self, value: str) -> None:
        now = utc_now_iso()
        try:
            with self._session() as conn:
                conn.execute(
                    """
                    INSERT INTO cursor_state (key, value, updated_at_utc)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at_utc = excluded.updated_at_utc
                    """,
                    (self.key, value, now),
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"Cursor write failed for {self.path}/{self.key}: {e}") from e
        self.log.debug("Cursor written: %s/%s -> %s", self.path, self.key, value)

    def clear(self) -> None:
        try:
            with self._session() as conn:
                conn.execute("DELETE FROM cursor_state WHERE key = ?", (self.key,))
        except sqlite3.Error as e:
            raise PersistenceError(f"Cursor delete failed for {self.path}/{self.key}: {e}") from e
        self.log.info("Deleted cursor %s from %s", self.key, self.path)

    def _ensure_schema(self) -> None:
        with self._session() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cursor_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at_utc TEXT NOT NULL
                )
                """
            )

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _session(self):
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()
