from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)


class Cache:
    """SQLite-backed key/value cache with per-entry expiry.

    Values are stored as JSON, so anything cached must be JSON-serializable
    (records go in through to_dict()). Entries older than their TTL are pruned
    when the cache is opened and are treated as absent when read.
    """

    def __init__(self, db_path: Path | None = None, default_ttl: int | None = None):
        import config
        if db_path is None:
            db_path = config.CACHE_DB

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.default_ttl = default_ttl if default_ttl and default_ttl > 0 else config.CACHE_TTL
        self._local = threading.local()

        self._init_db()
        pruned = self.prune()
        if pruned:
            log.info("Pruned %d expired cache entries from %s", pruned, self.db_path)

    def _get_conn(self) -> sqlite3.Connection:
        """Get a thread-local database connection (created once per thread, reused)."""
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            self._local.conn = conn
        return conn

    def close(self) -> None:
        """Close the current thread's database connection."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None

    def _init_db(self) -> None:
        conn = self._get_conn()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS cache (
                key TEXT PRIMARY KEY,
                value_json TEXT NOT NULL,
                created_at REAL NOT NULL,
                expires_at REAL NOT NULL
            )
        """)
        conn.commit()

    def _ttl(self, ttl: int | None) -> int:
        return ttl if ttl and ttl > 0 else self.default_ttl

    def add(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Add or replace an entry. ttl <= 0 or None uses the default TTL."""
        try:
            value_json = json.dumps(value)
        except (TypeError, ValueError) as e:
            log.warning("Cannot cache %r: value is not JSON-serializable (%s)", key, e)
            return False
        now = time.time()
        conn = self._get_conn()
        conn.execute("""
            INSERT INTO cache (key, value_json, created_at, expires_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value_json = excluded.value_json,
                created_at = excluded.created_at,
                expires_at = excluded.expires_at
        """, (key, value_json, now, now + self._ttl(ttl)))
        conn.commit()
        return True

    def has(self, key: str) -> bool:
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT 1 FROM cache WHERE key = ? AND expires_at > ?", (key, time.time())
        )
        return cursor.fetchone() is not None

    def get(self, key: str) -> Any:
        """Return the cached value, or None when missing or expired."""
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT value_json FROM cache WHERE key = ? AND expires_at > ?", (key, time.time())
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return json.loads(row["value_json"])

    def delete(self, key: str) -> bool:
        """Delete an entry. Returns True if something was removed."""
        conn = self._get_conn()
        cursor = conn.execute("DELETE FROM cache WHERE key = ?", (key,))
        conn.commit()
        return cursor.rowcount > 0

    def prune(self) -> int:
        """Delete expired entries. Returns how many were removed."""
        conn = self._get_conn()
        cursor = conn.execute("DELETE FROM cache WHERE expires_at <= ?", (time.time(),))
        conn.commit()
        return cursor.rowcount

    def clear(self) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM cache")
        conn.commit()
