"""Database manager with dual SQLite / PostgreSQL (Neon) backend.

Stores the per-user key-value memory of the skill as JSON text in a
single user_memory table, keyed by (user_id, key).

When DATABASE_URL is provided, uses PostgreSQL via psycopg2.
Otherwise, falls back to SQLite for local development.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional
import sqlite3


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# PostgreSQL connection wrapper
# ---------------------------------------------------------------------------

class _PgConnectionWrapper:
    """Wraps a psycopg2 connection to match sqlite3's conn.execute() API.

    Also translates ``?`` placeholders (sqlite3) to ``%s`` (psycopg2).
    """

    def __init__(self, pg_conn) -> None:
        self._conn = pg_conn

    def execute(self, sql: str, params=None):
        translated = sql.replace("%", "%%").replace("?", "%s")
        cursor = self._conn.cursor()
        cursor.execute(translated, params or ())
        return cursor


# ---------------------------------------------------------------------------
# Database manager
# ---------------------------------------------------------------------------

class DatabaseManager:
    def __init__(self, db_path: Optional[Path] = None,
                 database_url: Optional[str] = None) -> None:
        self.database_url = database_url
        self.db_path = db_path

        if self.database_url:
            self._backend = "postgres"
        else:
            self._backend = "sqlite"
            if self.db_path is None:
                raise ValueError("db_path is required without DATABASE_URL")
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._ensure_schema()

    # ── Connection ────────────────────────────────────────────

    @contextmanager
    def _connect(self):
        """Yield a connection-like object for the active backend.

        Both backends commit on clean exit and rollback on exception.
        """
        if self._backend == "postgres":
            import psycopg2
            from psycopg2.extras import RealDictCursor

            conn = psycopg2.connect(self.database_url,
                                    cursor_factory=RealDictCursor)
            try:
                yield _PgConnectionWrapper(conn)
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()
        else:
            conn = sqlite3.connect(str(self.db_path))
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()

    # ── Schema ────────────────────────────────────────────────

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS user_memory (
                    user_id TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    updated_at TEXT,
                    PRIMARY KEY (user_id, key)
                )
            """)

    # ── Key-value operations ──────────────────────────────────

    def get_value(self, user_id: str, key: str) -> Optional[Any]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM user_memory WHERE user_id=? AND key=?",
                (user_id, key),
            ).fetchone()
        if row is None:
            return None
        return json.loads(row["value"])

    def set_value(self, user_id: str, key: str, value: Any) -> None:
        with self._connect() as conn:
            conn.execute("""
                INSERT INTO user_memory (user_id, key, value, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id, key) DO UPDATE SET
                    value=excluded.value,
                    updated_at=excluded.updated_at
            """, (user_id, key, json.dumps(value), _now()))

    def get_user_ids(self) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT DISTINCT user_id FROM user_memory ORDER BY user_id",
            ).fetchall()
        return [r["user_id"] for r in rows]
