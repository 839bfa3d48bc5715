from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


class ScheduleRepository:
    def __init__(self, database_path: str) -> None:
        self.database_path = database_path
        self._lock = threading.Lock()
        self._ensure_parent_dir()

    def _ensure_parent_dir(self) -> None:
        path = Path(self.database_path)
        path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self.database_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        return connection

    def init_db(self) -> None:
        with self._lock, self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS schedule_cache (
                    id INTEGER PRIMARY KEY DEFAULT 1 CHECK (id = 1),
                    raw_json TEXT NOT NULL,
                    updated_at_utc TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS schedule_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    raw_json TEXT NOT NULL,
                    changed_zones TEXT,
                    status TEXT NOT NULL,
                    notes TEXT,
                    fetched_at_utc TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_schedule_history_fetched
                    ON schedule_history(fetched_at_utc DESC);

                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    chat_id INTEGER NOT NULL UNIQUE,
                    created_at_utc TEXT NOT NULL,
                    last_interaction_at_utc TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS subscriptions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
                    zone TEXT NOT NULL,
                    subscribed_at_utc TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_subscriptions_zone
                    ON subscriptions(zone);
                """
            )
            conn.commit()

    def ping(self) -> bool:
        with self._lock, self._connect() as conn:
            conn.execute("SELECT 1")
        return True

    def get_cached_payload(self) -> dict[str, Any]:
        with self._lock, self._connect() as conn:
            row = conn.execute("SELECT raw_json FROM schedule_cache WHERE id = 1").fetchone()
        if row is None:
            return {}
        return json.loads(str(row["raw_json"]))

    def update_cache(self, payload: dict[str, Any]) -> None:
        with self._lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO schedule_cache(id, raw_json, updated_at_utc)
                VALUES (1, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    raw_json = excluded.raw_json,
                    updated_at_utc = excluded.updated_at_utc
                """,
                (json.dumps(payload, ensure_ascii=False), _now_iso()),
            )
            conn.commit()

    def save_history(
        self,
        *,
        payload: dict[str, Any],
        changed_zones: list[str],
        status: str,
        notes: str | None = None,
        fetched_at: datetime | None = None,
    ) -> int:
        with self._lock, self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO schedule_history(
                    raw_json,
                    changed_zones,
                    status,
                    notes,
                    fetched_at_utc
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    json.dumps(payload, ensure_ascii=False),
                    json.dumps(changed_zones) if changed_zones else None,
                    status,
                    notes,
                    (fetched_at or datetime.now(tz=timezone.utc)).astimezone(timezone.utc).isoformat(),
                ),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def get_history(self, limit: int) -> list[dict[str, Any]]:
        with self._lock, self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, raw_json, changed_zones, status, notes, fetched_at_utc
                FROM schedule_history
                ORDER BY id DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()

        result: list[dict[str, Any]] = []
        for row in rows:
            changed = row["changed_zones"]
            result.append(
                {
                    "id": int(row["id"]),
                    "status": str(row["status"]),
                    "changedZones": json.loads(changed) if changed else [],
                    "notes": row["notes"],
                    "fetchedAt": str(row["fetched_at_utc"]),
                    "payload": json.loads(str(row["raw_json"])),
                }
            )
        return result

    def purge_old_history(self, retention_days: int) -> int:
        cutoff = datetime.now(tz=timezone.utc) - timedelta(days=retention_days)
        with self._lock, self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM schedule_history WHERE fetched_at_utc < ?",
                (cutoff.isoformat(),),
            )
            conn.commit()
            return int(cursor.rowcount)

    def _ensure_user(self, conn: sqlite3.Connection, chat_id: int) -> int:
        now = _now_iso()
        conn.execute(
            """
            INSERT INTO users(chat_id, created_at_utc, last_interaction_at_utc)
            VALUES (?, ?, ?)
            ON CONFLICT(chat_id) DO UPDATE SET last_interaction_at_utc = excluded.last_interaction_at_utc
            """,
            (chat_id, now, now),
        )
        row = conn.execute("SELECT id FROM users WHERE chat_id = ?", (chat_id,)).fetchone()
        return int(row["id"])

    def subscribe(self, chat_id: int, zone: str) -> None:
        with self._lock, self._connect() as conn:
            user_id = self._ensure_user(conn, chat_id)
            conn.execute(
                """
                INSERT INTO subscriptions(user_id, zone, subscribed_at_utc)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    zone = excluded.zone,
                    subscribed_at_utc = excluded.subscribed_at_utc
                """,
                (user_id, zone, _now_iso()),
            )
            conn.commit()

    def unsubscribe(self, chat_id: int) -> bool:
        with self._lock, self._connect() as conn:
            cursor = conn.execute(
                """
                DELETE FROM subscriptions
                WHERE user_id IN (SELECT id FROM users WHERE chat_id = ?)
                """,
                (chat_id,),
            )
            conn.commit()
            return cursor.rowcount > 0

    def get_subscription(self, chat_id: int) -> str | None:
        with self._lock, self._connect() as conn:
            row = conn.execute(
                """
                SELECT s.zone
                FROM subscriptions s
                JOIN users u ON u.id = s.user_id
                WHERE u.chat_id = ?
                """,
                (chat_id,),
            ).fetchone()
        if row is None:
            return None
        return str(row["zone"])

    def group_subscribers_by_zone(self) -> dict[str, list[int]]:
        with self._lock, self._connect() as conn:
            rows = conn.execute(
                """
                SELECT s.zone, u.chat_id
                FROM subscriptions s
                JOIN users u ON u.id = s.user_id
                ORDER BY s.id
                """
            ).fetchall()

        grouped: dict[str, list[int]] = {}
        for row in rows:
            grouped.setdefault(str(row["zone"]), []).append(int(row["chat_id"]))
        return grouped

    def all_subscriber_chat_ids(self) -> list[int]:
        with self._lock, self._connect() as conn:
            rows = conn.execute(
                """
                SELECT DISTINCT u.chat_id
                FROM subscriptions s
                JOIN users u ON u.id = s.user_id
                ORDER BY u.chat_id
                """
            ).fetchall()
        return [int(row["chat_id"]) for row in rows]
