"""SQLite-backed model health store."""

import asyncio
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from tipster.core.models import ModelHealthRecord
from tipster.storage.base import FailureIncrement, HealthStore, StorageError

logger = logging.getLogger(__name__)

_COLUMNS = "model_id, consecutive_failures, auto_disabled, last_failure_at, last_success_at, failure_reason"


def _ts(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SQLiteHealthStore(HealthStore):
    """Health records in a local SQLite file.

    A connection is opened per operation and work runs in a thread so the
    event loop never blocks. Counter changes are UPDATE statements evaluated
    by SQLite, never read-modify-write in Python.
    """

    def __init__(self, db_path: str = "data/tipster.db"):
        """
        Initialize SQLite health store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema."""
        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS model_health (
                    model_id TEXT PRIMARY KEY,
                    consecutive_failures INTEGER NOT NULL DEFAULT 0,
                    auto_disabled INTEGER NOT NULL DEFAULT 0,
                    last_failure_at TEXT,
                    last_success_at TEXT,
                    failure_reason TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_model_health_disabled
                ON model_health(auto_disabled, last_failure_at)
            """)
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_record(row: Any) -> ModelHealthRecord:
        return ModelHealthRecord(
            model_id=row["model_id"],
            consecutive_failures=row["consecutive_failures"],
            auto_disabled=bool(row["auto_disabled"]),
            last_failure_at=_parse_ts(row["last_failure_at"]),
            last_success_at=_parse_ts(row["last_success_at"]),
            failure_reason=row["failure_reason"],
        )

    def _insert_if_missing(self, conn: sqlite3.Connection, model_id: str, now: datetime):
        conn.execute(
            "INSERT OR IGNORE INTO model_health (model_id, created_at, updated_at) VALUES (?, ?, ?)",
            (model_id, _ts(now), _ts(now)),
        )

    def _update_returning(self, sql: str, params: tuple, model_id: str, now: datetime) -> ModelHealthRecord:
        conn = self._connect()
        try:
            self._insert_if_missing(conn, model_id, now)
            rows = conn.execute(sql, params).fetchall()
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Health update failed for {model_id}: {e}") from e
        finally:
            conn.close()
        if not rows:
            raise StorageError(f"Health record missing for {model_id}")
        return self._row_to_record(rows[0])

    # Reads

    async def ensure(self, model_id: str, now: datetime) -> None:
        await asyncio.to_thread(self._ensure_sync, model_id, now)

    def _ensure_sync(self, model_id: str, now: datetime):
        conn = self._connect()
        try:
            self._insert_if_missing(conn, model_id, now)
            conn.commit()
        finally:
            conn.close()

    async def get(self, model_id: str) -> Optional[ModelHealthRecord]:
        return await asyncio.to_thread(self._get_sync, model_id)

    def _get_sync(self, model_id: str) -> Optional[ModelHealthRecord]:
        conn = self._connect()
        try:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM model_health WHERE model_id = ?", (model_id,)
            ).fetchone()
        finally:
            conn.close()
        return self._row_to_record(row) if row else None

    async def list_all(self) -> List[ModelHealthRecord]:
        return await asyncio.to_thread(self._list_all_sync)

    def _list_all_sync(self) -> List[ModelHealthRecord]:
        conn = self._connect()
        try:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM model_health ORDER BY model_id").fetchall()
        finally:
            conn.close()
        return [self._row_to_record(row) for row in rows]

    # Atomic mutations

    async def record_success(self, model_id: str, now: datetime) -> ModelHealthRecord:
        sql = f"""
            UPDATE model_health
            SET consecutive_failures = 0,
                auto_disabled = 0,
                failure_reason = NULL,
                last_success_at = ?,
                updated_at = ?
            WHERE model_id = ?
            RETURNING {_COLUMNS}
        """
        return await asyncio.to_thread(
            self._update_returning, sql, (_ts(now), _ts(now), model_id), model_id, now
        )

    async def increment_failure(
        self, model_id: str, reason: str, now: datetime, threshold: int
    ) -> FailureIncrement:
        return await asyncio.to_thread(self._increment_failure_sync, model_id, reason, now, threshold)

    def _increment_failure_sync(
        self, model_id: str, reason: str, now: datetime, threshold: int
    ) -> FailureIncrement:
        conn = self._connect()
        try:
            # Take the write lock before reading the prior state
            conn.execute("BEGIN IMMEDIATE")
            self._insert_if_missing(conn, model_id, now)
            before = conn.execute(
                f"SELECT {_COLUMNS} FROM model_health WHERE model_id = ?", (model_id,)
            ).fetchone()
            rows = conn.execute(
                f"""
                UPDATE model_health
                SET consecutive_failures = consecutive_failures + 1,
                    auto_disabled = CASE
                        WHEN consecutive_failures + 1 >= ? THEN 1
                        ELSE auto_disabled
                    END,
                    last_failure_at = ?,
                    failure_reason = ?,
                    updated_at = ?
                WHERE model_id = ?
                RETURNING {_COLUMNS}
                """,
                (threshold, _ts(now), reason, _ts(now), model_id),
            ).fetchall()
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Health update failed for {model_id}: {e}") from e
        finally:
            conn.close()
        if before is None or not rows:
            raise StorageError(f"Health record missing for {model_id}")
        return FailureIncrement(before=self._row_to_record(before), after=self._row_to_record(rows[0]))

    async def touch_failure(self, model_id: str, reason: str, now: datetime) -> ModelHealthRecord:
        sql = f"""
            UPDATE model_health
            SET last_failure_at = ?,
                failure_reason = ?,
                updated_at = ?
            WHERE model_id = ?
            RETURNING {_COLUMNS}
        """
        return await asyncio.to_thread(
            self._update_returning, sql, (_ts(now), reason, _ts(now), model_id), model_id, now
        )

    async def recover_disabled(self, cutoff: datetime, probation_failures: int, now: datetime) -> List[str]:
        return await asyncio.to_thread(self._recover_disabled_sync, cutoff, probation_failures, now)

    def _recover_disabled_sync(self, cutoff: datetime, probation_failures: int, now: datetime) -> List[str]:
        conn = self._connect()
        try:
            rows = conn.execute(
                """
                UPDATE model_health
                SET auto_disabled = 0,
                    consecutive_failures = ?,
                    updated_at = ?
                WHERE auto_disabled = 1
                  AND (last_failure_at IS NULL OR last_failure_at <= ?)
                RETURNING model_id
                """,
                (probation_failures, _ts(now), _ts(cutoff)),
            ).fetchall()
            conn.commit()
        finally:
            conn.close()
        return sorted(row["model_id"] for row in rows)

    async def re_enable(self, model_id: str, now: datetime) -> bool:
        return await asyncio.to_thread(self._re_enable_sync, model_id, now)

    def _re_enable_sync(self, model_id: str, now: datetime) -> bool:
        conn = self._connect()
        try:
            cursor = conn.execute(
                """
                UPDATE model_health
                SET auto_disabled = 0,
                    consecutive_failures = 0,
                    failure_reason = NULL,
                    updated_at = ?
                WHERE model_id = ?
                """,
                (_ts(now), model_id),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()
