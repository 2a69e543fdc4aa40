"""SQLite-backed prediction store."""

import asyncio
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from tipster.core.models import PredictionRecord
from tipster.storage.base import FallbackCount, PredictionStore, StorageError


class SQLitePredictionStore(PredictionStore):
    """Prediction rows in a local SQLite file, one per (match_id, model_id)."""

    def __init__(self, db_path: str = "data/tipster.db"):
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
                CREATE TABLE IF NOT EXISTS predictions (
                    match_id TEXT NOT NULL,
                    model_id TEXT NOT NULL,
                    home_score INTEGER NOT NULL CHECK (home_score BETWEEN 0 AND 20),
                    away_score INTEGER NOT NULL CHECK (away_score BETWEEN 0 AND 20),
                    tendency TEXT NOT NULL CHECK (tendency IN ('H', 'D', 'A')),
                    used_fallback INTEGER NOT NULL DEFAULT 0,
                    served_by TEXT,
                    created_at TEXT NOT NULL,
                    PRIMARY KEY (match_id, model_id)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_predictions_model_created
                ON predictions(model_id, created_at)
            """)
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_record(row: Any) -> PredictionRecord:
        return PredictionRecord(
            match_id=row["match_id"],
            model_id=row["model_id"],
            home_score=row["home_score"],
            away_score=row["away_score"],
            tendency=row["tendency"],
            used_fallback=bool(row["used_fallback"]),
            served_by=row["served_by"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    async def save(self, record: PredictionRecord) -> None:
        await asyncio.to_thread(self._save_sync, record)

    def _save_sync(self, record: PredictionRecord):
        created_at = record.created_at or datetime.now(timezone.utc)
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO predictions (
                    match_id, model_id, home_score, away_score, tendency,
                    used_fallback, served_by, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(match_id, model_id) DO UPDATE SET
                    home_score = excluded.home_score,
                    away_score = excluded.away_score,
                    tendency = excluded.tendency,
                    used_fallback = excluded.used_fallback,
                    served_by = excluded.served_by,
                    created_at = excluded.created_at
                """,
                (
                    record.match_id,
                    record.model_id,
                    record.home_score,
                    record.away_score,
                    record.tendency,
                    1 if record.used_fallback else 0,
                    record.served_by,
                    created_at.isoformat(timespec="microseconds"),
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to save prediction {record.match_id}/{record.model_id}: {e}") from e
        finally:
            conn.close()

    async def get(self, match_id: str, model_id: str) -> Optional[PredictionRecord]:
        return await asyncio.to_thread(self._get_sync, match_id, model_id)

    def _get_sync(self, match_id: str, model_id: str) -> Optional[PredictionRecord]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT * FROM predictions WHERE match_id = ? AND model_id = ?",
                (match_id, model_id),
            ).fetchone()
        finally:
            conn.close()
        return self._row_to_record(row) if row else None

    async def list_for_match(self, match_id: str) -> List[PredictionRecord]:
        return await asyncio.to_thread(self._list_for_match_sync, match_id)

    def _list_for_match_sync(self, match_id: str) -> List[PredictionRecord]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT * FROM predictions WHERE match_id = ? ORDER BY model_id", (match_id,)
            ).fetchall()
        finally:
            conn.close()
        return [self._row_to_record(row) for row in rows]

    async def fallback_counts(self, since: Optional[datetime] = None) -> List[FallbackCount]:
        return await asyncio.to_thread(self._fallback_counts_sync, since)

    def _fallback_counts_sync(self, since: Optional[datetime]) -> List[FallbackCount]:
        sql = """
            SELECT model_id,
                   COUNT(*) AS total,
                   SUM(CASE WHEN used_fallback = 1 THEN 1 ELSE 0 END) AS fallback
            FROM predictions
        """
        params: tuple = ()
        if since is not None:
            sql += " WHERE created_at >= ?"
            params = (since.isoformat(timespec="microseconds"),)
        sql += " GROUP BY model_id ORDER BY model_id"

        conn = self._connect()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [
            FallbackCount(model_id=row["model_id"], total=row["total"], fallback=row["fallback"] or 0)
            for row in rows
        ]
