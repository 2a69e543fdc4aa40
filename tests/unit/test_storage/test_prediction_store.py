"""Tests for the SQLite prediction store."""

from datetime import datetime, timedelta, timezone

import pytest

from tipster.core.models import PredictionRecord
from tipster.core.validation import ParsedPrediction
from tipster.storage.base import StorageError

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


def record(match_id="m1", model_id="a", home=1, away=0, used_fallback=False, created_at=NOW, **kwargs):
    tendency = "H" if home > away else "A" if away > home else "D"
    return PredictionRecord(
        match_id=match_id,
        model_id=model_id,
        home_score=home,
        away_score=away,
        tendency=tendency,
        used_fallback=used_fallback,
        created_at=created_at,
        **kwargs,
    )


@pytest.mark.unit
@pytest.mark.asyncio
class TestSQLitePredictionStore:
    async def test_save_and_get(self, prediction_store):
        await prediction_store.save(record(used_fallback=True, served_by="b"))

        stored = await prediction_store.get("m1", "a")

        assert stored.home_score == 1
        assert stored.tendency == "H"
        assert stored.used_fallback is True
        assert stored.served_by == "b"
        assert stored.created_at == NOW

    async def test_upsert_replaces_prediction(self, prediction_store):
        await prediction_store.save(record(home=1, away=0))
        await prediction_store.save(record(home=0, away=2))

        rows = await prediction_store.list_for_match("m1")

        assert len(rows) == 1
        assert rows[0].tendency == "A"

    async def test_from_prediction(self, prediction_store):
        prediction = ParsedPrediction(match_id="m9", home_score=2, away_score=2)

        await prediction_store.save(PredictionRecord.from_prediction(prediction, "a", used_fallback=False))

        stored = await prediction_store.get("m9", "a")
        assert stored.tendency == "D"
        assert stored.served_by is None
        assert stored.created_at is not None

    async def test_out_of_range_score_rejected(self, prediction_store):
        with pytest.raises(StorageError):
            await prediction_store.save(record(home=21, away=0))

    async def test_list_for_match(self, prediction_store):
        await prediction_store.save(record(model_id="b"))
        await prediction_store.save(record(model_id="a"))
        await prediction_store.save(record(match_id="m2", model_id="a"))

        rows = await prediction_store.list_for_match("m1")

        assert [r.model_id for r in rows] == ["a", "b"]

    async def test_fallback_counts(self, prediction_store):
        await prediction_store.save(record(match_id="m1", model_id="a", used_fallback=True))
        await prediction_store.save(record(match_id="m2", model_id="a"))
        await prediction_store.save(record(match_id="m3", model_id="a", used_fallback=True))
        await prediction_store.save(record(match_id="m1", model_id="b"))

        counts = {c.model_id: c for c in await prediction_store.fallback_counts()}

        assert counts["a"].total == 3
        assert counts["a"].fallback == 2
        assert counts["b"].fallback == 0

    async def test_fallback_counts_since(self, prediction_store):
        old = NOW - timedelta(days=30)
        await prediction_store.save(record(match_id="m1", used_fallback=True, created_at=old))
        await prediction_store.save(record(match_id="m2", used_fallback=True))

        counts = await prediction_store.fallback_counts(since=NOW - timedelta(days=7))

        assert len(counts) == 1
        assert counts[0].total == 1
        assert counts[0].fallback == 1

    async def test_fallback_counts_empty(self, prediction_store):
        assert await prediction_store.fallback_counts() == []
