"""Tests for model health tracking, auto-disable and recovery."""

import asyncio
import logging

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from tipster.core.classifier import ErrorKind
from tipster.observability.model_health import ModelHealthTracker, truncate_reason


@pytest.mark.unit
class TestTruncateReason:
    def test_short_reason_kept(self):
        assert truncate_reason("bad json") == "bad json"

    def test_long_reason_truncated(self):
        reason = truncate_reason("x" * 2000)
        assert len(reason) == 500
        assert reason.endswith("...")

    def test_missing_reason(self):
        assert truncate_reason(None) == "unknown failure"

    @given(reason=st.text(max_size=2000))
    @settings(max_examples=100, suppress_health_check=[HealthCheck.too_slow])
    def test_never_exceeds_limit(self, reason):
        assert len(truncate_reason(reason)) <= 500


@pytest.mark.unit
@pytest.mark.asyncio
class TestFailureCounting:
    async def test_disabled_at_threshold(self, tracker, caplog):
        for _ in range(4):
            update = await tracker.record_failure("m", "bad json", ErrorKind.PARSE_FAILURE)
            assert not update.auto_disabled
        assert await tracker.is_active("m")

        update = await tracker.record_failure("m", "bad json", ErrorKind.PARSE_FAILURE)

        assert update.counted
        assert update.consecutive_failures == 5
        assert update.auto_disabled
        assert update.newly_disabled
        assert not await tracker.is_active("m")
        assert "Model m auto-disabled after 5 consecutive failures" in caplog.text

    async def test_success_resets_counter(self, tracker):
        for _ in range(4):
            await tracker.record_failure("m", "empty", ErrorKind.EMPTY_RESPONSE)

        record = await tracker.record_success("m")

        assert record.consecutive_failures == 0
        assert record.failure_reason is None
        assert record.last_success_at is not None
        update = await tracker.record_failure("m", "empty", ErrorKind.EMPTY_RESPONSE)
        assert update.consecutive_failures == 1

    @pytest.mark.parametrize("kind", [ErrorKind.TIMEOUT, ErrorKind.RATE_LIMITED])
    async def test_infra_noise_not_counted(self, tracker, kind):
        for _ in range(10):
            update = await tracker.record_failure("m", "slow", kind)

        assert not update.counted
        record = await tracker.get_record("m")
        assert record.consecutive_failures == 0
        assert not record.auto_disabled
        assert record.last_failure_at is not None
        assert record.failure_reason == "slow"

    async def test_server_errors_counted(self, tracker):
        update = await tracker.record_failure("m", "HTTP 500", ErrorKind.SERVER_ERROR)
        assert update.counted

    async def test_reason_truncated_in_store(self, tracker):
        await tracker.record_failure("m", "y" * 900, ErrorKind.PARSE_FAILURE)
        record = await tracker.get_record("m")
        assert len(record.failure_reason) == 500

    async def test_further_failures_not_newly_disabled(self, tracker):
        for _ in range(5):
            await tracker.record_failure("m", "bad", ErrorKind.PARSE_FAILURE)
        update = await tracker.record_failure("m", "bad", ErrorKind.PARSE_FAILURE)
        assert update.auto_disabled
        assert not update.newly_disabled

    async def test_concurrent_failures_all_counted(self, tracker):
        updates = await asyncio.gather(
            *(tracker.record_failure("m", "bad", ErrorKind.PARSE_FAILURE) for _ in range(8))
        )
        assert sum(1 for u in updates if u.newly_disabled) == 1
        record = await tracker.get_record("m")
        assert record.consecutive_failures == 8
        assert record.auto_disabled


@pytest.mark.unit
@pytest.mark.asyncio
class TestCooldownAndRecovery:
    async def disable(self, tracker, model_id="m"):
        for _ in range(5):
            await tracker.record_failure(model_id, "bad", ErrorKind.PARSE_FAILURE)

    async def test_unknown_model_is_active(self, tracker):
        assert await tracker.is_active("never-seen")

    async def test_active_again_after_cooldown(self, tracker, clock):
        await self.disable(tracker)
        clock.advance(3599)
        assert not await tracker.is_active("m")
        clock.advance(1)
        assert await tracker.is_active("m")

    async def test_filter_active(self, tracker):
        await self.disable(tracker, "bad-model")
        assert await tracker.filter_active(["ok", "bad-model"]) == ["ok"]

    async def test_recover_disabled_sets_probation(self, tracker, clock, caplog):
        caplog.set_level(logging.INFO, logger="tipster.observability.model_health")
        await self.disable(tracker, "a")
        clock.advance(1800)
        await self.disable(tracker, "b")
        clock.advance(1800)

        recovered = await tracker.recover_disabled()

        assert recovered == ["a"]
        record = await tracker.get_record("a")
        assert not record.auto_disabled
        assert record.consecutive_failures == 2
        assert (await tracker.get_record("b")).auto_disabled
        assert "Model a re-enabled on probation" in caplog.text

    async def test_probation_redisables_quickly(self, tracker, clock):
        await self.disable(tracker)
        clock.advance(3600)
        await tracker.recover_disabled()

        for _ in range(2):
            update = await tracker.record_failure("m", "bad", ErrorKind.PARSE_FAILURE)
            assert not update.auto_disabled
        update = await tracker.record_failure("m", "bad", ErrorKind.PARSE_FAILURE)

        assert update.consecutive_failures == 5
        assert update.newly_disabled

    async def test_failure_after_cooldown_without_sweep_disables_again(self, tracker, clock, caplog):
        await self.disable(tracker)
        clock.advance(3600)
        assert await tracker.is_active("m")

        update = await tracker.record_failure("m", "still bad", ErrorKind.PARSE_FAILURE)

        assert update.consecutive_failures == 6
        assert update.newly_disabled
        assert not await tracker.is_active("m")
        assert "Model m auto-disabled after 6 consecutive failures" in caplog.text

        update = await tracker.record_failure("m", "still bad", ErrorKind.PARSE_FAILURE)
        assert not update.newly_disabled

    async def test_recover_nothing(self, tracker):
        assert await tracker.recover_disabled() == []

    async def test_manual_re_enable(self, tracker):
        await self.disable(tracker)

        assert await tracker.re_enable("m")

        record = await tracker.get_record("m")
        assert not record.auto_disabled
        assert record.consecutive_failures == 0
        assert await tracker.is_active("m")

    async def test_re_enable_unknown(self, tracker):
        assert not await tracker.re_enable("ghost")

    async def test_register_and_list(self, tracker):
        await tracker.register_all(["b", "a"])
        await tracker.register("a")

        records = await tracker.list_records()

        assert [r.model_id for r in records] == ["a", "b"]
        assert all(r.consecutive_failures == 0 for r in records)


@pytest.mark.unit
class TestTrackerDefaults:
    def test_defaults_from_constants(self, health_store):
        tracker = ModelHealthTracker(health_store)
        assert tracker.failure_threshold == 5
        assert tracker.recovery_cooldown == 3600
        assert tracker.probation_failures == 2

    def test_zero_cooldown_allowed(self, health_store):
        assert ModelHealthTracker(health_store, recovery_cooldown=0).recovery_cooldown == 0
