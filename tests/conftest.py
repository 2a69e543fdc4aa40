"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import pytest
from dotenv import load_dotenv

from tipster.observability.model_health import ModelHealthTracker
from tipster.providers.base import ModelPricing, ModelSpec, PredictionProvider
from tipster.storage.health_store import SQLiteHealthStore
from tipster.storage.prediction_store import SQLitePredictionStore

# Load .env file for API keys in integration tests
load_dotenv()


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no network access")


class FakeProvider(PredictionProvider):
    """Provider returning scripted responses.

    Each call consumes the next outcome; the last one repeats. An exception
    outcome is raised instead of returned.
    """

    def __init__(self, model_id, outcomes=None, configured=True, reasoning=False, pricing=(1.0, 1.0)):
        super().__init__(
            ModelSpec(
                id=model_id,
                vendor="fake",
                model_name=model_id,
                display_name=f"Fake {model_id}",
                tier="budget",
                pricing=ModelPricing(*pricing),
                supports_reasoning_output=reasoning,
            )
        )
        self.outcomes = list(outcomes or [])
        self.configured = configured
        self.calls = []

    async def predict_batch(self, system_prompt, user_prompt):
        self.calls.append((system_prompt, user_prompt))
        if len(self.outcomes) > 1:
            outcome = self.outcomes.pop(0)
        elif self.outcomes:
            outcome = self.outcomes[0]
        else:
            outcome = ""
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def is_configured(self):
        return self.configured


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def make_provider():
    """Factory for scripted providers."""
    return FakeProvider


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def health_store(tmp_path):
    return SQLiteHealthStore(str(tmp_path / "tipster.db"))


@pytest.fixture
def prediction_store(tmp_path):
    return SQLitePredictionStore(str(tmp_path / "tipster.db"))


@pytest.fixture
def tracker(health_store, clock):
    return ModelHealthTracker(
        health_store,
        failure_threshold=5,
        recovery_cooldown=3600,
        probation_failures=2,
        clock=clock,
    )


@pytest.fixture
def mock_env(monkeypatch, tmp_path):
    """Mock environment variables for testing."""
    test_env = {
        "TOGETHER_API_KEY": "together-test-key",
        "SYNTHETIC_API_KEY": "synthetic-test-key",
        "TIPSTER_DB_PATH": str(tmp_path / "cli.db"),
        "TIPSTER_LOG_LEVEL": "WARNING",
    }

    for key, value in test_env.items():
        monkeypatch.setenv(key, value)

    return test_env


@pytest.fixture
def no_keys_env(monkeypatch, tmp_path):
    """Environment with no vendor credentials."""
    monkeypatch.delenv("TOGETHER_API_KEY", raising=False)
    monkeypatch.delenv("SYNTHETIC_API_KEY", raising=False)
    monkeypatch.setenv("TIPSTER_DB_PATH", str(tmp_path / "cli.db"))
    return tmp_path
