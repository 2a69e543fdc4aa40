"""Tests for application configuration (tipster/config.py, tipster/core/constants.py)."""

import os
from unittest.mock import patch

import pytest

from tipster.bootstrap import build_pipeline
from tipster.config import AppConfig, DatabaseConfig, HealthConfig, ProviderConfig, RetryConfig, TimeoutConfig
from tipster.core import constants
from tipster.core.errors import InvalidConfigError
from tipster.providers.registry import SYNTHETIC, TOGETHER


@pytest.fixture
def restore_constants():
    """Reset module-level constants after tests that reload them."""
    yield
    with patch.dict(os.environ, {}, clear=True):
        constants.load_config()


@pytest.mark.unit
class TestDefaults:
    def test_health_defaults(self):
        hc = HealthConfig()
        assert hc.failure_threshold == 5
        assert hc.recovery_cooldown_seconds == 3600
        assert hc.probation_failures == 2

    def test_retry_defaults(self):
        rc = RetryConfig()
        assert rc.max_retries == 3
        assert rc.base_delay == 1.5
        assert rc.max_delay == 15.0
        assert rc.jitter == 0.3
        assert rc.retryable_status_codes == (408, 429, 500, 502, 503, 504)

    def test_timeouts_by_model_class(self):
        tc = TimeoutConfig()
        assert tc.standard_seconds == 60
        assert tc.reasoning_seconds == 90

    def test_provider_urls(self):
        pc = ProviderConfig()
        assert pc.base_url_for("together") == "https://api.together.xyz/v1"
        assert pc.base_url_for("synthetic") == "https://api.synthetic.new/openai/v1"
        assert pc.base_url_for("other") is None


@pytest.mark.unit
class TestValidation:
    def test_probation_must_be_below_threshold(self):
        with pytest.raises(ValueError):
            HealthConfig(failure_threshold=2, probation_failures=2)

    def test_max_delay_not_below_base(self):
        with pytest.raises(ValueError):
            RetryConfig(base_delay=10, max_delay=5)

    def test_retry_policy_conversion(self):
        policy = RetryConfig(max_retries=1, base_delay=0.5, max_delay=2.0, jitter=0.0).to_policy()
        assert policy.max_retries == 1
        assert policy.compute_delay(0) == 0.5

    def test_log_level_normalized(self):
        assert AppConfig(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValueError):
            AppConfig(log_level="chatty")


@pytest.mark.unit
class TestFromEnv:
    def test_reads_keys_and_overrides(self):
        env = {
            "TOGETHER_API_KEY": "tg-key",
            "SYNTHETIC_API_KEY": "syn-key",
            "TIPSTER_HEALTH_FAILURE_THRESHOLD": "4",
            "TIPSTER_RETRY_MAX_RETRIES": "1",
            "TIPSTER_REASONING_MODEL_TIMEOUT": "120",
            "TIPSTER_DB_PATH": "/tmp/tipster-test.db",
            "TIPSTER_LOG_LEVEL": "warning",
        }
        with patch.dict(os.environ, env, clear=True):
            config = AppConfig.from_env()

        assert config.providers.api_key_for("together") == "tg-key"
        assert config.providers.api_key_for("synthetic") == "syn-key"
        assert config.health.failure_threshold == 4
        assert config.retry.max_retries == 1
        assert config.timeouts.reasoning_seconds == 120
        assert config.database.path == "/tmp/tipster-test.db"
        assert config.log_level == "WARNING"

    def test_missing_keys_are_none(self):
        with patch.dict(os.environ, {}, clear=True):
            config = AppConfig.from_env()
        assert config.providers.together_api_key is None
        assert config.providers.synthetic_api_key is None

    def test_empty_key_treated_as_missing(self):
        with patch.dict(os.environ, {"TOGETHER_API_KEY": ""}, clear=True):
            assert AppConfig.from_env().providers.together_api_key is None

    def test_malformed_number(self):
        with patch.dict(os.environ, {"TIPSTER_RETRY_BASE_DELAY": "fast"}, clear=True):
            with pytest.raises(InvalidConfigError) as exc_info:
                AppConfig.from_env()
        assert exc_info.value.details["config_key"] == "TIPSTER_RETRY_BASE_DELAY"

    def test_inconsistent_values_raise_config_error(self):
        env = {"TIPSTER_HEALTH_FAILURE_THRESHOLD": "2", "TIPSTER_HEALTH_PROBATION_FAILURES": "3"}
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(InvalidConfigError):
                AppConfig.from_env()


@pytest.mark.unit
class TestConstantsLoadConfig:
    def test_env_override(self, restore_constants):
        with patch.dict(os.environ, {"TIPSTER_HEALTH_FAILURE_THRESHOLD": "3"}, clear=True):
            constants.load_config()
        assert constants.HEALTH_FAILURE_THRESHOLD == 3

    def test_defaults_without_env(self, restore_constants):
        with patch.dict(os.environ, {}, clear=True):
            constants.load_config()
        assert constants.HEALTH_FAILURE_THRESHOLD == 5
        assert constants.RETRY_BASE_DELAY == 1.5
        assert constants.REASONING_MODEL_TIMEOUT == 90

    @pytest.mark.parametrize(
        "key,value",
        [
            ("TIPSTER_RETRY_MAX_RETRIES", "-1"),
            ("TIPSTER_RETRY_JITTER", "lots"),
            ("TIPSTER_HEALTH_FAILURE_THRESHOLD", "0"),
        ],
    )
    def test_invalid_values(self, restore_constants, key, value):
        with patch.dict(os.environ, {key: value}, clear=True):
            with pytest.raises(InvalidConfigError):
                constants.load_config()

    def test_rejected_env_keeps_previous_values(self, restore_constants):
        with patch.dict(os.environ, {"TIPSTER_HEALTH_FAILURE_THRESHOLD": "4"}, clear=True):
            constants.load_config()

        env = {
            "TIPSTER_HEALTH_FAILURE_THRESHOLD": "3",
            "TIPSTER_HEALTH_PROBATION_FAILURES": "7",
            "TIPSTER_RETRY_MAX_RETRIES": "9",
        }
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(InvalidConfigError):
                constants.load_config()

        assert constants.HEALTH_FAILURE_THRESHOLD == 4
        assert constants.HEALTH_PROBATION_FAILURES == 2
        assert constants.RETRY_MAX_RETRIES == 3


@pytest.mark.unit
class TestBuildPipeline:
    def test_env_overrides_reach_constants(self, restore_constants, tmp_path):
        env = {
            "TIPSTER_DB_PATH": str(tmp_path / "tipster.db"),
            "TIPSTER_RETRY_MAX_RETRIES": "1",
            "TIPSTER_HEALTH_FAILURE_THRESHOLD": "4",
        }
        with patch.dict(os.environ, env, clear=True):
            pipeline = build_pipeline()

        assert constants.RETRY_MAX_RETRIES == 1
        assert constants.HEALTH_FAILURE_THRESHOLD == 4
        assert pipeline.health.failure_threshold == 4

    def test_vendor_settings_come_from_provider_config(self, restore_constants, tmp_path):
        config = AppConfig(
            providers=ProviderConfig(
                together_api_key="tg-key",
                together_base_url="https://together.example/v1",
            ),
            database=DatabaseConfig(path=str(tmp_path / "tipster.db")),
        )
        with patch.dict(os.environ, {}, clear=True):
            pipeline = build_pipeline(config)

        together = [p for p in pipeline.providers.values() if p.spec.vendor == TOGETHER]
        synthetic = [p for p in pipeline.providers.values() if p.spec.vendor == SYNTHETIC]
        assert together and synthetic
        assert all(p.is_configured() for p in together)
        assert all(p.endpoint.base_url == "https://together.example/v1" for p in together)
        assert not any(p.is_configured() for p in synthetic)

    def test_invalid_env_leaves_constants_untouched(self, restore_constants):
        with patch.dict(os.environ, {"TIPSTER_HEALTH_PROBATION_FAILURES": "9"}, clear=True):
            with pytest.raises(InvalidConfigError):
                build_pipeline()

        assert constants.HEALTH_PROBATION_FAILURES == 2
        assert constants.HEALTH_FAILURE_THRESHOLD == 5
