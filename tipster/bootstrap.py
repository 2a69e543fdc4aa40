"""Wire providers, fallback resolution, health tracking and storage together.

Building the pipeline validates the fallback mapping; a bad mapping raises
ConfigurationError before any traffic is served.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from tipster.config import AppConfig
from tipster.core import constants
from tipster.observability.model_health import ModelHealthTracker
from tipster.providers import build_provider_pool
from tipster.providers.base import PredictionProvider
from tipster.providers.registry import SYNTHETIC, TOGETHER
from tipster.services.coordinator import BatchPredictionCoordinator
from tipster.services.fallback import FallbackResolver
from tipster.services.orchestrator import FallbackOrchestrator
from tipster.storage.health_store import SQLiteHealthStore
from tipster.storage.prediction_store import SQLitePredictionStore

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    config: AppConfig
    providers: Dict[str, PredictionProvider]
    resolver: FallbackResolver
    orchestrator: FallbackOrchestrator
    health: ModelHealthTracker
    predictions: SQLitePredictionStore
    coordinator: BatchPredictionCoordinator

    def configured_ids(self):
        return [p.id for p in self.providers.values() if p.is_configured()]


def build_pipeline(
    config: Optional[AppConfig] = None,
    fallback_mapping: Optional[Mapping[str, str]] = None,
) -> Pipeline:
    """
    Build the prediction pipeline from configuration.

    Args:
        config: Application config (defaults to the environment, which also
            refreshes the module constants)
        fallback_mapping: Override for the static fallback table

    Raises:
        ConfigurationError: If configuration or the fallback mapping is invalid
    """
    if config is None:
        constants.load_config()
        config = AppConfig.from_env()

    vendors = (TOGETHER, SYNTHETIC)
    providers = build_provider_pool(
        api_keys={v: config.providers.api_key_for(v) for v in vendors},
        base_urls={v: config.providers.base_url_for(v) for v in vendors},
        retry_policy=config.retry.to_policy(),
        standard_timeout=config.timeouts.standard_seconds,
        reasoning_timeout=config.timeouts.reasoning_seconds,
    )

    resolver = FallbackResolver(providers, fallback_mapping)
    orchestrator = FallbackOrchestrator(resolver)

    health = ModelHealthTracker(
        SQLiteHealthStore(config.database.path),
        failure_threshold=config.health.failure_threshold,
        recovery_cooldown=config.health.recovery_cooldown_seconds,
        probation_failures=config.health.probation_failures,
    )
    predictions = SQLitePredictionStore(config.database.path)
    coordinator = BatchPredictionCoordinator(providers, orchestrator, health, predictions)

    configured = sum(1 for p in providers.values() if p.is_configured())
    logger.info(f"Pipeline ready: {configured}/{len(providers)} providers configured")

    return Pipeline(
        config=config,
        providers=providers,
        resolver=resolver,
        orchestrator=orchestrator,
        health=health,
        predictions=predictions,
        coordinator=coordinator,
    )
