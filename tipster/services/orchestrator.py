"""Single-hop failover from a failing provider to its configured secondary.

Provider-level retry has already run by the time an error reaches this layer,
so the original model is never called again here. Every error triggers a
fallback lookup; the secondary gets exactly one call.
"""

import logging
from dataclasses import dataclass

from tipster.core.classifier import classify, error_summary
from tipster.core.errors import FallbackExhaustedError
from tipster.providers.base import PredictionProvider
from tipster.services.fallback import FallbackResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FallbackCallResult:
    """Response text plus who actually produced it.

    served_by is internal bookkeeping. Results are always attributed to the
    originally requested provider.
    """

    text: str
    used_fallback: bool
    served_by: str


class FallbackOrchestrator:
    """Calls a provider and fails over once to its secondary."""

    def __init__(self, resolver: FallbackResolver):
        self.resolver = resolver

    async def call_with_fallback(
        self, provider: PredictionProvider, system_prompt: str, user_prompt: str
    ) -> FallbackCallResult:
        """
        Call provider, failing over to its secondary on any error.

        Raises:
            Exception: The primary's own error when no secondary is available
            FallbackExhaustedError: When the secondary fails too
        """
        try:
            text = await provider.predict_batch(system_prompt, user_prompt)
            return FallbackCallResult(text=text, used_fallback=False, served_by=provider.id)
        except Exception as primary_error:
            kind = classify(primary_error)
            logger.warning(f"Model {provider.id} failed ({kind.value}): {error_summary(primary_error)}")

            secondary = self.resolver.resolve_provider(provider.id)
            if secondary is None:
                raise

            logger.info(f"Falling back from {provider.id} to {secondary.id}")
            try:
                text = await secondary.predict_batch(system_prompt, user_prompt)
            except Exception as fallback_error:
                logger.error(
                    f"Fallback also failed for {provider.id}: "
                    f"primary {provider.id} {error_summary(primary_error)}; "
                    f"fallback {secondary.id} {error_summary(fallback_error)}"
                )
                raise FallbackExhaustedError(
                    provider.id, secondary.id, primary_error, fallback_error
                ) from fallback_error

            logger.info(f"Fallback {secondary.id} succeeded for {provider.id}")
            return FallbackCallResult(text=text, used_fallback=True, served_by=secondary.id)
