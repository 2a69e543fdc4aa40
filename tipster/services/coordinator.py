"""Fan a match out to every active model and collect per-model outcomes.

One model's failure never touches its siblings: every attempt runs
concurrently, catches its own errors and reports an AttemptOutcome keyed by
the originally requested model id.
"""

import asyncio
import logging
import time
from typing import Dict, Iterable, List, Mapping, Optional

from tipster.core.classifier import ErrorKind, classify, error_summary
from tipster.core.errors import SchemaViolationError
from tipster.core.models import AttemptOutcome, MatchContext, PredictionRecord
from tipster.core.parsing import ParseFailure, parse_response
from tipster.core.prompts import SYSTEM_PROMPT, build_user_prompt
from tipster.core.validation import select_prediction
from tipster.observability.model_health import ModelHealthTracker
from tipster.providers.base import PredictionProvider
from tipster.services.orchestrator import FallbackOrchestrator
from tipster.storage.base import PredictionStore

logger = logging.getLogger(__name__)


class BatchPredictionCoordinator:
    """Runs one batch round for a match across all eligible providers."""

    def __init__(
        self,
        providers: Mapping[str, PredictionProvider],
        orchestrator: FallbackOrchestrator,
        health: ModelHealthTracker,
        store: Optional[PredictionStore] = None,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.providers = dict(providers)
        self.orchestrator = orchestrator
        self.health = health
        self.store = store
        self.system_prompt = system_prompt

    async def eligible_providers(self, model_ids: Optional[Iterable[str]] = None) -> List[PredictionProvider]:
        """Configured providers whose health allows them into this round."""
        if model_ids is None:
            candidates = list(self.providers.values())
        else:
            candidates = [self.providers[m] for m in dict.fromkeys(model_ids) if m in self.providers]
        configured = [p for p in candidates if p.is_configured()]
        await self.health.register_all(p.id for p in configured)
        active = set(await self.health.filter_active(p.id for p in configured))
        return [p for p in configured if p.id in active]

    async def predict_all(
        self, context: MatchContext, model_ids: Optional[Iterable[str]] = None
    ) -> Dict[str, AttemptOutcome]:
        """
        Predict one match with every eligible model concurrently.

        Args:
            context: The match to predict
            model_ids: Restrict the round to these models (default: all)

        Returns:
            Outcome per original model id; models filtered out by health or
            missing credentials have no entry
        """
        if model_ids is not None:
            model_ids = list(dict.fromkeys(model_ids))
        requested = len(self.providers) if model_ids is None else len(model_ids)
        providers = await self.eligible_providers(model_ids)
        user_prompt = build_user_prompt(context)

        results = await asyncio.gather(
            *(self._attempt(provider, context, user_prompt) for provider in providers),
            return_exceptions=True,
        )

        outcomes: Dict[str, AttemptOutcome] = {}
        for provider, result in zip(providers, results):
            if isinstance(result, Exception):
                logger.error(f"Unhandled error in attempt for {provider.id}: {error_summary(result)}")
                result = AttemptOutcome(
                    model_id=provider.id,
                    match_id=context.match_id,
                    success=False,
                    error_kind=ErrorKind.UNKNOWN,
                    error=error_summary(result),
                )
            elif isinstance(result, BaseException):
                raise result
            outcomes[provider.id] = result

        succeeded = sum(1 for o in outcomes.values() if o.success)
        via_fallback = sum(1 for o in outcomes.values() if o.success and o.used_fallback)
        logger.info(
            f"Batch for match {context.match_id}: {succeeded} succeeded "
            f"({via_fallback} via fallback), {len(outcomes) - succeeded} failed, "
            f"{requested - len(providers)} skipped"
        )
        return outcomes

    async def _attempt(
        self, provider: PredictionProvider, context: MatchContext, user_prompt: str
    ) -> AttemptOutcome:
        started = time.monotonic()

        def elapsed_ms() -> int:
            return int((time.monotonic() - started) * 1000)

        try:
            call = await self.orchestrator.call_with_fallback(provider, self.system_prompt, user_prompt)
        except Exception as e:
            return await self._failure(
                provider.id, context, classify(e), error_summary(e, limit=500), elapsed_ms()
            )

        parsed = parse_response(call.text, [context.match_id])
        if isinstance(parsed, ParseFailure):
            return await self._failure(
                provider.id,
                context,
                ErrorKind.PARSE_FAILURE,
                f"parse failure: {parsed.reason}",
                elapsed_ms(),
                used_fallback=call.used_fallback,
                raw_sample=parsed.raw_sample,
            )

        try:
            prediction = select_prediction(parsed.candidates, context.match_id).raise_for_issues()
        except SchemaViolationError as e:
            return await self._failure(
                provider.id,
                context,
                ErrorKind.SCHEMA_VIOLATION,
                f"{ErrorKind.SCHEMA_VIOLATION.value}: {'; '.join(e.errors)}",
                elapsed_ms(),
                used_fallback=call.used_fallback,
            )

        record = PredictionRecord.from_prediction(
            prediction,
            model_id=provider.id,
            used_fallback=call.used_fallback,
            served_by=call.served_by,
        )
        if self.store is not None:
            try:
                await self.store.save(record)
            except Exception as e:
                # Storage trouble says nothing about the model
                logger.error(f"Failed to persist prediction for {provider.id}: {error_summary(e)}")
                return AttemptOutcome(
                    model_id=provider.id,
                    match_id=context.match_id,
                    success=False,
                    used_fallback=call.used_fallback,
                    error=f"persistence failed: {error_summary(e)}",
                    duration_ms=elapsed_ms(),
                )

        try:
            await self.health.record_success(provider.id)
        except Exception as e:
            logger.error(f"Failed to record success for {provider.id}: {error_summary(e)}")

        logger.info(
            f"{provider.id}: {prediction.home_score}-{prediction.away_score}"
            + (f" (served by {call.served_by})" if call.used_fallback else "")
        )
        return AttemptOutcome(
            model_id=provider.id,
            match_id=context.match_id,
            success=True,
            used_fallback=call.used_fallback,
            prediction=prediction,
            duration_ms=elapsed_ms(),
        )

    async def _failure(
        self,
        model_id: str,
        context: MatchContext,
        kind: ErrorKind,
        reason: str,
        duration_ms: int,
        used_fallback: bool = False,
        raw_sample: Optional[str] = None,
    ) -> AttemptOutcome:
        logger.warning(f"{model_id}: prediction failed for match {context.match_id} ({kind.value}): {reason}")
        auto_disabled = False
        try:
            update = await self.health.record_failure(model_id, reason, kind)
            auto_disabled = update.auto_disabled
        except Exception as e:
            logger.error(f"Failed to record failure for {model_id}: {error_summary(e)}")

        return AttemptOutcome(
            model_id=model_id,
            match_id=context.match_id,
            success=False,
            used_fallback=used_fallback,
            error_kind=kind,
            error=reason,
            raw_sample=raw_sample,
            duration_ms=duration_ms,
            auto_disabled=auto_disabled,
        )
