"""Base interface for prediction providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from tipster.core import constants


@dataclass(frozen=True)
class ModelPricing:
    """Published per-token rates in USD per million tokens."""

    prompt_per_million: float
    completion_per_million: float


@dataclass(frozen=True)
class ModelSpec:
    """Static description of one model endpoint."""

    id: str
    vendor: str
    model_name: str
    display_name: str
    tier: str
    pricing: ModelPricing
    is_premium: bool = False
    supports_reasoning_output: bool = False


@dataclass
class UsageStats:
    """Token usage reported for one completion."""

    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class PredictionProvider(ABC):
    """Uniform contract for every model that can predict a batch of matches.

    Identity, pricing and the reasoning capability flag come from the static
    ModelSpec and never change after construction.
    """

    def __init__(self, spec: ModelSpec):
        self.spec = spec
        self.last_usage: Optional[UsageStats] = None

    @property
    def id(self) -> str:
        return self.spec.id

    @property
    def display_name(self) -> str:
        return self.spec.display_name

    @property
    def supports_reasoning_output(self) -> bool:
        return self.spec.supports_reasoning_output

    @property
    def pricing(self) -> ModelPricing:
        return self.spec.pricing

    @property
    def tier(self) -> str:
        return self.spec.tier

    @property
    def is_premium(self) -> bool:
        return self.spec.is_premium

    @abstractmethod
    async def predict_batch(self, system_prompt: str, user_prompt: str) -> str:
        """Request predictions and return the raw response text.

        Transient errors are retried internally. Anything left unrecovered is
        raised unclassified for the caller to handle.
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the credentials needed to call this model are present."""
        pass

    def estimate_cost(
        self,
        input_tokens: int = constants.DEFAULT_INPUT_TOKENS,
        output_tokens: int = constants.DEFAULT_OUTPUT_TOKENS,
    ) -> float:
        """Estimated USD cost of one call. Reporting only, never gates a call."""
        return (
            input_tokens / 1_000_000 * self.pricing.prompt_per_million
            + output_tokens / 1_000_000 * self.pricing.completion_per_million
        )

    def estimate_batch_cost(self, match_count: int, has_analysis: bool = True) -> float:
        """Estimated USD cost of predicting match_count matches in one request."""
        input_per_match = 400 if has_analysis else 200
        return self.estimate_cost(input_per_match * match_count, 50 * match_count)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
