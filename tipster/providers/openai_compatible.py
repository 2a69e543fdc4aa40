"""Shared chat-completion transport for OpenAI-compatible vendors.

Vendors differ only in base URL, credential variable, extra headers and small
response-shape quirks. Those live on a VendorEndpoint; one provider class does
the calling for all of them.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from openai import AsyncOpenAI

from tipster.core import constants
from tipster.core.errors import EmptyResponseError, ProviderAuthError
from tipster.providers.base import ModelSpec, PredictionProvider, UsageStats
from tipster.providers.retry import RetryPolicy, Sleep, call_with_retry

logger = logging.getLogger(__name__)

ResponseAdapter = Callable[[Any], Optional[str]]


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def first_message(completion: Any) -> Any:
    choices = _field(completion, "choices") or []
    if not choices:
        return None
    return _field(choices[0], "message")


def extract_message_text(completion: Any) -> Optional[str]:
    """Pull the answer text out of a chat completion.

    Standard models answer in content. Some reasoning models leave content
    empty and put the JSON in reasoning, or in the first reasoning_details
    entry carrying a summary.
    """
    message = first_message(completion)
    if message is None:
        return None

    content = _field(message, "content")
    if content:
        return content

    reasoning = _field(message, "reasoning")
    if reasoning:
        return reasoning

    for detail in _field(message, "reasoning_details") or []:
        summary = _field(detail, "summary")
        if summary:
            return summary

    return None


@dataclass(frozen=True)
class VendorEndpoint:
    """Connection details for one OpenAI-compatible vendor."""

    name: str
    base_url: str
    api_key_env: str
    default_headers: Dict[str, str] = field(default_factory=dict)
    adapter: ResponseAdapter = extract_message_text

    def api_key(self) -> Optional[str]:
        return os.getenv(self.api_key_env) or None

    def create_client(self, api_key: Optional[str] = None) -> AsyncOpenAI:
        """One client per vendor; SDK retries are off because providers own retrying."""
        return AsyncOpenAI(
            api_key=api_key or self.api_key(),
            base_url=self.base_url,
            max_retries=0,
            default_headers=self.default_headers or None,
        )


class ChatCompletionProvider(PredictionProvider):
    """Prediction provider backed by an OpenAI-compatible chat completions API."""

    def __init__(
        self,
        spec: ModelSpec,
        endpoint: VendorEndpoint,
        client: Optional[AsyncOpenAI] = None,
        api_key: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: Optional[float] = None,
        sleep: Optional[Sleep] = None,
    ):
        """
        Initialize a chat-completion provider.

        Args:
            spec: Static model description from the registry
            endpoint: Vendor connection details
            client: Shared AsyncOpenAI client for the vendor (created lazily if omitted)
            api_key: Explicit key (defaults to the vendor's env var)
            retry_policy: Backoff policy for transient errors
            timeout: Per-call timeout in seconds (defaults by reasoning capability)
            sleep: Awaitable used between retries
        """
        super().__init__(spec)
        self.endpoint = endpoint
        self._api_key = api_key or endpoint.api_key()
        self._client = client
        self.retry_policy = retry_policy or RetryPolicy.from_constants()
        if timeout is None:
            timeout = (
                constants.REASONING_MODEL_TIMEOUT
                if spec.supports_reasoning_output
                else constants.STANDARD_MODEL_TIMEOUT
            )
        self.timeout = timeout
        self.max_tokens = (
            constants.REASONING_MAX_TOKENS
            if spec.supports_reasoning_output
            else constants.STANDARD_MAX_TOKENS
        )
        self._sleep = sleep

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = self.endpoint.create_client(self._api_key)
        return self._client

    def is_configured(self) -> bool:
        return bool(self._api_key) or self._client is not None

    async def predict_batch(self, system_prompt: str, user_prompt: str) -> str:
        if not self.is_configured():
            raise ProviderAuthError(self.id, self.endpoint.api_key_env)

        return await call_with_retry(
            lambda: self._complete(system_prompt, user_prompt),
            self.retry_policy,
            label=self.id,
            sleep=self._sleep,
        )

    async def _complete(self, system_prompt: str, user_prompt: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.spec.model_name,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=constants.PREDICTION_TEMPERATURE,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
            timeout=self.timeout,
        )

        self._record_usage(response)

        text = self.endpoint.adapter(response)
        if not text or not text.strip():
            raise EmptyResponseError(self.id)
        return text

    def _record_usage(self, response: Any) -> None:
        usage = _field(response, "usage")
        if usage is None:
            return
        input_tokens = _field(usage, "prompt_tokens") or 0
        output_tokens = _field(usage, "completion_tokens") or 0
        self.last_usage = UsageStats(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=self.estimate_cost(input_tokens, output_tokens),
        )
        logger.debug(
            f"{self.id}: {input_tokens} in / {output_tokens} out tokens, ${self.last_usage.cost:.6f}"
        )
