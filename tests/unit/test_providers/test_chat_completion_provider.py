"""Tests for the OpenAI-compatible provider (tipster/providers/openai_compatible.py)."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from tipster.core.errors import EmptyResponseError, ProviderAuthError
from tipster.providers.openai_compatible import ChatCompletionProvider, extract_message_text
from tipster.providers.registry import get_model_spec
from tipster.providers.retry import RetryPolicy
from tipster.providers.synthetic_provider import synthetic_adapter, synthetic_endpoint
from tipster.providers.together_provider import together_endpoint

REQUEST = httpx.Request("POST", "https://api.together.xyz/v1/chat/completions")


def completion(content=None, reasoning=None, reasoning_details=None, usage=None, **extra):
    message = SimpleNamespace(content=content, reasoning=reasoning, reasoning_details=reasoning_details, **extra)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=usage)


def make_client(*responses):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=list(responses))
    return client


def make_provider(model_id="llama-3.3-70b-turbo", client=None, endpoint=None, **kwargs):
    return ChatCompletionProvider(
        get_model_spec(model_id),
        endpoint or together_endpoint(),
        client=client,
        api_key="test-key",
        retry_policy=kwargs.pop("retry_policy", RetryPolicy(jitter=0.0)),
        sleep=kwargs.pop("sleep", AsyncMock()),
        **kwargs,
    )


@pytest.mark.unit
class TestResponseAdapter:
    def test_content_first(self):
        assert extract_message_text(completion(content='{"a": 1}', reasoning="thinking")) == '{"a": 1}'

    def test_reasoning_when_content_empty(self):
        assert extract_message_text(completion(content="", reasoning='{"a": 1}')) == '{"a": 1}'

    def test_reasoning_details_summary(self):
        details = [{"type": "reasoning.text"}, {"summary": '{"a": 2}'}]
        assert extract_message_text(completion(reasoning_details=details)) == '{"a": 2}'

    def test_reasoning_details_objects(self):
        details = [SimpleNamespace(summary='{"a": 3}')]
        assert extract_message_text(completion(reasoning_details=details)) == '{"a": 3}'

    def test_nothing_usable(self):
        assert extract_message_text(completion()) is None
        assert extract_message_text(SimpleNamespace(choices=[])) is None

    def test_dict_shaped_completion(self):
        raw = {"choices": [{"message": {"content": "hi"}}]}
        assert extract_message_text(raw) == "hi"

    def test_synthetic_reasoning_content(self):
        assert synthetic_adapter(completion(reasoning_content='{"a": 4}')) == '{"a": 4}'


@pytest.mark.unit
class TestProviderAttributes:
    def test_identity_and_pricing_from_model_spec(self):
        provider = make_provider("deepseek-r1")
        assert provider.id == "deepseek-r1"
        assert provider.display_name == "DeepSeek R1 (Reasoning)"
        assert provider.supports_reasoning_output is True
        assert provider.pricing.prompt_per_million == 3.00
        assert provider.is_premium is True

    def test_reasoning_models_get_longer_budget(self):
        assert make_provider("deepseek-r1").timeout == 90
        assert make_provider("deepseek-r1").max_tokens == 4000
        assert make_provider("llama-3.3-70b-turbo").timeout == 60
        assert make_provider("llama-3.3-70b-turbo").max_tokens == 800

    def test_explicit_timeout(self):
        assert make_provider(timeout=12).timeout == 12

    def test_estimate_cost_defaults(self):
        provider = make_provider("deepseek-r1")
        assert provider.estimate_cost() == pytest.approx(500 / 1e6 * 3.00 + 50 / 1e6 * 7.00)

    def test_estimate_cost_explicit_tokens(self):
        provider = make_provider("gemma-3n-e4b")
        assert provider.estimate_cost(1_000_000, 1_000_000) == pytest.approx(0.06)

    def test_estimate_batch_cost(self):
        provider = make_provider("llama-3.3-70b-turbo")
        assert provider.estimate_batch_cost(10) == pytest.approx(provider.estimate_cost(4000, 500))
        assert provider.estimate_batch_cost(10, has_analysis=False) == pytest.approx(provider.estimate_cost(2000, 500))

    def test_configured_from_env(self, monkeypatch):
        monkeypatch.setenv("TOGETHER_API_KEY", "env-key")
        provider = ChatCompletionProvider(get_model_spec("glm-4.6"), together_endpoint())
        assert provider.is_configured()

    def test_unconfigured_without_key(self, monkeypatch):
        monkeypatch.delenv("TOGETHER_API_KEY", raising=False)
        provider = ChatCompletionProvider(get_model_spec("glm-4.6"), together_endpoint())
        assert not provider.is_configured()


@pytest.mark.unit
@pytest.mark.asyncio
class TestPredictBatch:
    async def test_sends_chat_completion_request(self):
        client = make_client(completion(content='{"match_id": "m1"}'))
        provider = make_provider("llama-3.3-70b-turbo", client=client)

        text = await provider.predict_batch("system", "user")

        assert text == '{"match_id": "m1"}'
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "meta-llama/Llama-3.3-70B-Instruct-Turbo"
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "user"},
        ]
        assert kwargs["temperature"] == 0.5
        assert kwargs["max_tokens"] == 800
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["timeout"] == 60

    async def test_synthetic_uses_hf_model_name(self):
        client = make_client(completion(content="{}"))
        provider = make_provider("deepseek-r1-0528-syn", client=client, endpoint=synthetic_endpoint())
        await provider.predict_batch("s", "u")
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "hf:deepseek-ai/DeepSeek-R1-0528"
        assert kwargs["timeout"] == 90

    async def test_retries_transient_then_succeeds(self):
        error = openai.InternalServerError("busy", response=httpx.Response(503, request=REQUEST), body=None)
        client = make_client(error, completion(content="ok"))
        sleep = AsyncMock()
        provider = make_provider(client=client, sleep=sleep)

        assert await provider.predict_batch("s", "u") == "ok"
        assert client.chat.completions.create.await_count == 2
        sleep.assert_awaited_once_with(1.5)

    async def test_unrecovered_error_is_rethrown_unclassified(self):
        errors = [openai.APITimeoutError(request=REQUEST) for _ in range(4)]
        client = make_client(*errors)
        provider = make_provider(client=client)

        with pytest.raises(openai.APITimeoutError):
            await provider.predict_batch("s", "u")
        assert client.chat.completions.create.await_count == 4

    async def test_auth_error_not_retried(self):
        error = openai.AuthenticationError("bad key", response=httpx.Response(401, request=REQUEST), body=None)
        client = make_client(error)
        provider = make_provider(client=client)

        with pytest.raises(openai.AuthenticationError):
            await provider.predict_batch("s", "u")
        assert client.chat.completions.create.await_count == 1

    async def test_empty_response_raises(self):
        client = make_client(completion(content="   "))
        provider = make_provider(client=client)

        with pytest.raises(EmptyResponseError):
            await provider.predict_batch("s", "u")
        assert client.chat.completions.create.await_count == 1

    async def test_missing_key_raises_auth_error(self, monkeypatch):
        monkeypatch.delenv("SYNTHETIC_API_KEY", raising=False)
        provider = ChatCompletionProvider(get_model_spec("minimax-m2-syn"), synthetic_endpoint())

        with pytest.raises(ProviderAuthError) as exc_info:
            await provider.predict_batch("s", "u")
        assert "SYNTHETIC_API_KEY" in exc_info.value.message

    async def test_usage_recorded(self):
        usage = SimpleNamespace(prompt_tokens=1000, completion_tokens=100)
        client = make_client(completion(content="{}", usage=usage))
        provider = make_provider("deepseek-r1", client=client)

        await provider.predict_batch("s", "u")

        assert provider.last_usage.input_tokens == 1000
        assert provider.last_usage.output_tokens == 100
        assert provider.last_usage.total_tokens == 1100
        assert provider.last_usage.cost == pytest.approx(1000 / 1e6 * 3.00 + 100 / 1e6 * 7.00)
