"""Prediction providers for OpenAI-compatible model vendors."""

from typing import Dict, Iterable, Optional

from openai import AsyncOpenAI

from .base import ModelPricing, ModelSpec, PredictionProvider, UsageStats
from .openai_compatible import ChatCompletionProvider, VendorEndpoint
from .registry import ALL_MODELS, MODEL_FALLBACKS, SYNTHETIC, TOGETHER, get_model_spec
from .retry import RetryPolicy
from .synthetic_provider import synthetic_endpoint
from .together_provider import together_endpoint


def create_endpoint(vendor: str, base_url: Optional[str] = None) -> VendorEndpoint:
    """
    Factory function for vendor endpoints.

    Args:
        vendor: "together" or "synthetic"
        base_url: Override for the vendor's default base URL

    Raises:
        ValueError: If vendor is not supported
    """
    if vendor == TOGETHER:
        return together_endpoint(base_url) if base_url else together_endpoint()
    elif vendor == SYNTHETIC:
        return synthetic_endpoint(base_url) if base_url else synthetic_endpoint()
    else:
        raise ValueError(f"Unsupported vendor: {vendor}")


def build_provider_pool(
    specs: Iterable[ModelSpec] = ALL_MODELS,
    api_keys: Optional[Dict[str, Optional[str]]] = None,
    base_urls: Optional[Dict[str, Optional[str]]] = None,
    retry_policy: Optional[RetryPolicy] = None,
    standard_timeout: Optional[float] = None,
    reasoning_timeout: Optional[float] = None,
) -> Dict[str, PredictionProvider]:
    """Instantiate every provider, sharing one client per vendor.

    Providers whose vendor key is missing are still built so they can be
    listed; is_configured() reports them as unavailable.
    """
    api_keys = api_keys or {}
    base_urls = base_urls or {}
    endpoints: Dict[str, VendorEndpoint] = {}
    clients: Dict[str, Optional[AsyncOpenAI]] = {}
    pool: Dict[str, PredictionProvider] = {}

    for spec in specs:
        if spec.vendor not in endpoints:
            endpoint = create_endpoint(spec.vendor, base_urls.get(spec.vendor))
            key = api_keys.get(spec.vendor) or endpoint.api_key()
            endpoints[spec.vendor] = endpoint
            clients[spec.vendor] = endpoint.create_client(key) if key else None

        timeout = reasoning_timeout if spec.supports_reasoning_output else standard_timeout
        pool[spec.id] = ChatCompletionProvider(
            spec,
            endpoints[spec.vendor],
            client=clients[spec.vendor],
            api_key=api_keys.get(spec.vendor),
            retry_policy=retry_policy,
            timeout=timeout,
        )

    return pool


def create_provider(model_id: str, **kwargs) -> PredictionProvider:
    """Build a single provider from the registry by model id."""
    spec = get_model_spec(model_id)
    if spec is None:
        raise ValueError(f"Unknown model: {model_id}")
    return build_provider_pool([spec], **kwargs)[model_id]


__all__ = [
    "ModelPricing",
    "ModelSpec",
    "PredictionProvider",
    "UsageStats",
    "ChatCompletionProvider",
    "VendorEndpoint",
    "RetryPolicy",
    "MODEL_FALLBACKS",
    "build_provider_pool",
    "create_endpoint",
    "create_provider",
]
