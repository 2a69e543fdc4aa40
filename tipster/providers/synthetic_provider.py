"""Synthetic.new endpoint definition.

Synthetic serves Hugging Face checkpoints under hf:<org>/<model> names and
some of its reasoning deployments return the answer in reasoning_content.
"""

from typing import Any, Optional

from tipster.providers.openai_compatible import VendorEndpoint, extract_message_text, first_message

SYNTHETIC_BASE_URL = "https://api.synthetic.new/openai/v1"
SYNTHETIC_API_KEY_ENV = "SYNTHETIC_API_KEY"


def synthetic_adapter(completion: Any) -> Optional[str]:
    text = extract_message_text(completion)
    if text:
        return text
    message = first_message(completion)
    if message is None:
        return None
    if isinstance(message, dict):
        return message.get("reasoning_content") or None
    return getattr(message, "reasoning_content", None) or None


def synthetic_endpoint(base_url: str = SYNTHETIC_BASE_URL) -> VendorEndpoint:
    return VendorEndpoint(
        name="synthetic",
        base_url=base_url,
        api_key_env=SYNTHETIC_API_KEY_ENV,
        adapter=synthetic_adapter,
    )
