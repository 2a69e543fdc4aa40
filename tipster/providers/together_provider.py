"""Together AI endpoint definition."""

import os

from tipster.providers.openai_compatible import VendorEndpoint, extract_message_text

TOGETHER_BASE_URL = "https://api.together.xyz/v1"
TOGETHER_API_KEY_ENV = "TOGETHER_API_KEY"


def together_endpoint(base_url: str = TOGETHER_BASE_URL) -> VendorEndpoint:
    """Together asks callers to identify the app via referer and title headers."""
    return VendorEndpoint(
        name="together",
        base_url=base_url,
        api_key_env=TOGETHER_API_KEY_ENV,
        default_headers={
            "HTTP-Referer": os.getenv("TIPSTER_APP_URL", "http://localhost:3000"),
            "X-Title": "Football AI Predictions",
        },
        adapter=extract_message_text,
    )
