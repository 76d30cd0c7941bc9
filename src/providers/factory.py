"""
Client factory mapping a provider to its adapter.
"""

from typing import Optional

from shared.config import Settings, get_settings

from .anthropic_client import AnthropicClient
from .base import Provider, ProviderClient
from .openrouter_client import OpenRouterClient


def create_client(
    provider: Provider,
    api_key: Optional[str],
    model: str,
    settings: Optional[Settings] = None,
) -> ProviderClient:
    settings = settings or get_settings()

    if provider == Provider.ANTHROPIC:
        return AnthropicClient(api_key, model, timeout=settings.anthropic_timeout)

    if provider == Provider.OPENROUTER:
        return OpenRouterClient(
            api_key,
            model,
            timeout=settings.openrouter_timeout,
            base_url=settings.openrouter_base_url,
            referer=settings.openrouter_referer,
            app_title=settings.openrouter_app_title,
        )

    raise ValueError(f"Unsupported provider '{provider}'")
