"""
AI Provider Service - routes prompts to the configured provider.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from loguru import logger

from shared.config import Settings, get_settings
from shared.errors import JobMatchError

from .base import AIMessage, AIResponse, Provider
from .catalog import ModelCatalog, ModelInfo, get_model_catalog
from .config import ProviderConfig, ProviderConfigResolver
from .factory import create_client


@dataclass
class ConnectionTestResult:
    success: bool
    error: Optional[str] = None


class AIProviderService:
    """Entry point for everything that talks to an LLM provider."""

    def __init__(
        self,
        resolver: ProviderConfigResolver,
        catalog: Optional[ModelCatalog] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.resolver = resolver
        self.catalog = catalog or get_model_catalog()

    async def get_provider_config(self) -> ProviderConfig:
        return await self.resolver.get_provider_config()

    async def send_prompt(
        self,
        messages: Sequence[AIMessage],
        max_tokens: int = 2000,
        temperature: Optional[float] = None,
    ) -> AIResponse:
        """Send messages to the active provider/model."""
        config = await self.resolver.get_provider_config()
        api_key = self.resolver.get_api_key(config.provider)

        client = create_client(config.provider, api_key, config.model, self.settings)
        try:
            return await client.send_prompt(messages, max_tokens=max_tokens, temperature=temperature)
        finally:
            await client.close()

    async def get_available_models(self, force_refresh: bool = False) -> list[ModelInfo]:
        return await self.catalog.get_available_models(force_refresh=force_refresh)

    async def test_connection(
        self, provider: Provider, api_key: str, model: Optional[str] = None
    ) -> ConnectionTestResult:
        """Minimal round trip with the given key. Never raises."""
        client = None
        try:
            provider = Provider(provider)
            if not model:
                model = await self._connection_test_model(provider)

            client = create_client(provider, api_key, model, self.settings)
            await client.send_prompt([AIMessage(role="user", content="Hi")], max_tokens=10)
            return ConnectionTestResult(success=True)
        except JobMatchError as e:
            logger.error(f"Connection test failed for {getattr(provider, 'value', provider)}: {e}")
            return ConnectionTestResult(success=False, error=str(e))
        except Exception as e:
            logger.exception(f"Connection test failed for {getattr(provider, 'value', provider)}")
            return ConnectionTestResult(success=False, error=str(e))
        finally:
            if client is not None:
                await client.close()

    async def _connection_test_model(self, provider: Provider) -> str:
        # OpenRouter keys are tested against the configured model when it is active
        if provider == Provider.OPENROUTER:
            config = await self.resolver.get_provider_config()
            if config.provider == Provider.OPENROUTER:
                return config.model
        return self.settings.default_model_for(provider.value)
