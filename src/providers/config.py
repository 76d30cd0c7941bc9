"""
Provider configuration: which provider and model are active, and their keys.
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from shared.config import Settings, get_settings
from shared.database import SettingsStore

from .base import Provider
from .keystore import KeyStore

PROVIDER_SETTING = "ai_provider"
MODEL_SETTING = "ai_model"


@dataclass(frozen=True)
class ProviderConfig:
    provider: Provider
    model: str
    has_anthropic_key: bool
    has_openrouter_key: bool

    def has_key_for(self, provider: Provider) -> bool:
        if Provider(provider) == Provider.ANTHROPIC:
            return self.has_anthropic_key
        return self.has_openrouter_key


class ProviderConfigResolver:
    """Resolves provider selection from app settings and keys from the key store."""

    def __init__(
        self,
        settings_store: SettingsStore,
        key_store: Optional[KeyStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.settings_store = settings_store
        self.key_store = key_store or KeyStore(settings=self.settings)

    def _default_provider(self) -> Provider:
        try:
            return Provider(self.settings.default_provider)
        except ValueError:
            return Provider.ANTHROPIC

    async def get_provider_config(self) -> ProviderConfig:
        """Current provider/model, defaulting whatever is not persisted."""
        stored_provider = await self.settings_store.get_setting(PROVIDER_SETTING)
        stored_model = await self.settings_store.get_setting(MODEL_SETTING)

        try:
            provider = Provider(stored_provider) if stored_provider else self._default_provider()
        except ValueError:
            logger.warning(f"Unknown stored provider '{stored_provider}', using default")
            provider = self._default_provider()

        model = stored_model or self.settings.default_model_for(provider.value)

        return ProviderConfig(
            provider=provider,
            model=model,
            has_anthropic_key=self.get_api_key(Provider.ANTHROPIC) is not None,
            has_openrouter_key=self.get_api_key(Provider.OPENROUTER) is not None,
        )

    async def save_provider_config(
        self, provider: Optional[Provider] = None, model: Optional[str] = None
    ) -> None:
        """Upsert only the fields given."""
        provider_name = Provider(provider).value if provider else None
        if provider_name:
            await self.settings_store.set_setting(PROVIDER_SETTING, provider_name)
        if model:
            await self.settings_store.set_setting(MODEL_SETTING, model)

        logger.info(f"AI provider config saved: provider={provider_name}, model={model}")

    def get_api_key(self, provider: Provider) -> Optional[str]:
        return self.key_store.get_api_key(provider)

    def save_api_key(self, provider: Provider, api_key: str) -> None:
        self.key_store.save_api_key(provider, api_key)
