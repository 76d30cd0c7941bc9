"""
File-backed store for provider API keys.

Keys live in a small YAML file outside the database, readable only by the
owner. Environment keys from Settings are used when the file has none.
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from loguru import logger

from shared.config import Settings, get_settings

from .base import Provider


class KeyStore:
    """Reads and writes provider API keys."""

    def __init__(self, path: Optional[Path] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.path = Path(path or self.settings.credentials_path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}

        with open(self.path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed credential file: {self.path}")
            return {}
        return {str(k): str(v) for k, v in data.items() if v}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False)
        os.chmod(self.path, 0o600)

    def _env_key(self, provider: Provider) -> str:
        if provider == Provider.ANTHROPIC:
            return self.settings.anthropic_api_key.get_secret_value()
        return self.settings.openrouter_api_key.get_secret_value()

    def get_api_key(self, provider: Provider) -> Optional[str]:
        """Stored key for a provider, falling back to the environment."""
        provider = Provider(provider)
        key = self._load().get(provider.value) or self._env_key(provider)
        return key or None

    def save_api_key(self, provider: Provider, api_key: str) -> None:
        """Store (or with an empty key, remove) the key for a provider."""
        provider = Provider(provider)
        data = self._load()
        api_key = api_key.strip()
        if api_key:
            data[provider.value] = api_key
        else:
            data.pop(provider.value, None)
        self._write(data)
        logger.info(f"{provider.value} API key saved")
