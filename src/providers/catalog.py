"""
OpenRouter model catalog with an in-process TTL cache.
"""

import asyncio
import time
from typing import Optional

import httpx
from loguru import logger
from pydantic import BaseModel, Field

from shared.config import Settings, get_settings
from shared.errors import ErrorKind, JobMatchError


class ModelInfo(BaseModel):
    """One model offered by OpenRouter."""

    id: str
    name: str
    context_length: int = 0
    prompt_price: Optional[str] = Field(default=None, description="USD per prompt token")
    completion_price: Optional[str] = Field(default=None, description="USD per completion token")

    @property
    def is_free(self) -> bool:
        return self.prompt_price == "0" and self.completion_price == "0"


def _price(value) -> Optional[str]:
    # Unpriced models are never treated as free
    return None if value is None else str(value)


def _parse_models(payload: dict) -> list[ModelInfo]:
    if not isinstance(payload, dict):
        raise ValueError("Unexpected model list payload")

    models = []
    for item in payload.get("data") or []:
        if not isinstance(item, dict) or not item.get("id"):
            continue
        pricing = item.get("pricing") or {}
        models.append(
            ModelInfo(
                id=item["id"],
                name=item.get("name") or item["id"],
                context_length=item.get("context_length") or 0,
                prompt_price=_price(pricing.get("prompt")),
                completion_price=_price(pricing.get("completion")),
            )
        )

    # Free models first, then by name
    models.sort(key=lambda m: (not m.is_free, m.name))
    return models


class ModelCatalog:
    """Fetches the model list and caches it for `model_cache_ttl_seconds`.

    A failed refresh serves the previous list, however old, when one exists.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self._http_client = http_client
        self._models: Optional[list[ModelInfo]] = None
        self._fetched_at = 0.0
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        return (
            self._models is not None
            and (time.monotonic() - self._fetched_at) < self.settings.model_cache_ttl_seconds
        )

    async def _fetch(self) -> list[ModelInfo]:
        if self._http_client is not None:
            response = await self._http_client.get(self.settings.openrouter_models_url)
        else:
            async with httpx.AsyncClient(timeout=self.settings.openrouter_timeout) as client:
                response = await client.get(self.settings.openrouter_models_url)
        response.raise_for_status()
        return _parse_models(response.json())

    async def get_available_models(self, force_refresh: bool = False) -> list[ModelInfo]:
        if not force_refresh and self._is_fresh():
            return list(self._models)

        async with self._lock:
            # Another caller may have refreshed while we waited
            if not force_refresh and self._is_fresh():
                return list(self._models)

            try:
                models = await self._fetch()
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Error fetching OpenRouter models: {e}")
                if self._models is not None:
                    logger.warning("Returning stale cached models")
                    return list(self._models)
                raise JobMatchError(
                    ErrorKind.CATALOG_UNAVAILABLE,
                    f"Model list could not be loaded: {e}",
                ) from e

            self._models = models
            self._fetched_at = time.monotonic()

        free_count = sum(1 for m in models if m.is_free)
        logger.info(f"Loaded {len(models)} OpenRouter models ({free_count} free)")
        return list(models)


# Process-wide catalog instance
_catalog: Optional[ModelCatalog] = None


def get_model_catalog() -> ModelCatalog:
    """Get or create the shared model catalog."""
    global _catalog
    if _catalog is None:
        _catalog = ModelCatalog()
    return _catalog
