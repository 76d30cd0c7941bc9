"""
Provider layer - uniform access to Anthropic and OpenRouter.
"""

from .base import AIMessage, AIResponse, Provider, ProviderClient, TokenUsage
from .catalog import ModelCatalog, ModelInfo, get_model_catalog
from .config import ProviderConfig, ProviderConfigResolver
from .factory import create_client
from .keystore import KeyStore
from .service import AIProviderService, ConnectionTestResult

__all__ = [
    "AIMessage",
    "AIResponse",
    "Provider",
    "ProviderClient",
    "TokenUsage",
    "ModelCatalog",
    "ModelInfo",
    "get_model_catalog",
    "ProviderConfig",
    "ProviderConfigResolver",
    "create_client",
    "KeyStore",
    "AIProviderService",
    "ConnectionTestResult",
]
