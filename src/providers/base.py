"""Base LLM provider interface shared by the Anthropic and OpenRouter adapters."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Sequence

from loguru import logger

from shared.errors import ErrorKind, ProviderError


Role = Literal["system", "user", "assistant"]


class Provider(str, Enum):
    ANTHROPIC = "anthropic"
    OPENROUTER = "openrouter"


@dataclass(frozen=True)
class AIMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: int
    output_tokens: int


@dataclass
class AIResponse:
    """Uniform reply from any provider."""

    content: str
    model: str
    provider: Provider
    usage: Optional[TokenUsage] = None


class ProviderClient(ABC):
    """Sends chat messages to one provider with a bounded timeout.

    Subclasses implement `_send` against their wire protocol and map upstream
    failures to ProviderError; this base class rejects calls without a key and
    cancels calls that exceed the timeout.
    """

    provider: Provider

    def __init__(self, api_key: Optional[str], model: str, timeout: float):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    async def send_prompt(
        self,
        messages: Sequence[AIMessage],
        max_tokens: int = 2000,
        temperature: Optional[float] = None,
    ) -> AIResponse:
        """Send messages and return the reply, raising ProviderError on failure."""
        if not self.api_key:
            raise ProviderError(
                ErrorKind.MISSING_CREDENTIAL,
                f"No {self.provider.value} API key configured. Add one in the provider settings.",
            )

        logger.debug(f"Sending {len(messages)} message(s) to {self.provider.value} ({self.model})")
        try:
            return await asyncio.wait_for(
                self._send(list(messages), max_tokens, temperature),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise self.timeout_error() from None

    def timeout_error(self) -> ProviderError:
        return ProviderError(
            ErrorKind.TIMEOUT,
            f"{self.provider.value} request cancelled after {self.timeout:g} seconds (timeout).",
        )

    @abstractmethod
    async def _send(
        self,
        messages: list[AIMessage],
        max_tokens: int,
        temperature: Optional[float],
    ) -> AIResponse:
        """Issue the request over the provider's wire protocol."""

    async def close(self) -> None:
        """Release the underlying HTTP client."""
