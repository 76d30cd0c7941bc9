"""
Anthropic Messages API adapter.
"""

from typing import Any, Optional

import anthropic
from anthropic import AsyncAnthropic
from loguru import logger

from shared.errors import ErrorKind, ProviderError

from .base import AIMessage, AIResponse, Provider, ProviderClient, TokenUsage


def split_system_prompt(messages: list[AIMessage]) -> tuple[Optional[str], list[dict[str, str]]]:
    """Separate system messages from the conversation.

    The Messages API takes the system prompt as its own parameter and only
    accepts user/assistant turns in `messages`.
    """
    system_parts = [m.content for m in messages if m.role == "system"]
    conversation = [
        {"role": m.role, "content": m.content} for m in messages if m.role != "system"
    ]
    system = "\n\n".join(system_parts) if system_parts else None
    return system, conversation


class AnthropicClient(ProviderClient):
    """Sends prompts through the Anthropic SDK."""

    provider = Provider.ANTHROPIC

    def __init__(self, api_key: Optional[str], model: str, timeout: float = 30.0):
        super().__init__(api_key, model, timeout)
        self._client: Optional[AsyncAnthropic] = None

    @property
    def client(self) -> AsyncAnthropic:
        """Get or create Anthropic client."""
        if self._client is None:
            self._client = AsyncAnthropic(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def _send(
        self,
        messages: list[AIMessage],
        max_tokens: int,
        temperature: Optional[float],
    ) -> AIResponse:
        system, conversation = split_system_prompt(messages)

        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": conversation,
        }
        if system:
            params["system"] = system
        if temperature is not None:
            params["temperature"] = temperature

        try:
            response = await self.client.messages.create(**params)
        except anthropic.APITimeoutError:
            raise self.timeout_error() from None
        except anthropic.RateLimitError as e:
            raise ProviderError(
                ErrorKind.RATE_LIMITED,
                "Rate limit reached. Please wait a moment and try again.",
                status_code=429,
                body=e.response.text,
            ) from e
        except anthropic.APIStatusError as e:
            logger.error(f"Anthropic API error {e.status_code}: {e.response.text}")
            raise ProviderError(
                ErrorKind.PROVIDER_ERROR,
                f"Anthropic error ({e.status_code}): {e.message}",
                status_code=e.status_code,
                body=e.response.text,
            ) from e
        except anthropic.APIConnectionError as e:
            raise ProviderError(
                ErrorKind.PROVIDER_ERROR, f"Could not reach Anthropic: {e}"
            ) from e

        content = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            )

        return AIResponse(
            content=content,
            model=response.model or self.model,
            provider=self.provider,
            usage=usage,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
