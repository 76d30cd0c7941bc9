"""
OpenRouter adapter over its OpenAI-compatible chat-completions endpoint.
"""

from typing import Any, Optional

import openai
from loguru import logger
from openai import AsyncOpenAI

from shared.errors import ErrorKind, ProviderError

from .base import AIMessage, AIResponse, Provider, ProviderClient, TokenUsage

# Upstream status codes with a dedicated error kind
_STATUS_KINDS = {
    401: (ErrorKind.INVALID_KEY, "OpenRouter API key is invalid. Check the key in the provider settings."),
    402: (ErrorKind.INSUFFICIENT_FUNDS, "Insufficient credits on the OpenRouter account."),
    429: (ErrorKind.RATE_LIMITED, "Rate limit reached. Please wait a moment and try again."),
}


class OpenRouterClient(ProviderClient):
    """Sends prompts to OpenRouter using the OpenAI SDK."""

    provider = Provider.OPENROUTER

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        timeout: float = 60.0,
        base_url: str = "https://openrouter.ai/api/v1",
        referer: str = "",
        app_title: str = "",
    ):
        super().__init__(api_key, model, timeout)
        self.base_url = base_url
        self.referer = referer
        self.app_title = app_title
        self._client: Optional[AsyncOpenAI] = None

    @property
    def headers(self) -> dict[str, str]:
        """Attribution headers OpenRouter uses for app rankings."""
        headers = {}
        if self.referer:
            headers["HTTP-Referer"] = self.referer
        if self.app_title:
            headers["X-Title"] = self.app_title
        return headers

    @property
    def client(self) -> AsyncOpenAI:
        """Get or create OpenAI-compatible client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
                default_headers=self.headers,
            )
        return self._client

    async def _send(
        self,
        messages: list[AIMessage],
        max_tokens: int,
        temperature: Optional[float],
    ) -> AIResponse:
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if temperature is not None:
            params["temperature"] = temperature

        try:
            response = await self.client.chat.completions.create(**params)
        except openai.APITimeoutError:
            raise self.timeout_error() from None
        except openai.APIStatusError as e:
            body = e.response.text
            logger.error(f"OpenRouter API error {e.status_code}: {body}")
            kind, message = _STATUS_KINDS.get(
                e.status_code,
                (ErrorKind.PROVIDER_ERROR, f"OpenRouter error ({e.status_code}): {body}"),
            )
            raise ProviderError(kind, message, status_code=e.status_code, body=body) from e
        except openai.APIConnectionError as e:
            raise ProviderError(
                ErrorKind.PROVIDER_ERROR, f"Could not reach OpenRouter: {e}"
            ) from e

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""

        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens or 0,
                output_tokens=response.usage.completion_tokens or 0,
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
