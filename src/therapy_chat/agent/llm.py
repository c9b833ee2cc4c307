"""LLM capability backed by the Anthropic Messages API."""

import logging
import os
from typing import Protocol

import anthropic

logger = logging.getLogger(__name__)

ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
ANTHROPIC_MAX_TOKENS = int(os.getenv("ANTHROPIC_MAX_TOKENS", "1024"))


class LLMError(Exception):
    """Any failure talking to the LLM provider."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class LLMClient(Protocol):
    """Given a system instruction, prior turns and a prompt, return text."""

    async def complete(
        self,
        *,
        system: str,
        history: list[dict],
        prompt: str,
        temperature: float,
    ) -> str: ...


class AnthropicClient:
    """
    Stateless request/response wrapper around AsyncAnthropic.

    The SDK client is created on first use so that importing the app does
    not require credentials.
    """

    def __init__(self, model: str = ANTHROPIC_MODEL, max_tokens: int = ANTHROPIC_MAX_TOKENS):
        self.model = model
        self.max_tokens = max_tokens
        self._client: anthropic.AsyncAnthropic | None = None

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(max_retries=0)
        return self._client

    async def complete(
        self,
        *,
        system: str,
        history: list[dict],
        prompt: str,
        temperature: float,
    ) -> str:
        messages = [*history, {"role": "user", "content": prompt}]
        logger.debug(f"LLM request: model={self.model}, messages={len(messages)}")

        try:
            response = await self._get_client().messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=temperature,
                system=system,
                messages=messages,
            )
        except anthropic.APIStatusError as e:
            raise LLMError(e.message, status_code=e.status_code) from e
        except anthropic.AnthropicError as e:
            raise LLMError(str(e) or type(e).__name__) from e

        return "".join(block.text for block in response.content if block.type == "text")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


# Global instance
llm_client = AnthropicClient()


def get_llm_client() -> LLMClient:
    return llm_client
