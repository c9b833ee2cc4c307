"""Therapeutic reply generation."""

import logging

from therapy_chat.errors import ReplyProviderError

from .analysis import Analysis
from .llm import LLMClient, LLMError
from .prompts import REPLY_SYSTEM_PROMPT, build_reply_prompt

logger = logging.getLogger(__name__)

REPLY_TEMPERATURE = 0.7

DEFAULT_REPLY = "I'm here with you. Can you tell me more about what you're feeling?"


async def generate_reply(
    llm: LLMClient,
    message: str,
    history: list[dict],
    analysis: Analysis,
) -> str:
    """
    Generate the assistant reply.

    Raises:
        ReplyProviderError: the provider call failed
    """
    try:
        raw = await llm.complete(
            system=REPLY_SYSTEM_PROMPT,
            history=history,
            prompt=build_reply_prompt(message, analysis),
            temperature=REPLY_TEMPERATURE,
        )
    except LLMError as e:
        logger.error(f"Reply generation failed: status={e.status_code} msg={e.message}")
        raise ReplyProviderError(e.message) from e

    return raw.strip() or DEFAULT_REPLY
