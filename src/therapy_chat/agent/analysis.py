"""Structured analysis of a user message: emotional state, themes, risk."""

import json
import logging
import math
import re

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .llm import LLMClient, LLMError
from .prompts import ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt

logger = logging.getLogger(__name__)

ANALYSIS_TEMPERATURE = 0.2

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


class Analysis(BaseModel):
    """LLM-derived assessment of one user message. Defaults are the neutral fallback."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    emotional_state: str = "neutral"
    themes: list[str] = Field(default_factory=list)
    risk_level: int | float = 0
    recommended_approach: str = "supportive listening"
    progress_indicators: list[str] = Field(default_factory=list)

    @field_validator("risk_level", mode="before")
    @classmethod
    def _reject_bool(cls, value: object) -> object:
        if isinstance(value, bool):
            raise ValueError("riskLevel must be a number, not a boolean")
        return value

    @field_validator("risk_level")
    @classmethod
    def _finite_non_negative(cls, value: int | float) -> int | float:
        if (isinstance(value, float) and not math.isfinite(value)) or value < 0:
            raise ValueError("riskLevel must be a finite, non-negative number")
        return value


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def parse_analysis(text: str) -> Analysis:
    """
    Parse raw model output into an Analysis.

    Raises:
        ValueError: output is not a JSON object of the Analysis shape
            (json.JSONDecodeError and pydantic.ValidationError both qualify)
    """
    data = json.loads(strip_code_fences(text))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return Analysis.model_validate(data)


async def analyze_message(llm: LLMClient, message: str, history: list[dict]) -> Analysis:
    """
    Run the analysis call. Never raises: any provider or parse failure
    yields the default Analysis.
    """
    try:
        raw = await llm.complete(
            system=ANALYSIS_SYSTEM_PROMPT,
            history=history,
            prompt=build_analysis_prompt(message),
            temperature=ANALYSIS_TEMPERATURE,
        )
    except LLMError as e:
        logger.warning(f"Analysis degraded, provider error: status={e.status_code} msg={e.message}")
        return Analysis()

    try:
        return parse_analysis(raw)
    except (ValueError, ValidationError) as e:
        logger.warning(f"Analysis degraded, unparsable output: {e}")
        return Analysis()
