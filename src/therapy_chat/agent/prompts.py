"""Prompt construction for the analysis and reply calls."""

import json
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from therapy_chat.agent.analysis import Analysis
    from therapy_chat.db.models import ChatMessage

HISTORY_WINDOW = 12

ANALYSIS_SYSTEM_PROMPT = "You output ONLY valid JSON."

REPLY_SYSTEM_PROMPT = "You are a professional therapist."

_ANALYSIS_TEMPLATE = """Analyze the user's latest message in this therapy conversation.

Return ONLY a valid JSON object with exactly these five fields. No prose, no markdown, no code fences.

User message: {message}

JSON format:
{{
  "emotionalState": "string",
  "themes": ["string"],
  "riskLevel": number,
  "recommendedApproach": "string",
  "progressIndicators": ["string"]
}}
"""

_REPLY_TEMPLATE = """You are an empathetic AI therapist.

Respond in a supportive, professional way.
If the user seems at risk of self-harm, encourage them to reach out to local emergency services or a trusted person.

User message: {message}

Analysis: {analysis}
"""


def history_window(messages: Sequence["ChatMessage"]) -> list[dict]:
    """The last HISTORY_WINDOW stored turns as provider messages, oldest first."""
    return [
        {
            "role": "assistant" if m.role == "assistant" else "user",
            "content": m.content,
        }
        for m in list(messages)[-HISTORY_WINDOW:]
    ]


def build_analysis_prompt(message: str) -> str:
    return _ANALYSIS_TEMPLATE.format(message=message)


def build_reply_prompt(message: str, analysis: "Analysis") -> str:
    return _REPLY_TEMPLATE.format(
        message=message,
        analysis=json.dumps(analysis.model_dump(by_alias=True)),
    )
