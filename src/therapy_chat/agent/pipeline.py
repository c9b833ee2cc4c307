"""Message pipeline: one user message in, one persisted therapeutic reply out."""

import logging
from dataclasses import dataclass
from enum import Enum

from therapy_chat.db.models import ChatMessage
from therapy_chat.db.store import SessionStore
from therapy_chat.errors import (
    InvalidMessage,
    ReplyProviderError,
    SessionNotFound,
    StoreUnavailable,
    Unauthenticated,
)
from therapy_chat.stream import SESSION_MESSAGE_EVENT, EventStream
from therapy_chat.timeutil import utc_now

from .analysis import Analysis, analyze_message
from .llm import LLMClient
from .prompts import history_window
from .reply import generate_reply

logger = logging.getLogger(__name__)

RISK_ALERT_THRESHOLD = 4


class Stage(str, Enum):
    AUTHENTICATED = "authenticated"
    SESSION_LOADED = "session_loaded"
    HISTORY_ASSEMBLED = "history_assembled"
    ANALYZED = "analyzed"
    REPLIED = "replied"
    PERSISTED = "persisted"
    RESPONDED = "responded"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass
class PipelineResult:
    response: str
    analysis: Analysis


class MessagePipeline:
    """
    Orchestrates a single send-message request.

    Nothing is written to the session until both LLM calls have finished,
    so a failed reply leaves the message list untouched. There is no
    per-session lock: concurrent sends to one session append in whatever
    order their transactions commit.
    """

    def __init__(self, store: SessionStore, llm: LLMClient, events: EventStream):
        self.store = store
        self.llm = llm
        self.events = events

    def _advance(self, stage: Stage, session_id: str) -> None:
        logger.debug(f"Session {session_id}: {stage.value}")

    async def send_message(self, user_id: str | None, session_id: str, message: str | None) -> PipelineResult:
        """
        Run the pipeline for one message.

        Raises:
            Unauthenticated: no caller identity
            InvalidMessage: message missing or blank
            SessionNotFound: session missing or owned by someone else
            ReplyProviderError: reply generation failed
            StoreUnavailable: the session could not be read or written
        """
        try:
            result = await self._run(user_id, session_id, message)
        except (Unauthenticated, InvalidMessage, SessionNotFound) as e:
            logger.debug(f"Session {session_id}: {Stage.REJECTED.value} ({e.message})")
            raise
        except (ReplyProviderError, StoreUnavailable) as e:
            logger.warning(f"Session {session_id}: {Stage.FAILED.value} ({e.message})")
            raise

        self._advance(Stage.RESPONDED, session_id)
        return result

    async def _run(self, user_id: str | None, session_id: str, message: str | None) -> PipelineResult:
        if not user_id:
            raise Unauthenticated("Authentication required")
        self._advance(Stage.AUTHENTICATED, session_id)

        if message is None or not message.strip():
            raise InvalidMessage("Message is required", session_id=session_id)

        session = await self.store.find_session(session_id, user_id)
        self._advance(Stage.SESSION_LOADED, session_id)

        self._notify(session_id, message)

        history = history_window(session.messages)
        self._advance(Stage.HISTORY_ASSEMBLED, session_id)

        analysis = await analyze_message(self.llm, message, history)
        if analysis.risk_level > RISK_ALERT_THRESHOLD:
            logger.warning(f"High risk detected in session {session_id}: riskLevel={analysis.risk_level}")
        self._advance(Stage.ANALYZED, session_id)

        reply = await generate_reply(self.llm, message, history, analysis)
        self._advance(Stage.REPLIED, session_id)

        now = utc_now()
        await self.store.append_messages(
            session,
            [
                ChatMessage(role="user", content=message, timestamp=now),
                ChatMessage(
                    role="assistant",
                    content=reply,
                    timestamp=now,
                    details=_assistant_metadata(analysis),
                ),
            ],
        )
        self._advance(Stage.PERSISTED, session_id)

        logger.info(f"Message exchanged in session {session_id} ({len(session.messages)} messages)")
        return PipelineResult(response=reply, analysis=analysis)

    def _notify(self, session_id: str, message: str) -> None:
        try:
            self.events.notify(session_id, SESSION_MESSAGE_EVENT, {"message": message})
        except Exception as e:
            logger.warning(f"Event notification failed (ignored): {e!r}")


def _assistant_metadata(analysis: Analysis) -> dict:
    return {
        "analysis": analysis.model_dump(by_alias=True),
        "progress": {
            "emotionalState": analysis.emotional_state,
            "riskLevel": analysis.risk_level,
        },
    }
