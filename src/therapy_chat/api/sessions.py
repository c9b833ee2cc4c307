"""Chat session endpoints."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from therapy_chat.agent import Analysis, LLMClient, MessagePipeline, get_llm_client
from therapy_chat.db import ChatMessage, ChatSession, SessionStore, get_session
from therapy_chat.stream import EventStream, get_event_stream
from therapy_chat.timeutil import as_utc

from .auth import get_current_user_id
from .errors import handle_chat_errors

router = APIRouter(prefix="/sessions", tags=["sessions"])


# --- Schemas ---


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    role: str
    content: str
    timestamp: datetime
    metadata: dict[str, Any] | None = None

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class SessionSummaryResponse(CamelModel):
    session_id: str
    start_time: datetime
    status: str
    last_message: str
    message_count: int

    @field_validator("start_time")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class SessionCreatedResponse(CamelModel):
    session_id: str


class SessionDetailResponse(CamelModel):
    session_id: str
    start_time: datetime
    status: str
    messages: list[MessageResponse]

    @field_validator("start_time")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class MessageCreate(BaseModel):
    # Optional so a missing field is reported as 400 rather than 422
    message: str | None = None


class SendMessageResponse(BaseModel):
    response: str
    analysis: Analysis


def _message_response(message: ChatMessage) -> MessageResponse:
    return MessageResponse(
        role="assistant" if message.role == "assistant" else "user",
        content=message.content,
        timestamp=message.timestamp,
        metadata=message.details,
    )


def _summary(session: ChatSession) -> SessionSummaryResponse:
    last = session.messages[-1].content if session.messages else ""
    return SessionSummaryResponse(
        session_id=session.session_id,
        start_time=session.start_time,
        status=session.status,
        last_message=last,
        message_count=len(session.messages),
    )


# --- Dependencies ---


def get_store(db: AsyncSession = Depends(get_session)) -> SessionStore:
    return SessionStore(db)


def get_pipeline(
    store: SessionStore = Depends(get_store),
    llm: LLMClient = Depends(get_llm_client),
    events: EventStream = Depends(get_event_stream),
) -> MessagePipeline:
    return MessagePipeline(store, llm, events)


# --- Routes ---


@router.get("", response_model=list[SessionSummaryResponse])
@handle_chat_errors
async def list_sessions(
    user_id: str = Depends(get_current_user_id),
    store: SessionStore = Depends(get_store),
) -> list[SessionSummaryResponse]:
    """List the caller's sessions, most recently active first."""
    sessions = await store.list_sessions(user_id)
    return [_summary(s) for s in sessions]


@router.post("", response_model=SessionCreatedResponse, status_code=status.HTTP_201_CREATED)
@handle_chat_errors
async def create_session(
    user_id: str = Depends(get_current_user_id),
    store: SessionStore = Depends(get_store),
) -> SessionCreatedResponse:
    """Create a new session."""
    session = await store.create_session(user_id)
    return SessionCreatedResponse(session_id=session.session_id)


@router.get("/{session_id}", response_model=SessionDetailResponse)
@handle_chat_errors
async def get_session_detail(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    store: SessionStore = Depends(get_store),
) -> SessionDetailResponse:
    """Get a session with its messages."""
    session = await store.find_session(session_id, user_id)
    return SessionDetailResponse(
        session_id=session.session_id,
        start_time=session.start_time,
        status=session.status,
        messages=[_message_response(m) for m in session.messages],
    )


@router.post("/{session_id}/messages", response_model=SendMessageResponse)
@handle_chat_errors
async def send_message(
    session_id: str,
    data: MessageCreate | None = None,
    user_id: str = Depends(get_current_user_id),
    pipeline: MessagePipeline = Depends(get_pipeline),
) -> SendMessageResponse:
    """Send a message and get the therapist's reply with its analysis."""
    result = await pipeline.send_message(user_id, session_id, data.message if data else None)
    return SendMessageResponse(response=result.response, analysis=result.analysis)


@router.get("/{session_id}/history", response_model=list[MessageResponse])
@handle_chat_errors
async def get_history(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    store: SessionStore = Depends(get_store),
) -> list[MessageResponse]:
    """Get a session's messages in conversation order."""
    session = await store.find_session(session_id, user_id)
    return [_message_response(m) for m in session.messages]
