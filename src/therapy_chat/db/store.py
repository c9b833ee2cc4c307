"""Session store adapter: ownership-checked access to chat sessions."""

import logging
from collections.abc import Sequence
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from therapy_chat.errors import SessionNotFound, StoreUnavailable, UserNotFound
from therapy_chat.timeutil import utc_now

from .models import ChatMessage, ChatSession, User

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Create, find, append to and list chat sessions.

    Every lookup filters on owner as part of the same query, so a session
    that belongs to someone else is indistinguishable from one that does
    not exist.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: str) -> User | None:
        try:
            return await self.db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error(f"User lookup failed for {user_id}: {e}")
            raise StoreUnavailable("Failed to load user") from e

    async def resolve_token(self, token: str) -> str | None:
        """Return the id of the user holding this bearer token, if any."""
        try:
            result = await self.db.execute(select(User.id).where(User.api_token == token))
        except SQLAlchemyError as e:
            logger.error(f"Token lookup failed: {e}")
            raise StoreUnavailable("Failed to resolve credentials") from e
        return result.scalar_one_or_none()

    async def create_session(self, owner_id: str) -> ChatSession:
        """Create an active, empty session owned by owner_id."""
        if await self.get_user(owner_id) is None:
            raise UserNotFound("User not found")

        now = utc_now()
        session = ChatSession(
            session_id=str(uuid4()),
            owner_id=owner_id,
            status="active",
            start_time=now,
            updated_at=now,
            messages=[],
        )
        try:
            self.db.add(session)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create session for {owner_id}: {e}")
            raise StoreUnavailable("Failed to create session") from e

        logger.info(f"Created session {session.session_id} for user {owner_id}")
        return session

    async def find_session(self, session_id: str, owner_id: str) -> ChatSession:
        """Load a session with its messages, or raise SessionNotFound."""
        try:
            result = await self.db.execute(
                select(ChatSession)
                .where(ChatSession.session_id == session_id, ChatSession.owner_id == owner_id)
                .options(selectinload(ChatSession.messages))
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to load session {session_id}: {e}")
            raise StoreUnavailable("Failed to load session", session_id=session_id) from e

        session = result.scalar_one_or_none()
        if session is None:
            raise SessionNotFound("Session not found", session_id=session_id)
        return session

    async def append_messages(self, session: ChatSession, messages: Sequence[ChatMessage]) -> None:
        """
        Append messages to the end of a session in one transaction.

        On failure the transaction is rolled back, so none of the messages
        are visible to later reads.
        """
        if not messages:
            return

        session_id = session.session_id
        now = utc_now()
        for message in messages:
            if message.timestamp is None:
                message.timestamp = now

        try:
            session.messages.extend(messages)
            session.updated_at = max(m.timestamp for m in messages)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to append {len(messages)} messages to {session_id}: {e}")
            raise StoreUnavailable("Failed to persist session", session_id=session_id) from e

    async def list_sessions(self, owner_id: str) -> list[ChatSession]:
        """All sessions owned by owner_id, most recently updated first."""
        try:
            result = await self.db.execute(
                select(ChatSession)
                .where(ChatSession.owner_id == owner_id)
                .options(selectinload(ChatSession.messages))
                .order_by(ChatSession.updated_at.desc(), ChatSession.id.desc())
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to list sessions for {owner_id}: {e}")
            raise StoreUnavailable("Failed to list sessions") from e
        return list(result.scalars().all())
