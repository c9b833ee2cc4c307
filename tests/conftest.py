"""
Test fixtures for the therapy chat API tests.
"""

import json
import os

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test database before importing app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

from therapy_chat.main import app
from therapy_chat.agent.llm import LLMError, get_llm_client
from therapy_chat.agent.prompts import ANALYSIS_SYSTEM_PROMPT
from therapy_chat.db.models import Base, User
from therapy_chat.db.session import get_session
from therapy_chat.stream import EventStream, get_event_stream

ANXIOUS_ANALYSIS = {
    "emotionalState": "anxious",
    "themes": ["work", "sleep"],
    "riskLevel": 2,
    "recommendedApproach": "grounding techniques",
    "progressIndicators": ["names feelings clearly"],
}


class FakeLLM:
    """Scripted stand-in for the LLM capability. Records every call."""

    def __init__(self):
        self.calls: list[dict] = []
        self.analysis_output: str = json.dumps(ANXIOUS_ANALYSIS)
        self.reply_output: str = "It sounds like a lot is weighing on you today."
        self.analysis_error: Exception | None = None
        self.reply_error: Exception | None = None

    async def complete(self, *, system, history, prompt, temperature):
        kind = "analysis" if system == ANALYSIS_SYSTEM_PROMPT else "reply"
        self.calls.append(
            {
                "kind": kind,
                "system": system,
                "history": list(history),
                "prompt": prompt,
                "temperature": temperature,
            }
        )
        if kind == "analysis":
            if self.analysis_error:
                raise self.analysis_error
            return self.analysis_output
        if self.reply_error:
            raise self.reply_error
        return self.reply_output

    def calls_of(self, kind: str) -> list[dict]:
        return [c for c in self.calls if c["kind"] == kind]


class RecordingEventStream(EventStream):
    """EventStream that records publishes instead of talking to Redis."""

    def __init__(self):
        super().__init__()
        self.published: list[tuple[str, str, dict]] = []
        self.fail = False

    async def publish(self, session_id, event_type, data):
        if self.fail:
            raise ConnectionError("redis unavailable")
        self.published.append((session_id, event_type, data))
        return f"{len(self.published)}-0"


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Direct database session for test setup/assertions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def events():
    return RecordingEventStream()


@pytest.fixture
async def client(session_factory, fake_llm, events):
    """Async HTTP client for testing FastAPI app."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_db
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    app.dependency_overrides[get_event_stream] = lambda: events

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await events.drain()
    app.dependency_overrides.clear()


async def _make_user(db_session, user_id: str, token: str) -> User:
    user = User(id=user_id, name=user_id.title(), api_token=token)
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
async def alice(db_session) -> User:
    return await _make_user(db_session, "alice", "alice-token")


@pytest.fixture
async def bob(db_session) -> User:
    return await _make_user(db_session, "bob", "bob-token")


@pytest.fixture
def alice_headers(alice) -> dict:
    return {"Authorization": f"Bearer {alice.api_token}"}


@pytest.fixture
def bob_headers(bob) -> dict:
    return {"Authorization": f"Bearer {bob.api_token}"}


@pytest.fixture
def provider_down() -> LLMError:
    return LLMError("Service unavailable", status_code=529)
