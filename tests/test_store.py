"""
Tests for the session store adapter.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from therapy_chat.api.sessions import MessageResponse
from therapy_chat.db.models import ChatMessage
from therapy_chat.db.store import SessionStore
from therapy_chat.errors import SessionNotFound, StoreUnavailable, UserNotFound
from therapy_chat.timeutil import as_utc


@pytest.fixture
def store(db_session):
    return SessionStore(db_session)


@pytest.mark.asyncio
async def test_create_session_defaults(store, alice):
    session = await store.create_session(alice.id)

    assert session.status == "active"
    assert session.owner_id == alice.id
    assert session.messages == []
    assert session.start_time is not None
    assert session.session_id != str(session.id)


@pytest.mark.asyncio
async def test_create_session_unknown_user(store):
    with pytest.raises(UserNotFound):
        await store.create_session("ghost")


@pytest.mark.asyncio
async def test_session_ids_are_unique(store, alice):
    ids = {(await store.create_session(alice.id)).session_id for _ in range(5)}

    assert len(ids) == 5


@pytest.mark.asyncio
async def test_find_missing_and_foreign_look_the_same(store, alice, bob):
    session = await store.create_session(alice.id)

    with pytest.raises(SessionNotFound) as foreign:
        await store.find_session(session.session_id, bob.id)
    with pytest.raises(SessionNotFound) as missing:
        await store.find_session("no-such-session", bob.id)

    assert type(foreign.value) is type(missing.value)
    assert foreign.value.message == missing.value.message


@pytest.mark.asyncio
async def test_append_preserves_order(store, session_factory, alice):
    session = await store.create_session(alice.id)
    await store.append_messages(session, [ChatMessage(role="user", content="one")])
    await store.append_messages(
        session,
        [ChatMessage(role="assistant", content="two"), ChatMessage(role="user", content="three")],
    )

    async with session_factory() as db:
        reloaded = await SessionStore(db).find_session(session.session_id, alice.id)
    assert [m.content for m in reloaded.messages] == ["one", "two", "three"]


@pytest.mark.asyncio
async def test_append_is_all_or_nothing(store, session_factory, alice):
    """A failing append should leave none of its messages behind."""
    # The rollback expires every object loaded through this db session
    owner_id = alice.id
    session = await store.create_session(owner_id)
    session_id = session.session_id

    with pytest.raises(StoreUnavailable):
        await store.append_messages(
            session,
            [
                ChatMessage(role="user", content="valid"),
                ChatMessage(role="assistant", content=None),  # violates NOT NULL
            ],
        )

    async with session_factory() as db:
        reloaded = await SessionStore(db).find_session(session_id, owner_id)
        stored = await db.scalar(select(func.count()).select_from(ChatMessage))
    assert reloaded.messages == []
    assert stored == 0


@pytest.mark.asyncio
async def test_append_nothing_is_noop(store, alice):
    session = await store.create_session(alice.id)
    before = session.updated_at

    await store.append_messages(session, [])

    assert session.updated_at == before


@pytest.mark.asyncio
async def test_list_sessions_by_latest_activity(store, alice, bob):
    older = await store.create_session(alice.id)
    newer = await store.create_session(alice.id)
    await store.create_session(bob.id)

    later = datetime.now(timezone.utc) + timedelta(seconds=5)
    await store.append_messages(older, [ChatMessage(role="user", content="hi", timestamp=later)])

    sessions = await store.list_sessions(alice.id)
    assert [s.session_id for s in sessions] == [older.session_id, newer.session_id]


@pytest.mark.asyncio
async def test_resolve_token(store, alice):
    assert await store.resolve_token("alice-token") == alice.id
    assert await store.resolve_token("nobody") is None


@pytest.mark.asyncio
async def test_timestamp_round_trip(store, session_factory, alice):
    """A stored timestamp, serialized and parsed back, should be the same instant."""
    session = await store.create_session(alice.id)
    sent_at = datetime(2026, 3, 1, 14, 30, 15, 123456, tzinfo=timezone.utc)
    await store.append_messages(session, [ChatMessage(role="user", content="hi", timestamp=sent_at)])

    async with session_factory() as db:
        reloaded = await SessionStore(db).find_session(session.session_id, alice.id)
    stored = reloaded.messages[0]

    serialized = MessageResponse(
        role=stored.role, content=stored.content, timestamp=stored.timestamp
    ).model_dump(mode="json")["timestamp"]
    parsed = as_utc(datetime.fromisoformat(serialized))

    assert parsed == sent_at
    assert as_utc(parsed) == parsed
