"""Redis Streams for best-effort session event notifications."""

import asyncio
import json
import logging
import os

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")
STREAM_MAX_LEN = 1000  # Max events per session stream
STREAM_TTL = 86400  # 24 hours

SESSION_MESSAGE_EVENT = "therapy/session.message"


def _stream_key(session_id: str) -> str:
    """Get Redis stream key for a session."""
    return f"session:{session_id}:events"


class EventStream:
    """
    Fire-and-forget event publishing over Redis Streams.

    notify() schedules a publish and returns immediately; failures are
    logged and dropped. Consumers read the stream with XREAD independently.
    """

    def __init__(self):
        self._redis: Redis | None = None
        self._pending: set[asyncio.Task] = set()

    async def _get_redis(self) -> Redis:
        """Get or create Redis connection."""
        if self._redis is None:
            self._redis = Redis.from_url(REDIS_URL, decode_responses=True)
        return self._redis

    async def publish(
        self,
        session_id: str,
        event_type: str,
        data: dict,
    ) -> str:
        """
        Publish an event to a session's stream.

        Returns the event ID.
        """
        redis = await self._get_redis()
        key = _stream_key(session_id)

        event_id = await redis.xadd(
            key,
            {"type": event_type, "data": json.dumps(data)},
            maxlen=STREAM_MAX_LEN,
        )

        # Stream auto-expires if no new events
        await redis.expire(key, STREAM_TTL)

        return event_id

    def notify(self, session_id: str, event_type: str, data: dict) -> asyncio.Task:
        """Schedule a publish whose outcome never reaches the caller."""
        task = asyncio.create_task(self.publish(session_id, event_type, data))
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Event publish failed (ignored): {exc!r}")

    async def drain(self) -> None:
        """Wait for outstanding notifications."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def close(self) -> None:
        """Close Redis connection."""
        await self.drain()
        if self._redis:
            await self._redis.aclose()
            self._redis = None


# Global instance
event_stream = EventStream()


def get_event_stream() -> EventStream:
    return event_stream
