"""Session change events handed to the real-time transport.

The session service emits exactly one event per committed mutation and none
for rejected ones. Delivery to connected clients is the transport's concern.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Protocol

import orjson
from loguru import logger
from pydantic import BaseModel, Field
from redis.asyncio import Redis

from app.schemas import SessionState

from ..utils.clock import utc_now
from ..utils.idgen import new_event_id


class SessionEventType(str, Enum):
    CREATED = "session.created"
    UPDATED = "session.updated"
    JOINED = "session.joined"
    LIVE = "session.live"
    CANCELLED = "session.cancelled"
    COMPLETED = "session.completed"
    CHAT = "session.chat"
    DELETED = "session.deleted"

    def __str__(self) -> str:
        return self.value


class SessionEvent(BaseModel):
    event_id: str = Field(default_factory=new_event_id)
    event_type: SessionEventType
    session_id: str
    actor_id: str | None = None
    status: SessionState | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=utc_now)


class SessionEventPublisher(Protocol):
    async def publish(self, event: SessionEvent) -> None: ...

    async def close(self) -> None: ...


class RedisSessionEventPublisher:
    """Publishes events on the Redis pub/sub channel `<prefix>:<session_id>`."""

    def __init__(self, redis_client: Redis, channel_prefix: str = "sessions"):
        self.redis_client = redis_client
        self.channel_prefix = channel_prefix

    def channel_for(self, session_id: str) -> str:
        return f"{self.channel_prefix}:{session_id}"

    async def publish(self, event: SessionEvent) -> None:
        channel = self.channel_for(event.session_id)
        receivers = await self.redis_client.publish(
            channel, orjson.dumps(event.model_dump(mode="json"))
        )
        logger.debug("Published {} to {} ({} receivers)", event.event_type, channel, receivers)

    async def close(self) -> None:
        await self.redis_client.aclose()


class InMemorySessionEventPublisher:
    """Keeps published events in a list, in publish order."""

    def __init__(self):
        self.events: list[SessionEvent] = []

    async def publish(self, event: SessionEvent) -> None:
        self.events.append(event)

    async def close(self) -> None:
        return None

    def of_type(self, event_type: SessionEventType) -> list[SessionEvent]:
        return [e for e in self.events if e.event_type == event_type]


class NullSessionEventPublisher:
    async def publish(self, event: SessionEvent) -> None:
        logger.debug("Dropping event {} for session {}", event.event_type, event.session_id)

    async def close(self) -> None:
        return None
