"""
Contest event publishing.

One broker per process: built in the app lifespan, kept on `app.state.broker`,
closed at shutdown, handed to request handlers through `get_broker`. Channels
are user ids (an entrant hears about votes on their entry) plus `contests`
for lifecycle events.
"""
from __future__ import annotations
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_tz
from typing import Any
import structlog
from fastapi import Request
from redis import asyncio as aioredis
from redis.exceptions import RedisError
from pixelpost.config import settings

log = structlog.get_logger()

CONTESTS_CHANNEL = "contests"


class EventBroker(ABC):
    @abstractmethod
    async def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        ...

    async def close(self) -> None:
        return None


class RedisEventBroker(EventBroker):
    def __init__(self, url: str, prefix: str):
        self._redis = aioredis.from_url(url)
        self._prefix = prefix

    async def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        message = json.dumps({
            "event": event,
            "payload": payload,
            "sent_at": datetime.now(dt_tz.utc).isoformat(),
        }, default=str)
        try:
            receivers = await self._redis.publish(f"{self._prefix}:{channel}", message)
        except RedisError as e:
            # delivery is best effort; the contest write already committed
            log.warning("event.publish_failed", channel=channel, event_name=event, error=str(e))
            return
        log.debug("event.published", channel=channel, event_name=event, receivers=receivers)

    async def close(self) -> None:
        await self._redis.aclose()


@dataclass
class PublishedEvent:
    channel: str
    event: str
    payload: dict[str, Any]


@dataclass
class MemoryEventBroker(EventBroker):
    events: list[PublishedEvent] = field(default_factory=list)

    async def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        self.events.append(PublishedEvent(channel, event, payload))

    def named(self, event: str) -> list[PublishedEvent]:
        return [e for e in self.events if e.event == event]


def build_broker() -> EventBroker:
    if settings.event_broker == "memory":
        return MemoryEventBroker()
    return RedisEventBroker(settings.redis_url, settings.event_channel_prefix)


def get_broker(request: Request) -> EventBroker:
    return request.app.state.broker
