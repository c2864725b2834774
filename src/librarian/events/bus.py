"""
Fan-out of domain events to live subscribers.

Publishing never blocks and never raises into the caller. Delivery is best
effort: there is no durable queue behind either backend, and a subscriber
only sees events published after its subscription was registered.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel

from ..logging import get_logger
from .models import TOPIC_MODELS

if TYPE_CHECKING:
    import redis.asyncio as redis

    from ..config import Settings

logger = get_logger(__name__)

_CLOSED = object()


class EventStream(Protocol):
    """Async iterator over the events of one topic for one subscriber."""

    def __aiter__(self) -> EventStream: ...

    async def __anext__(self) -> BaseModel: ...

    async def aclose(self) -> None: ...


class NotificationBus(Protocol):
    def publish(self, topic: str, event: BaseModel) -> None:
        """Hand an event to every current subscriber of `topic` without waiting."""
        ...

    async def subscribe(self, topic: str) -> EventStream:
        """Register a subscriber; it receives events published from now on."""
        ...

    async def close(self) -> None:
        """End every open stream."""
        ...


class QueueEventStream:
    def __init__(self, bus: InMemoryNotificationBus, topic: str, queue: asyncio.Queue):
        self._bus = bus
        self._topic = topic
        self._queue = queue
        self._closed = False

    def __aiter__(self) -> QueueEventStream:
        return self

    async def __anext__(self) -> BaseModel:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._closed = True
            self._bus._unsubscribe(self._topic, self._queue)
            raise StopAsyncIteration
        return item

    async def aclose(self) -> None:
        self._closed = True
        self._bus._unsubscribe(self._topic, self._queue)


class InMemoryNotificationBus:
    """Per-process bus with one bounded queue per subscriber.

    A subscriber whose queue is full misses the event; others are unaffected.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscribers: dict[str, set[asyncio.Queue]] = defaultdict(set)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))

    def publish(self, topic: str, event: BaseModel) -> None:
        subscribers = list(self._subscribers.get(topic, ()))
        delivered = 0
        for queue in subscribers:
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("Subscriber queue full, dropping event", topic=topic)
        logger.debug(
            "Event published",
            topic=topic,
            subscribers=len(subscribers),
            delivered=delivered,
        )

    async def subscribe(self, topic: str) -> QueueEventStream:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers[topic].add(queue)
        logger.debug("Subscriber registered", topic=topic, subscribers=self.subscriber_count(topic))
        return QueueEventStream(self, topic, queue)

    def _unsubscribe(self, topic: str, queue: asyncio.Queue) -> None:
        subscribers = self._subscribers.get(topic)
        if subscribers is None:
            return
        subscribers.discard(queue)
        if not subscribers:
            del self._subscribers[topic]

    async def close(self) -> None:
        for topic, subscribers in list(self._subscribers.items()):
            for queue in list(subscribers):
                # Make room for the sentinel; pending events are abandoned on shutdown
                while not queue.empty():
                    queue.get_nowait()
                queue.put_nowait(_CLOSED)
            logger.info("Closed event streams", topic=topic, subscribers=len(subscribers))


class RedisEventStream:
    def __init__(self, pubsub, channel: str, model: type[BaseModel], on_close=None):
        self._pubsub = pubsub
        self._channel = channel
        self._model = model
        self._on_close = on_close
        self._closed = False

    def __aiter__(self) -> RedisEventStream:
        return self

    async def __anext__(self) -> BaseModel:
        while not self._closed:
            msg = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            if not msg or msg.get("type") != "message":
                continue
            try:
                return self._model.model_validate_json(msg["data"])
            except ValueError as e:
                logger.error("Discarding undecodable event", channel=self._channel, error=str(e))
        raise StopAsyncIteration

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            self._on_close(self)
        try:
            await self._pubsub.unsubscribe(self._channel)
        finally:
            await self._pubsub.aclose()


class RedisNotificationBus:
    """Bus backed by Redis pub/sub, so every API worker sees every event."""

    def __init__(self, client: redis.Redis, channel_prefix: str = "librarian"):
        self._redis = client
        self.channel_prefix = channel_prefix
        self._pending: set[asyncio.Task] = set()
        self._streams: set[RedisEventStream] = set()

    def channel(self, topic: str) -> str:
        return f"{self.channel_prefix}:{topic}"

    def publish(self, topic: str, event: BaseModel) -> None:
        channel = self.channel(topic)
        task = asyncio.get_running_loop().create_task(
            self._publish(channel, event.model_dump_json())
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _publish(self, channel: str, data: str) -> None:
        try:
            receivers = await self._redis.publish(channel, data)
            logger.debug("Event published to Redis", channel=channel, receivers=receivers)
        except Exception as e:
            logger.error("Failed to publish event to Redis", channel=channel, error=str(e))

    async def subscribe(self, topic: str) -> RedisEventStream:
        channel = self.channel(topic)
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(channel)
        logger.info("Subscribed to Redis channel", channel=channel)
        stream = RedisEventStream(
            pubsub, channel, TOPIC_MODELS[topic], on_close=self._streams.discard
        )
        self._streams.add(stream)
        return stream

    async def close(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        for stream in list(self._streams):
            await stream.aclose()
        self._streams.clear()


def create_notification_bus(settings: Settings) -> NotificationBus:
    """Build the bus selected by `event_bus_backend`."""
    backend = settings.event_bus_backend.lower()
    if backend == "memory":
        return InMemoryNotificationBus(queue_size=settings.subscriber_queue_size)
    if backend == "redis":
        from ..redis_pool import get_redis_client

        return RedisNotificationBus(get_redis_client())
    raise ValueError(f"Unknown event bus backend: {settings.event_bus_backend}")
