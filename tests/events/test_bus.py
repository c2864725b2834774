"""Tests for the notification buses."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from librarian.events.bus import (
    InMemoryNotificationBus,
    RedisNotificationBus,
    create_notification_bus,
)
from librarian.events.models import BOOK_ADDED, AuthorSnapshot, BookAdded, BookSnapshot


def make_event(title: str = "Dune") -> BookAdded:
    return BookAdded(
        book=BookSnapshot(
            id=uuid4(),
            title=title,
            published=1965,
            genres=["sci-fi"],
            author=AuthorSnapshot(id=uuid4(), name="F. Herbert"),
        )
    )


class TestInMemoryNotificationBus:
    @pytest.mark.asyncio
    async def test_every_subscriber_receives_event(self, bus):
        first = await bus.subscribe(BOOK_ADDED)
        second = await bus.subscribe(BOOK_ADDED)
        event = make_event()

        bus.publish(BOOK_ADDED, event)

        assert await asyncio.wait_for(anext(first), timeout=1) == event
        assert await asyncio.wait_for(anext(second), timeout=1) == event

    @pytest.mark.asyncio
    async def test_events_arrive_in_publish_order(self, bus):
        stream = await bus.subscribe(BOOK_ADDED)

        bus.publish(BOOK_ADDED, make_event("First"))
        bus.publish(BOOK_ADDED, make_event("Second"))

        assert (await anext(stream)).book.title == "First"
        assert (await anext(stream)).book.title == "Second"

    @pytest.mark.asyncio
    async def test_no_replay_for_late_subscribers(self, bus):
        bus.publish(BOOK_ADDED, make_event("Before"))
        stream = await bus.subscribe(BOOK_ADDED)
        bus.publish(BOOK_ADDED, make_event("After"))

        assert (await anext(stream)).book.title == "After"

    @pytest.mark.asyncio
    async def test_publish_without_subscribers(self, bus):
        bus.publish(BOOK_ADDED, make_event())
        assert bus.subscriber_count(BOOK_ADDED) == 0

    @pytest.mark.asyncio
    async def test_full_queue_drops_only_for_that_subscriber(self):
        bus = InMemoryNotificationBus(queue_size=1)
        slow = await bus.subscribe(BOOK_ADDED)
        fast = await bus.subscribe(BOOK_ADDED)

        bus.publish(BOOK_ADDED, make_event("First"))
        assert (await anext(fast)).book.title == "First"
        bus.publish(BOOK_ADDED, make_event("Second"))

        assert (await anext(slow)).book.title == "First"
        assert (await anext(fast)).book.title == "Second"

    @pytest.mark.asyncio
    async def test_aclose_unsubscribes(self, bus):
        stream = await bus.subscribe(BOOK_ADDED)
        assert bus.subscriber_count(BOOK_ADDED) == 1

        await stream.aclose()

        assert bus.subscriber_count(BOOK_ADDED) == 0
        with pytest.raises(StopAsyncIteration):
            await anext(stream)

    @pytest.mark.asyncio
    async def test_close_ends_open_streams(self, bus):
        stream = await bus.subscribe(BOOK_ADDED)
        bus.publish(BOOK_ADDED, make_event())

        await bus.close()

        received = [event async for event in stream]
        assert received == []
        assert bus.subscriber_count(BOOK_ADDED) == 0


@pytest.fixture
def mock_pubsub():
    pubsub = MagicMock()
    pubsub.subscribe = AsyncMock()
    pubsub.unsubscribe = AsyncMock()
    pubsub.aclose = AsyncMock()
    return pubsub


@pytest.fixture
def mock_redis(mock_pubsub):
    client = MagicMock()
    client.publish = AsyncMock(return_value=1)
    client.pubsub.return_value = mock_pubsub
    return client


class TestRedisNotificationBus:
    @pytest.mark.asyncio
    async def test_publish_serializes_to_prefixed_channel(self, mock_redis):
        bus = RedisNotificationBus(mock_redis)
        event = make_event()

        bus.publish(BOOK_ADDED, event)
        await bus.close()

        channel, data = mock_redis.publish.call_args.args
        assert channel == "librarian:BOOK_ADDED"
        assert json.loads(data)["book"]["title"] == "Dune"

    @pytest.mark.asyncio
    async def test_publish_failure_is_logged_not_raised(self, mock_redis):
        mock_redis.publish.side_effect = ConnectionError("redis down")
        bus = RedisNotificationBus(mock_redis)

        bus.publish(BOOK_ADDED, make_event())
        await bus.close()

        mock_redis.publish.assert_called_once()

    @pytest.mark.asyncio
    async def test_subscribe_decodes_messages(self, mock_redis, mock_pubsub):
        event = make_event()
        mock_pubsub.get_message = AsyncMock(
            side_effect=[
                None,
                {"type": "subscribe", "data": 1},
                {"type": "message", "data": "{not json"},
                {"type": "message", "data": event.model_dump_json()},
            ]
        )
        bus = RedisNotificationBus(mock_redis)

        stream = await bus.subscribe(BOOK_ADDED)
        received = await anext(stream)

        mock_pubsub.subscribe.assert_awaited_once_with("librarian:BOOK_ADDED")
        assert received == event

    @pytest.mark.asyncio
    async def test_close_unsubscribes_streams(self, mock_redis, mock_pubsub):
        bus = RedisNotificationBus(mock_redis)
        stream = await bus.subscribe(BOOK_ADDED)

        await bus.close()

        mock_pubsub.unsubscribe.assert_awaited_once_with("librarian:BOOK_ADDED")
        mock_pubsub.aclose.assert_awaited_once()
        with pytest.raises(StopAsyncIteration):
            await anext(stream)


class TestCreateNotificationBus:
    def test_memory_backend(self):
        settings = MagicMock(event_bus_backend="memory", subscriber_queue_size=5)

        bus = create_notification_bus(settings)

        assert isinstance(bus, InMemoryNotificationBus)
        assert bus.queue_size == 5

    def test_redis_backend(self):
        with patch("librarian.redis_pool.get_redis_client") as get_client:
            bus = create_notification_bus(MagicMock(event_bus_backend="redis"))

        assert isinstance(bus, RedisNotificationBus)
        assert bus.channel(BOOK_ADDED) == "librarian:BOOK_ADDED"
        get_client.assert_called_once()

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown event bus backend"):
            create_notification_bus(MagicMock(event_bus_backend="kafka"))
