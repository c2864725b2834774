"""
Tests for book resolvers
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from librarian.catalog import repository
from librarian.database.connection import get_async_session
from librarian.events.models import BOOK_ADDED
from librarian.graphql.errors import BAD_USER_INPUT, CatalogError, ErrorKind
from librarian.graphql.resolvers.book import (
    add_book,
    resolve_all_books,
    resolve_book_count,
    subscribe_book_added,
)


async def catalog_counts() -> tuple[int, int]:
    async with get_async_session() as session:
        return await repository.count_books(session), await repository.count_authors(session)


@pytest.mark.integration
class TestAddBook:
    """Tests for the add_book mutation."""

    @pytest.mark.asyncio
    async def test_add_book_creates_author(self, db, authenticated_info):
        book = await add_book(authenticated_info, "Dune", "F. Herbert", 1965, ["sci-fi"])

        assert book.title == "Dune"
        assert book.published == 1965
        assert book.genres == ["sci-fi"]
        assert book.author.name == "F. Herbert"
        assert book.author.born is None
        assert await catalog_counts() == (1, 1)

    @pytest.mark.asyncio
    async def test_second_book_reuses_author(self, db, authenticated_info):
        first = await add_book(authenticated_info, "Dune", "F. Herbert", 1965, ["sci-fi"])
        second = await add_book(
            authenticated_info, "Children of Dune", "F. Herbert", 1976, ["sci-fi"]
        )

        assert first.author.id == second.author.id
        assert await catalog_counts() == (2, 1)

    @pytest.mark.asyncio
    async def test_unauthenticated(self, db, anonymous_info):
        with pytest.raises(CatalogError) as exc_info:
            await add_book(anonymous_info, "Dune", "F. Herbert", 1965, ["sci-fi"])

        assert exc_info.value.kind is ErrorKind.UNAUTHENTICATED
        assert exc_info.value.message == "not authenticated"
        assert exc_info.value.extensions["code"] == BAD_USER_INPUT
        assert await catalog_counts() == (0, 0)

    @pytest.mark.asyncio
    async def test_unauthenticated_wins_over_invalid_input(self, db, anonymous_info):
        with pytest.raises(CatalogError) as exc_info:
            await add_book(anonymous_info, "D", "F", 1965, [])

        assert exc_info.value.kind is ErrorKind.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_short_title(self, db, authenticated_info):
        with pytest.raises(CatalogError) as exc_info:
            await add_book(authenticated_info, "Du", "F. Herbert", 1965, ["sci-fi"])

        error = exc_info.value
        assert error.kind is ErrorKind.INVALID_INPUT
        assert error.message == "Book title too short"
        assert error.extensions["invalidArgs"] == {"title": "Du"}
        assert await catalog_counts() == (0, 0)

    @pytest.mark.asyncio
    async def test_no_genres_writes_nothing(self, db, authenticated_info):
        with pytest.raises(CatalogError) as exc_info:
            await add_book(authenticated_info, "Dune", "F. Herbert", 1965, [])

        assert exc_info.value.message == "Books require at least 1 genre"
        assert exc_info.value.extensions["invalidArgs"] == {"genres": []}
        assert await catalog_counts() == (0, 0)

    @pytest.mark.asyncio
    async def test_publishes_to_subscribers(self, db, authenticated_info, bus):
        stream = await bus.subscribe(BOOK_ADDED)

        book = await add_book(authenticated_info, "Dune", "F. Herbert", 1965, ["sci-fi"])

        event = await asyncio.wait_for(anext(stream), timeout=1)
        assert str(event.book.id) == book.id
        assert event.book.author.name == "F. Herbert"

    @pytest.mark.asyncio
    async def test_nothing_published_for_rejected_input(self, db, authenticated_info, bus):
        stream = await bus.subscribe(BOOK_ADDED)

        with pytest.raises(CatalogError):
            await add_book(authenticated_info, "Du", "F. Herbert", 1965, ["sci-fi"])

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(anext(stream), timeout=0.05)

    @pytest.mark.asyncio
    async def test_failing_bus_does_not_fail_mutation(self, db, authenticated_info):
        broken_bus = MagicMock()
        broken_bus.publish.side_effect = RuntimeError("bus down")
        authenticated_info.context["bus"] = broken_bus

        book = await add_book(authenticated_info, "Dune", "F. Herbert", 1965, ["sci-fi"])

        assert book.title == "Dune"
        broken_bus.publish.assert_called_once()

    @pytest.mark.asyncio
    async def test_persist_failure(self, db, authenticated_info):
        with patch(
            "librarian.graphql.resolvers.book.repository.insert_book",
            side_effect=OperationalError("INSERT", {}, Exception("disk full")),
        ):
            with pytest.raises(CatalogError) as exc_info:
                await add_book(authenticated_info, "Dune", "F. Herbert", 1965, ["sci-fi"])

        error = exc_info.value
        assert error.kind is ErrorKind.PERSIST_FAILED
        assert error.message == "Could not add book"
        assert error.extensions["invalidArgs"]["title"] == "Dune"
        assert "disk full" in error.extensions["error"]
        # The author insert shared the failed transaction
        assert await catalog_counts() == (0, 0)


@pytest.mark.integration
class TestBookQueries:
    @pytest.mark.asyncio
    async def test_book_count(self, db, authenticated_info):
        assert await resolve_book_count(authenticated_info) == 0
        await add_book(authenticated_info, "Dune", "F. Herbert", 1965, ["sci-fi"])
        assert await resolve_book_count(authenticated_info) == 1

    @pytest.mark.asyncio
    async def test_filters(self, db, authenticated_info):
        info = authenticated_info
        await add_book(info, "Dune", "F. Herbert", 1965, ["sci-fi", "classic"])
        await add_book(info, "Refactoring", "Martin Fowler", 1999, ["refactoring", "classic"])

        everything = await resolve_all_books(info)
        by_author = await resolve_all_books(info, author="Martin Fowler")
        by_genre = await resolve_all_books(info, genre="sci-fi")
        both = await resolve_all_books(info, author="Martin Fowler", genre="sci-fi")

        assert [b.title for b in everything] == ["Dune", "Refactoring"]
        assert [b.title for b in by_author] == ["Refactoring"]
        assert [b.title for b in by_genre] == ["Dune"]
        assert both == []

    @pytest.mark.asyncio
    async def test_unknown_author_gives_empty_list(self, db, authenticated_info):
        await add_book(authenticated_info, "Dune", "F. Herbert", 1965, ["sci-fi"])

        assert await resolve_all_books(authenticated_info, author="Nobody") == []

    @pytest.mark.asyncio
    async def test_empty_filters_match_everything(self, db, authenticated_info):
        info = authenticated_info
        await add_book(info, "Dune", "F. Herbert", 1965, ["sci-fi"])
        await add_book(info, "Refactoring", "Martin Fowler", 1999, ["refactoring"])

        for filters in ({"author": ""}, {"genre": ""}, {"author": "", "genre": ""}):
            books = await resolve_all_books(info, **filters)
            assert [b.title for b in books] == ["Dune", "Refactoring"], filters

        only_fowler = await resolve_all_books(info, author="Martin Fowler", genre="")
        assert [b.title for b in only_fowler] == ["Refactoring"]


@pytest.mark.integration
class TestBookAddedSubscription:
    @pytest.mark.asyncio
    async def test_subscriber_sees_books_added_after_subscribing(
        self, db, authenticated_info, anonymous_info, bus
    ):
        await add_book(authenticated_info, "Before", "F. Herbert", 1960, ["sci-fi"])

        updates = subscribe_book_added(anonymous_info)
        next_book = asyncio.ensure_future(anext(updates))
        for _ in range(100):
            if bus.subscriber_count(BOOK_ADDED):
                break
            await asyncio.sleep(0)
        assert bus.subscriber_count(BOOK_ADDED) == 1

        added = await add_book(authenticated_info, "Dune", "F. Herbert", 1965, ["sci-fi"])
        received = await asyncio.wait_for(next_book, timeout=1)

        assert received.id == added.id
        assert received.title == "Dune"
        assert received.author.name == "F. Herbert"

        await updates.aclose()
        assert bus.subscriber_count(BOOK_ADDED) == 0
