"""Pydantic models for domain events."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from ..dbmodels import Books

BOOK_ADDED = "BOOK_ADDED"


class AuthorSnapshot(BaseModel):
    id: UUID
    name: str
    born: int | None = None


class BookSnapshot(BaseModel):
    id: UUID
    title: str
    published: int
    genres: list[str]
    author: AuthorSnapshot

    @classmethod
    def from_model(cls, book: Books) -> BookSnapshot:
        return cls(
            id=book.id,
            title=book.title,
            published=book.published,
            genres=list(book.genres),
            author=AuthorSnapshot(id=book.author.id, name=book.author.name, born=book.author.born),
        )


class BookAdded(BaseModel):
    """A book was added to the catalog."""

    model_config = {"frozen": True}

    book: BookSnapshot
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


# Payload type carried on each topic, used to decode events that crossed a process boundary
TOPIC_MODELS: dict[str, type[BaseModel]] = {
    BOOK_ADDED: BookAdded,
}
