from uuid import UUID

from strawberry.dataloader import DataLoader

from ..catalog import repository
from ..database.connection import get_async_session


async def load_book_counts(keys: list[UUID]) -> list[int]:
    """Batch count the books of several authors."""
    async with get_async_session() as session:
        counts = await repository.count_books_by_author(session, keys)
    return [counts.get(key, 0) for key in keys]


class Loaders:
    def __init__(self):
        # Not cached: a websocket context outlives many books being added
        self.book_count_loader = DataLoader(load_fn=load_book_counts, cache=False)
