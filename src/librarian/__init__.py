"""
Librarian backend
GraphQL catalog of books, authors and readers
"""

__version__ = "0.1.0"

from .config import settings

__all__ = ["settings", "__version__"]
