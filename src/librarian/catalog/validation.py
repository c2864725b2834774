"""
Input checks for catalog mutations.

These functions do no I/O and look at nothing but their arguments. The first
violated rule wins; rules are checked in the order they are listed.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

MIN_TITLE_LENGTH = 3
MIN_AUTHOR_NAME_LENGTH = 3


class Violation(Enum):
    TITLE_TOO_SHORT = "title_too_short"
    AUTHOR_NAME_TOO_SHORT = "author_name_too_short"
    NO_GENRES = "no_genres"
    EMPTY_GENRE = "empty_genre"


VIOLATION_MESSAGES = {
    Violation.TITLE_TOO_SHORT: "Book title too short",
    Violation.AUTHOR_NAME_TOO_SHORT: "Author name too short",
    Violation.NO_GENRES: "Books require at least 1 genre",
    Violation.EMPTY_GENRE: "Genres must not be empty",
}

# Argument each violation points at, reported back to clients as invalidArgs
VIOLATION_FIELDS = {
    Violation.TITLE_TOO_SHORT: "title",
    Violation.AUTHOR_NAME_TOO_SHORT: "author",
    Violation.NO_GENRES: "genres",
    Violation.EMPTY_GENRE: "genres",
}


@dataclass(frozen=True)
class ValidationResult:
    violation: Violation | None = None

    @property
    def ok(self) -> bool:
        return self.violation is None

    @property
    def message(self) -> str | None:
        return VIOLATION_MESSAGES[self.violation] if self.violation else None

    @property
    def field(self) -> str | None:
        return VIOLATION_FIELDS[self.violation] if self.violation else None


VALID = ValidationResult()


def validate_book_input(title: str, author_name: str, genres: Sequence[str]) -> ValidationResult:
    """Check the arguments of `addBook`."""
    if len(title) < MIN_TITLE_LENGTH:
        return ValidationResult(Violation.TITLE_TOO_SHORT)
    if len(author_name) < MIN_AUTHOR_NAME_LENGTH:
        return ValidationResult(Violation.AUTHOR_NAME_TOO_SHORT)
    if len(genres) < 1:
        return ValidationResult(Violation.NO_GENRES)
    if any(not genre for genre in genres):
        return ValidationResult(Violation.EMPTY_GENRE)
    return VALID


def validate_author_edit(name: str, set_born_to: int) -> ValidationResult:
    """Check the arguments of `editAuthor`.

    Nothing beyond the schema types is required; whether the author exists is
    decided by the lookup that follows.
    """
    _ = name, set_born_to
    return VALID
