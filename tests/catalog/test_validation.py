"""Tests for catalog input rules."""

import pytest

from librarian.catalog.validation import (
    VALID,
    Violation,
    validate_author_edit,
    validate_book_input,
)


class TestValidateBookInput:
    def test_valid_input(self):
        result = validate_book_input("Dune", "F. Herbert", ["sci-fi"])

        assert result == VALID
        assert result.ok
        assert result.message is None

    @pytest.mark.parametrize(
        "title,author,genres,violation",
        [
            ("Du", "F. Herbert", ["sci-fi"], Violation.TITLE_TOO_SHORT),
            ("Dune", "FH", ["sci-fi"], Violation.AUTHOR_NAME_TOO_SHORT),
            ("Dune", "F. Herbert", [], Violation.NO_GENRES),
            ("Dune", "F. Herbert", ["sci-fi", ""], Violation.EMPTY_GENRE),
        ],
    )
    def test_single_violation(self, title, author, genres, violation):
        assert validate_book_input(title, author, genres).violation is violation

    def test_title_checked_first(self):
        result = validate_book_input("", "", [])

        assert result.violation is Violation.TITLE_TOO_SHORT
        assert result.message == "Book title too short"
        assert result.field == "title"

    def test_author_checked_before_genres(self):
        result = validate_book_input("Dune", "", [])

        assert result.violation is Violation.AUTHOR_NAME_TOO_SHORT
        assert result.message == "Author name too short"
        assert result.field == "author"

    def test_minimum_lengths_are_inclusive(self):
        assert validate_book_input("abc", "xyz", ["g"]).ok

    def test_missing_genre_message(self):
        result = validate_book_input("Dune", "F. Herbert", [])

        assert result.message == "Books require at least 1 genre"
        assert result.field == "genres"


def test_author_edit_has_no_extra_rules():
    assert validate_author_edit("Nobody", -500).ok
