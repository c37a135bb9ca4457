"""Tests for book models."""
from datetime import date

import pytest

from bookshelf.errors import ValidationError
from bookshelf.models import Book, Candidate


def test_candidate_from_form_parses_year_like_number_input():
    """Test the year keeps its leading integer."""
    candidate = Candidate.from_form({
        "title": "Dune",
        "author": "Herbert",
        "published_year": "1965",
        "link": "https://example.com/dune",
    })

    assert candidate.published_year == 1965
    assert Candidate.from_form({"published_year": "1965abc"}).published_year == 1965
    assert Candidate.from_form({"published_year": "abc"}).published_year is None
    assert Candidate.from_form({"published_year": ""}).published_year is None


def test_candidate_validate_accepts_complete_candidate():
    """Test a complete candidate passes, including the current year."""
    Candidate("Dune", "Herbert", date.today().year, "http://example.com/dune").validate()


def test_candidate_validate_reports_missing_fields():
    """Test every missing field is named."""
    with pytest.raises(ValidationError) as excinfo:
        Candidate(title="Dune", link="").validate()

    assert "author" in excinfo.value.message
    assert "published_year" in excinfo.value.message
    assert "link" in excinfo.value.message
    assert excinfo.value.kind == "ValidationError"


def test_candidate_validate_rejects_non_integer_year():
    """Test a string year is not accepted by the manager check."""
    with pytest.raises(ValidationError):
        Candidate("Dune", "Herbert", "1965", "https://example.com").validate()


def test_candidate_to_record_omits_empty_description():
    """Test the insert payload carries no id."""
    record = Candidate("Dune", "Herbert", 1965, "https://example.com").to_record()

    assert record == {
        "title": "Dune",
        "author": "Herbert",
        "published_year": 1965,
        "link": "https://example.com",
    }


def test_book_key_is_exact_triple():
    """Test the uniqueness key is not normalized."""
    book = Book(1, " Dune", "Herbert", 1965, "https://example.com")

    assert book.key == (" Dune", "Herbert", 1965)
