"""Data models for books."""
import re
from dataclasses import dataclass, asdict
from datetime import date
from typing import Optional, Tuple, Dict, Any, Mapping
from urllib.parse import urlparse

from bookshelf.errors import ValidationError

MIN_PUBLISHED_YEAR = 1000
REQUIRED_FIELDS = ("title", "author", "published_year", "link")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass
class Book:
    """Persisted book record."""
    id: Any
    title: str
    author: str
    published_year: int
    link: str
    description: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str, int]:
        """Uniqueness triple."""
        return (self.title, self.author, self.published_year)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Candidate:
    """Book proposed for insertion, not yet carrying a store id."""
    title: Optional[str] = None
    author: Optional[str] = None
    published_year: Optional[int] = None
    link: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_form(cls, data: Mapping[str, Any]) -> "Candidate":
        """
        Build a candidate from raw form or command-line values.

        The year is read like a numeric input field: the leading integer
        is used and anything unparsable counts as missing.

        Args:
            data: Mapping of field name to raw value

        Returns:
            Candidate (not validated)
        """
        return cls(
            title=data.get("title"),
            author=data.get("author"),
            published_year=_parse_year(data.get("published_year")),
            link=data.get("link"),
            description=data.get("description") or None,
        )

    @property
    def match(self) -> Dict[str, Any]:
        """Equality predicate used for the duplicate check."""
        return {
            "title": self.title,
            "author": self.author,
            "published_year": self.published_year,
        }

    def validate(self) -> None:
        """
        Check required fields before any store access.

        Raises:
            ValidationError: naming the first problem found
        """
        missing = [name for name in REQUIRED_FIELDS if _is_blank(getattr(self, name))]
        if missing:
            raise ValidationError(f"All fields are required (missing: {', '.join(missing)})")

        not_text = [name for name in ("title", "author", "link") if not isinstance(getattr(self, name), str)]
        if not_text:
            raise ValidationError(f"Fields must be text: {', '.join(not_text)}")

        year = self.published_year
        if isinstance(year, bool) or not isinstance(year, int):
            raise ValidationError("Published year must be a whole number")

        current_year = date.today().year
        if not MIN_PUBLISHED_YEAR <= year <= current_year:
            raise ValidationError(
                f"Published year must be between {MIN_PUBLISHED_YEAR} and {current_year}"
            )

        parsed = urlparse(self.link)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError("Link must be an http(s) URL")

    def to_record(self) -> Dict[str, Any]:
        """Insert payload; the store assigns the id."""
        record = {
            "title": self.title,
            "author": self.author,
            "published_year": self.published_year,
            "link": self.link,
        }
        if self.description:
            record["description"] = self.description
        return record


@dataclass
class OperationResult:
    """Outcome of a catalog operation, surfaced as data."""
    success: bool
    record: Optional[Book] = None
    records: Optional[list] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def failure(cls, error) -> "OperationResult":
        return cls(success=False, error_kind=error.kind, message=error.message)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _parse_year(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    found = _LEADING_INT.match(str(value))
    return int(found.group(1)) if found else None
