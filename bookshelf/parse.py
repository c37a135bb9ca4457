"""Parse and normalize record store responses."""
from typing import Dict, Any, List, Optional
import logging

from bookshelf.errors import StoreError
from bookshelf.models import Book

logger = logging.getLogger(__name__)


def parse_record(row: Dict[str, Any]) -> Optional[Book]:
    """
    Parse a single row returned by the record store.

    Args:
        row: Row mapping as returned by the store

    Returns:
        Book object or None if the row is unusable
    """
    try:
        book_id = row.get("id")
        if book_id is None or book_id == "":
            return None

        year = row.get("published_year")
        return Book(
            id=book_id,
            title=str(row.get("title") or ""),
            author=str(row.get("author") or ""),
            published_year=int(year) if year is not None else None,
            link=str(row.get("link") or ""),
            description=row.get("description")
        )
    except (AttributeError, TypeError, ValueError) as e:
        # Skip the row, keep the rest of the listing
        logger.warning(f"Failed to parse book row: {e}")
        return None


def parse_records(rows: Any) -> List[Book]:
    """
    Parse a full listing response.

    Args:
        rows: Response body from a select call

    Returns:
        List of Book objects in store order

    Raises:
        StoreError: if the response is not a list of rows
    """
    if not isinstance(rows, list):
        raise StoreError("Malformed response from record store")

    books = []
    for row in rows:
        book = parse_record(row)
        if book:
            books.append(book)

    return books


def parse_inserted(payload: Any) -> Book:
    """
    Parse the record returned by an insert.

    Args:
        payload: A row mapping, or a list holding one row

    Returns:
        The created Book

    Raises:
        StoreError: if no usable record came back
    """
    if isinstance(payload, list):
        payload = payload[0] if payload else None

    book = parse_record(payload) if isinstance(payload, dict) else None
    if book is None:
        raise StoreError("Record store did not return the created book")
    return book
