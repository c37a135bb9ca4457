"""In-memory book catalog backed by a record store."""
from typing import List, Optional
import logging

from bookshelf.errors import CatalogError, DuplicateError, StoreError
from bookshelf.models import Book, Candidate, OperationResult
from bookshelf.parse import parse_inserted, parse_records

logger = logging.getLogger(__name__)

REFRESH_FAILED = "Failed to fetch books. Please try again."
CHECK_FAILED = "Error checking for existing book"
INSERT_FAILED = "Failed to add book. Please try again."
ALREADY_EXISTS = "This book already exists in the database"


class CatalogManager:
    """
    Mediates every read and write of book records.

    The store is any object with awaitable ``select``, ``select_where``
    and ``insert`` methods. Records added here are appended locally once
    the store confirms them; ``refresh`` overwrites the local list with
    whatever the store holds.

    The duplicate check and the insert are two separate round-trips, so
    two concurrent ``add`` calls for the same book can both pass the check.
    Strict uniqueness has to come from the store itself.
    """

    def __init__(self, store, collection: str = "books"):
        """
        Args:
            store: Record store collaborator
            collection: Name of the books collection in the store
        """
        self.store = store
        self.collection = collection
        self.loading = False
        self.submitting = False
        self.error: Optional[str] = None
        self._books: List[Book] = []

    def list(self) -> List[Book]:
        """Current snapshot in store order."""
        return list(self._books)

    def dismiss_error(self):
        """Clear the displayed error."""
        self.error = None

    async def refresh(self) -> OperationResult:
        """
        Replace the local list with the store's full record set.

        On failure the previous list is kept.
        """
        self.loading = True
        self.error = None
        try:
            rows = await self.store.select(self.collection)
            books = parse_records(rows)
        except Exception as e:
            return self._fail(StoreError(REFRESH_FAILED), e)
        finally:
            self.loading = False

        self._books = books
        logger.info(f"Loaded {len(books)} books")
        return OperationResult(success=True, records=self.list())

    async def add(self, candidate: Candidate) -> OperationResult:
        """
        Validate, check for an existing copy, then insert.

        Args:
            candidate: Book to create

        Returns:
            OperationResult carrying the created record or the error
        """
        self.error = None
        try:
            candidate.validate()
        except CatalogError as e:
            return self._fail(e)

        self.submitting = True
        try:
            return await self._check_and_insert(candidate)
        finally:
            self.submitting = False

    async def _check_and_insert(self, candidate: Candidate) -> OperationResult:
        try:
            existing = await self.store.select_where(self.collection, candidate.match)
        except Exception as e:
            return self._fail(StoreError(CHECK_FAILED), e)

        if not isinstance(existing, list):
            return self._fail(StoreError(CHECK_FAILED), ValueError(f"unexpected reply {existing!r}"))

        if existing:
            return self._fail(DuplicateError(ALREADY_EXISTS))

        try:
            created = parse_inserted(await self.store.insert(self.collection, candidate.to_record()))
        except Exception as e:
            return self._fail(StoreError(INSERT_FAILED), e)

        self._books.append(created)
        logger.info(f"Added book {created.id}: {created.title}")
        return OperationResult(success=True, record=created)

    def filter(self, query: Optional[str]) -> List[Book]:
        """
        Books whose title or author contains the query, ignoring case.

        An empty query returns every book.
        """
        if not query:
            return self.list()

        needle = query.lower()
        return [
            book for book in self._books
            if needle in (book.title or "").lower() or needle in (book.author or "").lower()
        ]

    def _fail(self, error: CatalogError, cause: Optional[Exception] = None) -> OperationResult:
        if cause is not None:
            logger.error(f"{error.message}: {cause}")
        else:
            logger.warning(error.message)
        self.error = error.message
        return OperationResult.failure(error)
