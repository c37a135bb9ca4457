"""Pytest configuration and fixtures."""
import pytest

from bookshelf.catalog import CatalogManager
from bookshelf.errors import StoreError


class FakeStore:
    """In-memory record store that records every call."""

    def __init__(self, rows=None):
        self.rows = [dict(row) for row in rows or []]
        self.calls = []
        self.fail_on = set()
        self.next_id = len(self.rows) + 1

    async def select(self, collection):
        self.calls.append(("select", collection))
        if "select" in self.fail_on:
            raise StoreError("backend down")
        return [dict(row) for row in self.rows]

    async def select_where(self, collection, match):
        self.calls.append(("select_where", collection, dict(match)))
        if "select_where" in self.fail_on:
            raise StoreError("backend down")
        return [
            dict(row) for row in self.rows
            if all(row.get(field) == value for field, value in match.items())
        ]

    async def insert(self, collection, record):
        self.calls.append(("insert", collection, dict(record)))
        if "insert" in self.fail_on:
            raise StoreError("backend down")
        row = dict(record, id=self.next_id)
        self.next_id += 1
        self.rows.append(row)
        return row

    async def aclose(self):
        self.closed = True


@pytest.fixture
def dune_row():
    """Stored copy of Dune."""
    return {
        "id": 1,
        "title": "Dune",
        "author": "Herbert",
        "published_year": 1965,
        "link": "https://example.com/dune",
    }


@pytest.fixture
def store(dune_row):
    """Fake store holding a few books."""
    return FakeStore([
        dune_row,
        {"id": 2, "title": "Dune Messiah", "author": "Herbert",
         "published_year": 1969, "link": "https://example.com/messiah"},
        {"id": 3, "title": "Foundation", "author": "Asimov",
         "published_year": 1951, "link": "https://example.com/foundation"},
    ])


@pytest.fixture
def catalog(store):
    """Catalog manager wired to the fake store."""
    return CatalogManager(store, "books")


@pytest.fixture
def fake_store_cls():
    """Fake store class, for tests that override one call."""
    return FakeStore
