"""Tests for the blocking record store client."""
import pytest
import requests

from bookshelf.client import RecordStoreClient
from bookshelf.errors import StoreError


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self.payload = payload
        self.text = text

    def json(self):
        if self.payload is None:
            raise ValueError("no json")
        return self.payload


class FakeSession:
    """Session double replaying queued responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.headers = {}
        self.requests = []

    def _next(self, method, url, kwargs):
        self.requests.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, **kwargs):
        return self._next("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._next("POST", url, kwargs)

    def close(self):
        pass


def make_client(responses, max_retries=3):
    session = FakeSession(responses)
    client = RecordStoreClient(
        "https://project.example.co",
        api_key="secret",
        max_retries=max_retries,
        base_backoff=0,
        session=session
    )
    return client, session


def test_select_retries_server_errors():
    """Test reads retry on 5xx and rate limiting."""
    client, session = make_client([
        FakeResponse(503),
        FakeResponse(429),
        FakeResponse(200, [{"id": 1}]),
    ])

    assert client.select("books") == [{"id": 1}]
    assert len(session.requests) == 3
    assert session.requests[0][1] == "https://project.example.co/rest/v1/books"
    assert session.headers["apikey"] == "secret"


def test_select_retries_timeouts_then_gives_up():
    """Test exhausted retries raise a store error."""
    client, session = make_client([
        requests.exceptions.Timeout(),
        requests.exceptions.ConnectionError("refused"),
    ], max_retries=2)

    with pytest.raises(StoreError):
        client.select("books")
    assert len(session.requests) == 2


def test_select_does_not_retry_client_errors():
    """Test a 4xx fails immediately."""
    client, session = make_client([FakeResponse(404, text="missing")])

    with pytest.raises(StoreError):
        client.select("books")
    assert len(session.requests) == 1


def test_select_where_builds_equality_filters():
    """Test match fields become eq filters."""
    client, session = make_client([FakeResponse(200, [])])

    client.select_where("books", {"title": "Dune", "published_year": 1965})

    params = session.requests[0][2]["params"]
    assert params["title"] == "eq.Dune"
    assert params["published_year"] == "eq.1965"


def test_insert_is_not_retried():
    """Test a failed insert is reported after one attempt."""
    client, session = make_client([FakeResponse(500), FakeResponse(201, [{"id": 1}])])

    with pytest.raises(StoreError):
        client.insert("books", {"title": "Dune"})
    assert len(session.requests) == 1


def test_insert_returns_created_row():
    """Test insert returns the first stored row."""
    client, session = make_client([FakeResponse(201, [{"id": 5, "title": "Dune"}])])

    assert client.insert("books", {"title": "Dune"}) == {"id": 5, "title": "Dune"}
    assert session.requests[0][2]["json"] == [{"title": "Dune"}]
