"""Async HTTP client for the hosted record store."""
import httpx
from typing import List, Optional, Dict, Any
import logging

from bookshelf.errors import StoreError

logger = logging.getLogger(__name__)


class AsyncRecordStoreClient:
    """Async client for a PostgREST-style table API."""

    REST_PATH = "/rest/v1"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: int = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize async client.

        Args:
            base_url: Project URL of the backend
            api_key: API key sent as apikey and bearer token
            timeout: Request timeout
            transport: Optional transport override
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

        headers = {"Accept": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"

        # Create async HTTP client
        self.client = httpx.AsyncClient(
            base_url=self.base_url + self.REST_PATH,
            headers=headers,
            timeout=timeout,
            transport=transport
        )

    async def select(self, collection: str) -> List[Dict[str, Any]]:
        """
        Fetch every row of a collection.

        Args:
            collection: Table name

        Returns:
            List of rows
        """
        return await self._request("GET", collection, params={"select": "*"})

    async def select_where(
        self,
        collection: str,
        match: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        """
        Fetch rows whose fields equal the given values exactly.

        Args:
            collection: Table name
            match: Field name to required value

        Returns:
            List of matching rows
        """
        params = {"select": "*"}
        for field, value in match.items():
            params[field] = f"eq.{value}"

        return await self._request("GET", collection, params=params)

    async def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a single row and return it as stored.

        Args:
            collection: Table name
            record: Row without id

        Returns:
            Created row carrying its assigned id
        """
        rows = await self._request(
            "POST",
            collection,
            json=[record],
            headers={"Prefer": "return=representation"}
        )

        if not isinstance(rows, list) or not rows:
            raise StoreError("Record store did not return the created book")
        return rows[0]

    async def _request(self, method: str, collection: str, **kwargs) -> Any:
        """Issue one request and decode its JSON body."""
        try:
            logger.info(f"Async request: {method} {collection}")
            response = await self.client.request(method, f"/{collection}", **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Async request failed: {e}")
            raise StoreError(f"Could not reach record store: {e}") from e

        if response.status_code >= 400:
            logger.warning(f"Status {response.status_code} for {method} {collection}: {response.text}")
            raise StoreError(f"Record store returned {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise StoreError("Malformed response from record store") from e

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def aclose(self):
        """Alias of close for callers that treat stores uniformly."""
        await self.close()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
