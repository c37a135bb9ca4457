"""HTTP client for the hosted record store with resilience patterns."""
import time
import random
import requests
from typing import Optional, Dict, Any, List
import logging

from bookshelf.errors import StoreError

logger = logging.getLogger(__name__)


class RecordStoreClient:
    """Blocking client for a PostgREST-style table API with timeouts, retries, and backoff."""

    REST_PATH = "/rest/v1"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: int = 10,
        max_retries: int = 3,
        base_backoff: float = 1.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize record store client.

        Args:
            base_url: Project URL of the backend
            api_key: API key sent as apikey and bearer token
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts for reads
            base_backoff: Base delay for exponential backoff
            session: Optional preconfigured session
        """
        self.base_url = base_url.rstrip("/") + self.REST_PATH
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_backoff = base_backoff

        # Create session for connection pooling
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if api_key:
            self.session.headers.update({
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}"
            })

    def select(self, collection: str) -> List[Dict[str, Any]]:
        """
        Fetch every row of a collection.

        Args:
            collection: Table name

        Returns:
            List of rows
        """
        url = f"{self.base_url}/{collection}"
        return self._get_with_retry(url, {"select": "*"})

    def select_where(self, collection: str, match: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Fetch rows whose fields equal the given values exactly."""
        params = {"select": "*"}
        for field, value in match.items():
            params[field] = f"eq.{value}"
        return self._get_with_retry(f"{self.base_url}/{collection}", params)

    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a single row. Not retried: a lost response may still have
        written the row.

        Args:
            collection: Table name
            record: Row without id

        Returns:
            Created row carrying its assigned id
        """
        url = f"{self.base_url}/{collection}"
        try:
            response = self.session.post(
                url,
                json=[record],
                headers={"Prefer": "return=representation"},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Insert failed: {e}")
            raise StoreError(f"Could not reach record store: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Insert rejected ({response.status_code}): {response.text}")
            raise StoreError(f"Record store returned {response.status_code}")

        rows = self._decode(response)
        if not isinstance(rows, list) or not rows:
            raise StoreError("Record store did not return the created book")
        return rows[0]

    def _get_with_retry(self, url: str, params: Dict[str, Any]) -> Any:
        """
        Make GET request with retry logic.

        Args:
            url: Request URL
            params: Query parameters

        Returns:
            Decoded response JSON

        Raises:
            StoreError: on a client error or once all retries are exhausted
        """
        for attempt in range(self.max_retries):
            try:
                logger.info(f"Request attempt {attempt + 1}/{self.max_retries}: {url}")

                response = self.session.get(
                    url,
                    params=params,
                    timeout=self.timeout
                )

                # Handle different status codes
                if response.status_code < 400:
                    logger.info(f"Success: {response.status_code}")
                    return self._decode(response)

                elif response.status_code == 429:
                    # Rate limited - must retry with backoff
                    logger.warning(f"Rate limited (429) on attempt {attempt + 1}")

                elif response.status_code >= 500:
                    # Server error - retryable
                    logger.warning(f"Server error ({response.status_code}) on attempt {attempt + 1}")

                else:
                    # Client error - don't retry
                    logger.error(f"Client error ({response.status_code}): {response.text}")
                    raise StoreError(f"Record store returned {response.status_code}")

            except requests.exceptions.Timeout:
                logger.warning(f"Timeout on attempt {attempt + 1}")

            except requests.exceptions.ConnectionError as e:
                logger.warning(f"Connection error on attempt {attempt + 1}: {e}")

            if attempt < self.max_retries - 1:
                self._backoff(attempt)

        logger.error(f"All {self.max_retries} attempts failed")
        raise StoreError(f"Record store unavailable after {self.max_retries} attempts")

    @staticmethod
    def _decode(response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise StoreError("Malformed response from record store") from e

    def _backoff(self, attempt: int):
        """
        Sleep with exponential backoff and jitter.

        Args:
            attempt: Current attempt number (0-indexed)
        """
        # Exponential backoff: base * 2^attempt
        delay = self.base_backoff * (2 ** attempt)

        # Add jitter: random value between 0 and delay
        jitter = random.uniform(0, delay)
        total_delay = delay + jitter

        logger.info(f"Backing off for {total_delay:.2f} seconds")
        time.sleep(total_delay)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
