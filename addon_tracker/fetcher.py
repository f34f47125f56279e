"""
HTTP page fetching for provider resolvers and artifact downloads.
"""

import logging
import threading
import time
from typing import Dict, Optional
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .cancellation import CancellationToken
from .config import (
    MAX_RETRIES,
    REQUEST_DELAY,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF,
    RETRY_STATUS_CODES,
    USER_AGENT,
)
from .error_handling import FetchError, OperationCancelled

logger = logging.getLogger(__name__)


class PageFetcher:
    """
    Shared HTTP session that turns transport failures into ``FetchError``.

    Every request checks the cancellation token first and is bounded by the
    per-request timeout (shortened to whatever is left of the run deadline).
    With ``request_delay`` set, requests to the same host are spaced out and
    issued one at a time even when several workers share the fetcher.
    """

    def __init__(self, timeout: float = REQUEST_TIMEOUT, max_retries: int = MAX_RETRIES,
                 request_delay: float = REQUEST_DELAY, token: Optional[CancellationToken] = None):
        """
        Initialize the fetcher.

        Args:
            timeout: Per-request timeout in seconds
            max_retries: Retries for connection errors and retryable statuses
            request_delay: Minimum seconds between two requests to one host
            token: Cancellation token checked before every request
        """
        self.timeout = timeout
        self.request_delay = request_delay
        self.token = token or CancellationToken()

        self._host_locks: Dict[str, threading.Lock] = {}
        self._last_request: Dict[str, float] = {}
        self._registry_lock = threading.Lock()

        self.session = requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT})
        retries = Retry(
            total=max_retries,
            backoff_factor=RETRY_BACKOFF,
            status_forcelist=RETRY_STATUS_CODES,
            allowed_methods=["HEAD", "GET", "OPTIONS"],
        )
        adapter = HTTPAdapter(max_retries=retries)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def get(self, url: str, stream: bool = False) -> requests.Response:
        """
        Issue a GET request, following redirects.

        Args:
            url: URL to fetch
            stream: Leave the body unread so callers can stream it

        Returns:
            The successful response; ``response.url`` is the final URL

        Raises:
            FetchError: On transport failure or a non-2xx status
            OperationCancelled: If the run was cancelled
        """
        self.token.raise_if_cancelled()
        timeout = self.timeout
        remaining = self.token.remaining()
        if remaining is not None:
            if remaining <= 0:
                raise OperationCancelled("Run deadline exceeded")
            timeout = min(timeout, remaining)

        with self._host_lock(url):
            self._wait_for_turn(url)
            logger.debug(f"GET {url}")
            try:
                response = self.session.get(url, timeout=timeout, stream=stream, allow_redirects=True)
            except requests.exceptions.RequestException as e:
                raise FetchError(f"Request to {url} failed: {e}") from e
            finally:
                self._last_request[urlparse(url).netloc] = time.monotonic()

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            response.close()
            raise FetchError(f"{url} returned HTTP {response.status_code}") from e
        return response

    def get_text(self, url: str) -> str:
        """Fetch a URL and return its decoded body."""
        response = self.get(url)
        return response.text

    def get_page(self, url: str) -> BeautifulSoup:
        """Fetch a URL and parse it as HTML."""
        return BeautifulSoup(self.get_text(url), 'html.parser')

    def open_stream(self, url: str) -> requests.Response:
        """Fetch a URL without reading the body. Callers must close the response."""
        return self.get(url, stream=True)

    def _host_lock(self, url: str):
        if self.request_delay <= 0:
            return _NullLock()
        host = urlparse(url).netloc
        with self._registry_lock:
            return self._host_locks.setdefault(host, threading.Lock())

    def _wait_for_turn(self, url: str) -> None:
        if self.request_delay <= 0:
            return
        last = self._last_request.get(urlparse(url).netloc)
        if last is None:
            return
        wait = self.request_delay - (time.monotonic() - last)
        if wait > 0:
            logger.debug(f"Waiting {wait:.2f}s before next request to {urlparse(url).netloc}")
            time.sleep(wait)

    def cleanup(self) -> None:
        """Clean up resources."""
        if self.session:
            self.session.close()
            logger.debug("HTTP session closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.cleanup()


class _NullLock:
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False
