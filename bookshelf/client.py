"""Text sources for catalog documents, with HTTP resilience patterns."""
import time
import random
import requests
from pathlib import Path
from typing import Optional
import logging

from bookshelf.errors import SourceUnavailable

logger = logging.getLogger(__name__)


def is_url(resource: str) -> bool:
    return resource.lower().startswith(("http://", "https://"))


def read_local(resource: str, encoding: str = "utf-8") -> str:
    """Read a document from disk, mapping OS errors to SourceUnavailable."""
    try:
        return Path(resource).read_text(encoding=encoding)
    except FileNotFoundError:
        raise SourceUnavailable(resource, "not found")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceUnavailable(resource, str(e))


class TextSource:
    """Reads catalog documents from disk or HTTP with timeouts, retries, and backoff."""

    def __init__(
        self,
        timeout: int = 10,
        max_retries: int = 3,
        base_backoff: float = 1.0,
        encoding: str = "utf-8"
    ):
        """
        Initialize text source.

        Args:
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            base_backoff: Base delay for exponential backoff
            encoding: Encoding for local files
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_backoff = base_backoff
        self.encoding = encoding

        # Create session for connection pooling
        self.session = requests.Session()

    def read(self, resource: str) -> str:
        """
        Read the full document text.

        Args:
            resource: File path or http(s) URL

        Returns:
            Document text

        Raises:
            SourceUnavailable: If the document cannot be read
        """
        if is_url(resource):
            return self._fetch_with_retry(resource)

        logger.info(f"Reading catalog file: {resource}")
        return read_local(resource, self.encoding)

    def _fetch_with_retry(self, url: str) -> str:
        """
        Make HTTP request with retry logic.

        Args:
            url: Request URL

        Returns:
            Response text

        Raises:
            SourceUnavailable: On client errors or once retries are exhausted
        """
        last_error: Optional[str] = None
        last_status: Optional[int] = None

        for attempt in range(self.max_retries):
            try:
                logger.info(f"Request attempt {attempt + 1}/{self.max_retries}: {url}")

                response = self.session.get(url, timeout=self.timeout)

                if response.status_code == 200:
                    logger.info(f"Success: {response.status_code}, {len(response.text)} chars")
                    return response.text

                last_status = response.status_code
                last_error = response.reason or "HTTP error"

                if response.status_code == 429 or response.status_code >= 500:
                    # Rate limited or server error - retryable
                    logger.warning(f"Retryable status ({response.status_code}) on attempt {attempt + 1}")
                    if attempt < self.max_retries - 1:
                        self._backoff(attempt)
                    continue

                # Client error - don't retry
                logger.error(f"Client error ({response.status_code}) for {url}")
                raise SourceUnavailable(url, last_error, last_status)

            except requests.exceptions.Timeout:
                last_error = "timeout"
                logger.warning(f"Timeout on attempt {attempt + 1}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)

            except requests.exceptions.ConnectionError as e:
                last_error = f"connection error: {e}"
                logger.warning(f"Connection error on attempt {attempt + 1}: {e}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)

            except requests.exceptions.RequestException as e:
                logger.error(f"Request failed: {e}")
                raise SourceUnavailable(url, str(e))

        logger.error(f"All {self.max_retries} attempts failed")
        raise SourceUnavailable(url, last_error or "no response", last_status)

    def _backoff(self, attempt: int):
        """
        Sleep with exponential backoff and jitter.

        Args:
            attempt: Current attempt number (0-indexed)
        """
        delay = self.base_backoff * (2 ** attempt)
        jitter = random.uniform(0, delay)
        total_delay = delay + jitter

        logger.info(f"Backing off for {total_delay:.2f} seconds")
        time.sleep(total_delay)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
