"""Async text source for catalog documents."""
import asyncio
import httpx
from typing import Optional
import logging

from bookshelf.client import is_url, read_local
from bookshelf.errors import SourceUnavailable

logger = logging.getLogger(__name__)


class AsyncTextSource:
    """Async counterpart of TextSource."""

    def __init__(
        self,
        timeout: int = 10,
        max_concurrent: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize async source.

        Args:
            timeout: Request timeout
            max_concurrent: Maximum concurrent requests
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(max_concurrent)

        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def read(self, resource: str) -> str:
        """
        Read one document.

        Args:
            resource: File path or http(s) URL

        Returns:
            Document text

        Raises:
            SourceUnavailable: If the document cannot be read
        """
        if not is_url(resource):
            return await asyncio.to_thread(read_local, resource)

        async with self.semaphore:
            try:
                logger.info(f"Async request: {resource}")
                response = await self.client.get(resource)
            except httpx.HTTPError as e:
                logger.error(f"Async request failed: {e}")
                raise SourceUnavailable(resource, str(e))

        if response.status_code != 200:
            logger.warning(f"Status {response.status_code} for {resource}")
            raise SourceUnavailable(resource, response.reason_phrase, response.status_code)

        return response.text

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
