"""
Static document fetcher using httpx.

Used to read sitemap XML over plain HTTP when no browser session is
needed. A single pass per URL; failures raise to the caller.
"""

from typing import Optional, Dict
import httpx
import logging

logger = logging.getLogger(__name__)


class StaticCrawler:
    """
    Wrapper for fetching static documents.

    Uses a reusable httpx.AsyncClient with connection pooling.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None
    ):
        """
        Initialize the static crawler.

        Args:
            timeout: Request timeout in seconds
            headers: Custom HTTP headers
        """
        self.timeout = timeout
        self.headers = headers or {
            'User-Agent': 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
            'Accept': 'application/xml,text/xml;q=0.9,text/html;q=0.8,*/*;q=0.7',
            'Accept-Language': 'en-US,en;q=0.9',
        }
        # Reusable HTTP client with connection pooling
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create reusable HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                timeout=self.timeout,
                headers=self.headers,
                limits=httpx.Limits(
                    max_keepalive_connections=5,
                    max_connections=10,
                    keepalive_expiry=30.0
                )
            )
        return self._client

    async def fetch(self, url: str) -> str:
        """
        Fetch a URL and return its body as text.

        Raises:
            httpx.HTTPError: On transport failure or an error status
        """
        logger.debug(f"StaticCrawler fetching: {url}")
        client = await self._get_client()
        response = await client.get(url)
        response.raise_for_status()
        return response.text

    async def close(self):
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
