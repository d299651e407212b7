"""
HTTP transport for the crawler, built on aiohttp.

fetch() returns raw bytes on a 2xx response and raises otherwise, so the
crawler can tell missing resources apart from every other failure.
"""

import asyncio
import logging
from typing import Dict, Optional

import aiohttp
from aiohttp import ClientError, ClientSession, ClientTimeout

from .errors import FetchFailedError, ResourceNotFoundError

MAX_CONTENT_SIZE = 10 * 1024 * 1024  # 10 MiB
NOT_FOUND_STATUSES = (404, 410)


class WebFetcher:
    """
    Fetches web pages with a body size cap and classified errors.
    """

    def __init__(self, user_agent: str, request_timeout: float = 30,
                 max_content_size: int = MAX_CONTENT_SIZE, connection_limit: int = 100):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_content_size = max_content_size
        self.connection_limit = connection_limit

        self.logger = logging.getLogger(__name__)
        self.session: Optional[ClientSession] = None

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'not_found': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout)
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit=self.connection_limit,
                    ttl_dns_cache=300,
                    use_dns_cache=True
                )
            )
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str, headers: Optional[Dict[str, str]] = None) -> bytes:
        """
        Fetch a single URL.

        Args:
            url: The URL to fetch
            headers: Extra request headers, merged over the session defaults

        Returns:
            The response body

        Raises:
            ResourceNotFoundError: the server answered 404 or 410
            FetchFailedError: any other status, transport error, timeout or
                a body larger than max_content_size
        """
        if self.session is None:
            await self.start()

        self.stats['total_requests'] += 1
        try:
            async with self.session.get(url, headers=headers) as response:
                if response.status in NOT_FOUND_STATUSES:
                    self.stats['not_found'] += 1
                    raise ResourceNotFoundError(url, response.status)
                if not 200 <= response.status < 300:
                    raise FetchFailedError(url, f"HTTP {response.status}", response.status)

                content = await self._read_content(url, response)

        except FetchFailedError:
            self.stats['failed_requests'] += 1
            raise
        except asyncio.TimeoutError as e:
            self.stats['failed_requests'] += 1
            self.logger.warning(f"Timeout fetching {url}")
            raise FetchFailedError(url, "request timeout") from e
        except ClientError as e:
            self.stats['failed_requests'] += 1
            self.logger.warning(f"Client error fetching {url}: {e}")
            raise FetchFailedError(url, f"client error: {e}") from e

        self.stats['successful_requests'] += 1
        self.stats['total_bytes_downloaded'] += len(content)
        self.logger.debug(f"Fetched {url}: {len(content)} bytes")
        return content

    async def _read_content(self, url: str, response) -> bytes:
        """Read the body in chunks, failing once it exceeds the size cap."""
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_content_size:
            raise FetchFailedError(url, f"content too large ({content_length} bytes)", response.status)

        body = bytearray()
        async for chunk in response.content.iter_chunked(8192):
            body.extend(chunk)
            if len(body) > self.max_content_size:
                raise FetchFailedError(url, "content exceeded size limit during reading", response.status)
        return bytes(body)

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()

    def reset_stats(self):
        """Reset statistics counters."""
        for key in self.stats:
            self.stats[key] = 0
