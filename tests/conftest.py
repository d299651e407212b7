"""
Shared fixtures: an in-memory fetch stub standing in for the HTTP transport.
"""

import asyncio
from typing import Dict, List, Optional, Union

import pytest

from politecrawler.crawler.errors import ResourceNotFoundError
from politecrawler.utils.config import CrawlerConfig

PageValue = Union[bytes, str, Exception]


class StubFetcher:
    """
    Async fetch callable backed by dictionaries.

    Unknown pages and unknown robots.txt files raise ResourceNotFoundError.
    Tracks every call and the number of concurrent page fetches.
    """

    def __init__(self, pages: Optional[Dict[str, PageValue]] = None,
                 robots: Optional[Dict[str, PageValue]] = None, delay: float = 0.0,
                 robots_delay: float = 0.0):
        self.pages = pages or {}
        self.robots = robots or {}
        self.delay = delay
        self.robots_delay = robots_delay
        self.calls: List[str] = []
        self.headers: List[Dict[str, str]] = []
        self.active = 0
        self.peak = 0

    async def __call__(self, url: str, headers: Dict[str, str]) -> bytes:
        self.calls.append(url)
        self.headers.append(headers)

        if url.startswith('http://') and url.endswith('/robots.txt'):
            domain = url[len('http://'):-len('/robots.txt')]
            await asyncio.sleep(self.robots_delay)
            return self._resolve(url, self.robots.get(domain))

        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
            return self._resolve(url, self.pages.get(url))
        finally:
            self.active -= 1

    @staticmethod
    def _resolve(url: str, value: Optional[PageValue]) -> bytes:
        if value is None:
            raise ResourceNotFoundError(url)
        if isinstance(value, Exception):
            raise value
        if isinstance(value, str):
            return value.encode('utf-8')
        return value

    def count(self, url: str) -> int:
        return self.calls.count(url)

    def robots_calls(self) -> List[str]:
        return [url for url in self.calls if url.endswith('/robots.txt')]


@pytest.fixture
def crawler_config():
    return CrawlerConfig(
        seed_urls=['https://x.test/'],
        max_depth=1,
        politeness_delay=0,
        max_connections=4,
        num_workers=4,
        user_agent='TestBot/1.0'
    )
