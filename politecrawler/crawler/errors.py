"""
Exception hierarchy for the crawler core.
"""

from typing import Optional


class CrawlerError(Exception):
    """Base exception for crawler operations."""
    pass


class EmptyFrontierError(CrawlerError):
    """Raised when popping from an empty frontier."""
    pass


class FetchFailedError(CrawlerError):
    """Raised when a fetch fails at the transport or protocol level."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {reason}")


class ResourceNotFoundError(FetchFailedError):
    """Raised when the fetched resource does not exist (e.g. HTTP 404)."""

    def __init__(self, url: str, status_code: int = 404):
        super().__init__(url, f"resource not found (HTTP {status_code})", status_code)


class MalformedUrlError(CrawlerError):
    """Raised when a URL cannot be split into scheme, host and path."""

    def __init__(self, url: str, reason: str = "missing scheme or host"):
        self.url = url
        super().__init__(f"Malformed URL {url!r}: {reason}")
