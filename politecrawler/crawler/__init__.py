"""
Web crawler core components.
"""

from .errors import (CrawlerError, EmptyFrontierError, FetchFailedError,
                     MalformedUrlError, ResourceNotFoundError)
from .url_frontier import URLFrontier, URLTask
from .robots import RobotsCache, RobotsPolicy
from .fetcher import WebFetcher
from .parser import ContentParser, ParsedContent
from .scheduler import CrawlerScheduler

__all__ = [
    'CrawlerError', 'EmptyFrontierError', 'FetchFailedError',
    'MalformedUrlError', 'ResourceNotFoundError',
    'URLFrontier', 'URLTask',
    'RobotsCache', 'RobotsPolicy',
    'WebFetcher',
    'ContentParser', 'ParsedContent',
    'CrawlerScheduler'
]
