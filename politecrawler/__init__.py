"""
Polite Crawler

A concurrent, robots.txt-respecting web crawler core.
"""

__version__ = "1.0.0"
__description__ = "A polite concurrent web crawler with bounded depth and connection admission control"
