"""
URL Frontier implementation for managing URLs to crawl.
Plain FIFO queue of depth-tagged URLs; callers serialize access.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional

from .errors import EmptyFrontierError


@dataclass(frozen=True)
class URLTask:
    """Represents a URL crawling task."""
    url: str
    depth: int


class URLFrontier:
    """
    FIFO queue of URL tasks.

    Pop order equals push order, which gives breadth-first exploration.
    Depth is carried opaquely; the scheduler decides what it means.
    Not thread-safe: the scheduler's crawl lock guards every call.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._queue: Deque[URLTask] = deque()
        self._total_pushed = 0

    def push(self, url: str, depth: int) -> URLTask:
        """Append a URL to the tail of the frontier."""
        task = URLTask(url=url, depth=depth)
        self._queue.append(task)
        self._total_pushed += 1
        self.logger.debug(f"Added URL to frontier: {url} (depth {depth})")
        return task

    def pop(self) -> URLTask:
        """Remove and return the head of the frontier."""
        if not self._queue:
            raise EmptyFrontierError("URL frontier is empty")
        return self._queue.popleft()

    def try_pop(self) -> Optional[URLTask]:
        """Remove and return the head, or None when the frontier is empty."""
        if not self._queue:
            return None
        return self._queue.popleft()

    def size(self) -> int:
        return len(self._queue)

    def __len__(self) -> int:
        return len(self._queue)

    def is_empty(self) -> bool:
        """Check if the frontier is empty."""
        return not self._queue

    def get_stats(self) -> Dict[str, int]:
        """Get frontier statistics."""
        return {
            'total_queued': len(self._queue),
            'total_pushed': self._total_pushed,
        }
