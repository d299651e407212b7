"""
Crawler scheduler that coordinates crawling tasks and manages the overall crawl process.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .errors import CrawlerError, FetchFailedError, MalformedUrlError
from .parser import ContentParser, extract_domain
from .robots import FetchFunc, RobotsCache
from .url_frontier import URLFrontier, URLTask
from ..utils.config import CrawlerConfig
from ..utils.logger import CrawlerLogAdapter, get_crawler_logger
from ..utils.monitoring import CrawlerMonitor


@dataclass
class CrawlStats:
    """Statistics for crawl operations."""
    start_time: float
    urls_crawled: int = 0
    pages_stored: int = 0
    robots_blocked: int = 0
    depth_skipped: int = 0
    errors: int = 0
    total_bytes_downloaded: int = 0
    peak_connections: int = 0

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time

    @property
    def pages_per_minute(self) -> float:
        elapsed_minutes = self.elapsed_time / 60
        return self.pages_stored / elapsed_minutes if elapsed_minutes > 0 else 0


@dataclass
class CrawlState:
    """
    Everything workers share during one crawl.

    Only touched while holding CrawlerScheduler's crawl lock.
    """
    frontier: URLFrontier
    robots_cache: RobotsCache
    visited: Set[str] = field(default_factory=set)
    downloaded_pages: Dict[str, bytes] = field(default_factory=dict)
    active_connections: int = 0
    in_flight: int = 0


class CrawlerScheduler:
    """
    Runs a fixed pool of worker tasks over a shared crawl state.

    One coarse lock guards the frontier, visited set, robots cache,
    downloaded pages and counters. Page fetches run outside the lock;
    robots.txt fetches run inside it so each domain is fetched once.
    A semaphore caps concurrent page fetches at max_connections, which
    is independent of the number of workers.
    """

    def __init__(self, config: CrawlerConfig, fetch: FetchFunc,
                 monitor: Optional[CrawlerMonitor] = None):
        self.config = config
        self.fetch = fetch
        self.logger = logging.getLogger(__name__)
        self.parser = ContentParser()
        self.monitor = monitor or CrawlerMonitor()

        self.state = CrawlState(frontier=URLFrontier(), robots_cache=RobotsCache(fetch))
        self.stats = CrawlStats(start_time=time.time())
        self.is_running = False
        self.workers: List[asyncio.Task] = []

        self._lock = asyncio.Lock()
        # Signalled whenever work is pushed or an in-flight URL completes
        self._work_changed = asyncio.Condition(self._lock)
        self._admission = asyncio.Semaphore(config.max_connections)

    @property
    def downloaded_pages(self) -> Dict[str, bytes]:
        """URL -> page bytes for every successfully fetched page."""
        return self.state.downloaded_pages

    def add_seed(self, url: str, depth: Optional[int] = None) -> bool:
        """
        Queue a seed URL before the crawl starts.

        Returns False if the URL was already seeded.
        """
        if self.is_running:
            raise RuntimeError("Seeds must be added before the crawl starts")
        if depth is None:
            depth = self.config.seed_depth
        if url in self.state.visited:
            return False
        self.state.visited.add(url)
        self.state.frontier.push(url, depth)
        return True

    def add_seed_urls(self) -> int:
        """Queue the configured seed URLs. Returns count of added URLs."""
        added_count = sum(1 for url in self.config.seed_urls if self.add_seed(url))
        self.logger.info(f"Added {added_count} seed URLs to frontier")
        return added_count

    async def start_crawling(self) -> Dict[str, bytes]:
        """
        Run the crawl until no work is queued or in flight.

        Returns:
            The downloaded pages mapping
        """
        if self.is_running:
            raise RuntimeError("Crawler is already running")

        self.is_running = True
        self.stats = CrawlStats(start_time=time.time())

        try:
            self.workers = [
                asyncio.create_task(self._worker(f"worker-{i}"))
                for i in range(self.config.num_workers)
            ]
            self.logger.info(
                f"Started crawling with {self.config.num_workers} workers, "
                f"max {self.config.max_connections} connections"
            )

            await asyncio.gather(*self.workers)
            self._log_final_stats()
        finally:
            self.is_running = False
            await self._cleanup_workers()

        return self.downloaded_pages

    async def _worker(self, worker_id: str):
        """
        Worker coroutine that processes URLs from the frontier.
        """
        log = get_crawler_logger(__name__, worker_id=worker_id)
        log.debug("Worker started")

        while True:
            url_task = await self._next_task()
            if url_task is None:
                break

            processed = False
            try:
                processed = await self._process_url(url_task, log)
            except Exception as e:
                log.error(f"Unexpected error processing {url_task.url}: {e}", exc_info=True)
                processed = True
                async with self._lock:
                    self.stats.errors += 1
                self.monitor.record_error('unexpected')
            finally:
                await self._finish_task()

            if processed:
                await asyncio.sleep(self.config.politeness_delay)

        log.debug("Worker finished")

    async def _next_task(self) -> Optional[URLTask]:
        """
        Pop the next task, or None once the crawl is complete.

        An empty frontier only ends the crawl when nothing is in flight;
        otherwise a sibling may still enqueue links, so wait and re-check.
        """
        async with self._work_changed:
            while True:
                url_task = self.state.frontier.try_pop()
                if url_task is not None:
                    self.state.in_flight += 1
                    self.monitor.update_queue_size(len(self.state.frontier))
                    return url_task

                if self.state.in_flight == 0:
                    self._work_changed.notify_all()
                    return None

                await self._work_changed.wait()

    async def _finish_task(self):
        async with self._work_changed:
            self.state.in_flight -= 1
            self._work_changed.notify_all()

    async def _process_url(self, url_task: URLTask, log: CrawlerLogAdapter) -> bool:
        """
        Process a single URL task.

        Returns False when the task was discarded for depth without any
        work, True otherwise.
        """
        url = url_task.url

        if url_task.depth > self.config.max_depth:
            async with self._lock:
                self.stats.depth_skipped += 1
            log.log_url_event(logging.DEBUG, url, 'depth_exceeded',
                              f"Skipping URL beyond max depth: {url}")
            return False

        try:
            domain = extract_domain(url)
            async with self._lock:
                allowed = await self.state.robots_cache.resolve(domain, url, self.config.user_agent)
        except MalformedUrlError as e:
            await self._record_error('malformed_url')
            log.log_url_event(logging.WARNING, url, 'malformed_url', str(e))
            return True
        except CrawlerError as e:
            await self._record_error('robots_error')
            log.log_url_event(logging.WARNING, url, 'robots_error',
                              f"Could not check robots.txt for {url}: {e}")
            return True

        if not allowed:
            async with self._lock:
                self.stats.robots_blocked += 1
            self.monitor.record_robots_blocked()
            log.log_url_event(logging.INFO, url, 'robots_blocked',
                              f"Skipping {url} due to robots.txt rules")
            return True

        try:
            content = await self._fetch_page(url)
        except FetchFailedError as e:
            await self._record_error('fetch_failed')
            log.log_url_event(logging.WARNING, url, 'fetch_failed', str(e))
            return True

        parsed_content = self.parser.parse(url, content)
        added_count = await self._enqueue_links(parsed_content.links, url_task.depth + 1)

        async with self._lock:
            if url not in self.state.downloaded_pages:
                self.state.downloaded_pages[url] = content
                self.stats.pages_stored += 1
                self.stats.total_bytes_downloaded += len(content)
        self.monitor.record_page_stored(len(content))

        log.log_url_event(logging.INFO, url, 'stored',
                          f"Stored {url} ({len(content)} bytes, {added_count} new links)")
        return True

    async def _fetch_page(self, url: str) -> bytes:
        """Fetch a page inside an admission slot."""
        async with self._admission:
            async with self._lock:
                self.state.active_connections += 1
                self.stats.urls_crawled += 1
                self.stats.peak_connections = max(self.stats.peak_connections,
                                                  self.state.active_connections)
                self.monitor.update_active_connections(self.state.active_connections)
            self.monitor.record_url_crawled()

            try:
                return await self.fetch(url, {'User-Agent': self.config.user_agent})
            finally:
                async with self._lock:
                    self.state.active_connections -= 1
                    self.monitor.update_active_connections(self.state.active_connections)

    async def _enqueue_links(self, links: List[str], depth: int) -> int:
        """Queue links not seen before. Returns count of added URLs."""
        added_count = 0
        async with self._work_changed:
            for link in links:
                if link in self.state.visited:
                    continue
                self.state.visited.add(link)
                self.state.frontier.push(link, depth)
                added_count += 1

            if added_count:
                self.monitor.update_queue_size(len(self.state.frontier))
                self._work_changed.notify_all()
        return added_count

    async def _record_error(self, error_type: str):
        async with self._lock:
            self.stats.errors += 1
        self.monitor.record_error(error_type)

    def _log_final_stats(self):
        """Log final crawl statistics."""
        self.logger.info("=== CRAWL COMPLETED ===")
        self.logger.info(f"Pages fetched: {self.stats.urls_crawled}")
        self.logger.info(f"Pages stored: {self.stats.pages_stored}")
        self.logger.info(f"Blocked by robots.txt: {self.stats.robots_blocked}")
        self.logger.info(f"Beyond max depth: {self.stats.depth_skipped}")
        self.logger.info(f"Errors: {self.stats.errors}")
        self.logger.info(f"Peak connections: {self.stats.peak_connections}")
        self.logger.info(f"Domains with robots policy: {len(self.state.robots_cache)}")
        self.logger.info(f"Total time: {self.stats.elapsed_time:.2f} seconds")
        self.logger.info(f"Data downloaded: {self.stats.total_bytes_downloaded / 1024 / 1024:.1f} MB")

    async def stop_crawling(self):
        """Stop the crawling process."""
        self.logger.info("Stopping crawler...")
        self.is_running = False
        await self._cleanup_workers()

    async def _cleanup_workers(self):
        """Cancel and cleanup worker tasks."""
        if self.workers:
            for worker in self.workers:
                if not worker.done():
                    worker.cancel()

            await asyncio.gather(*self.workers, return_exceptions=True)
            self.workers.clear()

    def get_stats(self) -> Dict:
        """Get current crawl statistics."""
        return {
            'urls_crawled': self.stats.urls_crawled,
            'pages_stored': self.stats.pages_stored,
            'robots_blocked': self.stats.robots_blocked,
            'depth_skipped': self.stats.depth_skipped,
            'errors': self.stats.errors,
            'peak_connections': self.stats.peak_connections,
            'elapsed_time': self.stats.elapsed_time,
            'pages_per_minute': self.stats.pages_per_minute,
            'total_bytes_downloaded': self.stats.total_bytes_downloaded,
            'urls_in_queue': len(self.state.frontier),
            'urls_seen': len(self.state.visited),
            'is_running': self.is_running
        }
