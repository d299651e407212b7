#!/usr/bin/env python3
"""
Main entry point for the polite web crawler.
"""

import asyncio
import argparse
import dataclasses
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from politecrawler import __version__
from politecrawler.crawler.fetcher import WebFetcher
from politecrawler.crawler.scheduler import CrawlerScheduler
from politecrawler.utils.config import Config, load_config
from politecrawler.utils.logger import setup_logging
from politecrawler.utils.monitoring import CrawlerMonitor


class CrawlerApp:
    """Main application class for the web crawler."""

    def __init__(self):
        self.scheduler: Optional[CrawlerScheduler] = None
        self.logger = logging.getLogger(__name__)
        self._shutdown_event = asyncio.Event()

    def setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, self._request_shutdown, signum)

    def _request_shutdown(self, signum):
        self.logger.info(f"Received signal {signum}, initiating shutdown...")
        self._shutdown_event.set()

    async def run(self, config: Config, dry_run: bool = False) -> int:
        """Run the web crawler."""
        setup_logging(dataclasses.asdict(config.logging), enable_json=config.logging.json)
        self.setup_signal_handlers()

        self.logger.info("=== WEB CRAWLER STARTING ===")
        self.logger.info(f"Seed URLs: {config.crawler.seed_urls}")
        self.logger.info(f"Max depth: {config.crawler.max_depth}")
        self.logger.info(f"Workers: {config.crawler.num_workers}")
        self.logger.info(f"Max connections: {config.crawler.max_connections}")
        self.logger.info(f"Politeness delay: {config.crawler.politeness_delay}s")

        monitor = CrawlerMonitor()
        if config.monitoring.metrics_enabled:
            monitor.metrics.start_prometheus_server(config.monitoring.prometheus_port)

        try:
            async with WebFetcher(
                user_agent=config.crawler.user_agent,
                request_timeout=config.crawler.request_timeout,
                max_content_size=config.crawler.max_content_size
            ) as fetcher:
                if dry_run:
                    self.logger.info("DRY RUN MODE: No actual crawling will be performed")
                    await self._dry_run(config, fetcher)
                    return 0

                self.scheduler = CrawlerScheduler(config.crawler, fetcher.fetch, monitor)
                self.scheduler.add_seed_urls()

                crawl_task = asyncio.create_task(self.scheduler.start_crawling())
                shutdown_task = asyncio.create_task(self._shutdown_event.wait())

                done, pending = await asyncio.wait(
                    [crawl_task, shutdown_task],
                    return_when=asyncio.FIRST_COMPLETED
                )

                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

                if shutdown_task in done:
                    self.logger.info("Shutdown requested, stopping crawler...")
                    await self.scheduler.stop_crawling()
                else:
                    crawl_task.result()

                self._report(self.scheduler)

        except Exception as e:
            self.logger.error(f"Fatal error: {e}", exc_info=True)
            return 1

        finally:
            self.logger.info("=== WEB CRAWLER FINISHED ===")

        return 0

    def _report(self, scheduler: CrawlerScheduler):
        """Log every downloaded page with its size."""
        pages = scheduler.downloaded_pages
        self.logger.info(f"Crawling complete. Downloaded {len(pages)} pages.")
        for url, content in pages.items():
            self.logger.info(f"URL: {url}, Size: {len(content)} bytes")

    async def _dry_run(self, config: Config, fetcher: WebFetcher):
        """Fetch the first seed once to test configuration and connectivity."""
        test_url = config.crawler.seed_urls[0]
        try:
            content = await fetcher.fetch(test_url)
            self.logger.info(f"✓ Test fetch successful: {test_url} ({len(content)} bytes)")
        except Exception as e:
            self.logger.warning(f"✗ Test fetch failed: {e}")

        self.logger.info("Dry run completed")


def build_config(config_path: str, seeds: Optional[List[str]] = None,
                 max_depth: Optional[int] = None) -> Config:
    """Load the YAML configuration and apply command-line overrides."""
    overrides = {}
    if seeds:
        overrides['seed_urls'] = list(seeds)
    if max_depth is not None:
        overrides['max_depth'] = max_depth
    return load_config(config_path, overrides)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Polite Web Crawler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                                # Run with default config.yaml
  python main.py --config my_config.yaml        # Run with custom config
  python main.py --seed https://example.com     # Override seed URLs
  python main.py --max-depth 1                  # Override max depth
  python main.py --dry-run                      # Test configuration only
        """
    )

    parser.add_argument(
        '--config',
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )

    parser.add_argument(
        '--seed',
        action='append',
        help='Seed URL (repeatable, replaces configured seeds)'
    )

    parser.add_argument(
        '--max-depth',
        type=int,
        help='Maximum link depth to crawl'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Test configuration without actually crawling'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Polite Crawler {__version__}'
    )

    args = parser.parse_args()

    if not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found.")
        print("Please create a config.yaml file or specify a different path with --config")
        return 1

    try:
        config = build_config(args.config, args.seed, args.max_depth)
    except ValueError as e:
        print(f"Error: Invalid configuration: {e}")
        return 1

    app = CrawlerApp()
    try:
        return asyncio.run(app.run(config, dry_run=args.dry_run))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
