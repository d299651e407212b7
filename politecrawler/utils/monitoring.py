"""
Monitoring and metrics collection for the web crawler system.
"""

import time
import logging
from typing import Dict, Any, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server


class MetricsCollector:
    """Owns the Prometheus metrics of one crawl on a private registry."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.logger = logging.getLogger(__name__)
        self.registry = registry or CollectorRegistry()

        self.urls_crawled = Counter(
            'crawler_urls_crawled_total',
            'Total number of page fetches attempted',
            registry=self.registry
        )
        self.pages_stored = Counter(
            'crawler_pages_stored_total',
            'Total number of pages stored',
            registry=self.registry
        )
        self.robots_blocked = Counter(
            'crawler_robots_blocked_total',
            'URLs skipped because robots.txt disallows them',
            registry=self.registry
        )
        self.errors = Counter(
            'crawler_errors_total',
            'Total number of crawl errors',
            ['error_type'],
            registry=self.registry
        )
        self.bytes_downloaded = Counter(
            'crawler_bytes_downloaded_total',
            'Total bytes downloaded',
            registry=self.registry
        )
        self.queue_size = Gauge(
            'crawler_queue_size',
            'Number of URLs in the frontier',
            registry=self.registry
        )
        self.active_connections = Gauge(
            'crawler_active_connections',
            'Number of page fetches in progress',
            registry=self.registry
        )

    def start_prometheus_server(self, port: int):
        """Expose this registry over HTTP."""
        start_http_server(port, registry=self.registry)
        self.logger.info(f"Prometheus metrics server started on port {port}")

    def get_value(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Current value of a sample, 0.0 if it was never recorded."""
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0


class CrawlerMonitor:
    """High-level monitoring interface for the crawler."""

    def __init__(self, metrics_collector: Optional[MetricsCollector] = None):
        self.metrics = metrics_collector or MetricsCollector()
        self.start_time = time.time()

    def record_url_crawled(self):
        self.metrics.urls_crawled.inc()

    def record_page_stored(self, content_size: int):
        self.metrics.pages_stored.inc()
        self.metrics.bytes_downloaded.inc(content_size)

    def record_robots_blocked(self):
        self.metrics.robots_blocked.inc()

    def record_error(self, error_type: str):
        self.metrics.errors.labels(error_type=error_type).inc()

    def update_queue_size(self, size: int):
        self.metrics.queue_size.set(size)

    def update_active_connections(self, count: int):
        self.metrics.active_connections.set(count)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of the collected metrics."""
        runtime = time.time() - self.start_time
        stored = self.metrics.get_value('crawler_pages_stored_total')

        return {
            'runtime_seconds': runtime,
            'urls_crawled': self.metrics.get_value('crawler_urls_crawled_total'),
            'pages_stored': stored,
            'robots_blocked': self.metrics.get_value('crawler_robots_blocked_total'),
            'bytes_downloaded': self.metrics.get_value('crawler_bytes_downloaded_total'),
            'pages_per_minute': stored / (runtime / 60) if runtime > 0 else 0,
        }
