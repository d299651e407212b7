"""
Configuration management for the web crawler system.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field, fields


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_urls: List[str] = field(default_factory=list)
    seed_depth: int = 0
    max_depth: int = 3
    politeness_delay: float = 1.0
    max_connections: int = 10
    num_workers: int = 8
    user_agent: str = "PoliteCrawler/1.0"
    request_timeout: float = 30
    max_content_size: int = 10 * 1024 * 1024


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "logs/crawler.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    prometheus_port: int = 8000
    metrics_enabled: bool = False


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


def _build_section(section_cls, data: Optional[Dict[str, Any]]):
    """Build a config dataclass from a mapping, rejecting unknown keys."""
    data = data or {}
    known = {f.name for f in fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown {section_cls.__name__} options: {', '.join(sorted(unknown))}")
    return section_cls(**data)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Load configuration from YAML file.

        Args:
            overrides: crawler options that replace the file's values
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as file:
            config_data = yaml.safe_load(file) or {}

        if overrides:
            crawler_data = dict(config_data.get('crawler') or {})
            crawler_data.update(overrides)
            config_data['crawler'] = crawler_data

        self._config = parse_config(config_data)
        return self._config

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


def parse_config(config_data: Dict[str, Any]) -> Config:
    """Build and validate a Config from already-loaded YAML data."""
    config = Config(
        crawler=_build_section(CrawlerConfig, config_data.get('crawler')),
        logging=_build_section(LoggingConfig, config_data.get('logging')),
        monitoring=_build_section(MonitoringConfig, config_data.get('monitoring'))
    )
    validate_config(config)
    return config


def validate_config(config: Config):
    """Validate configuration values."""
    crawler = config.crawler

    if not crawler.seed_urls:
        raise ValueError("At least one seed URL must be provided")

    if crawler.max_depth < 0:
        raise ValueError("max_depth must be non-negative")

    if crawler.seed_depth < 0:
        raise ValueError("seed_depth must be non-negative")

    if crawler.politeness_delay < 0:
        raise ValueError("politeness_delay must be non-negative")

    if crawler.max_connections < 1:
        raise ValueError("max_connections must be at least 1")

    if crawler.num_workers < 1:
        raise ValueError("num_workers must be at least 1")

    if crawler.max_content_size < 1:
        raise ValueError("max_content_size must be at least 1")

    logging.getLogger(__name__).debug("Configuration validation passed")


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config_manager.config


def load_config(config_path: str = "config.yaml",
                overrides: Optional[Dict[str, Any]] = None) -> Config:
    """Load configuration from file."""
    global config_manager
    config_manager = ConfigManager(config_path)
    return config_manager.load_config(overrides)
