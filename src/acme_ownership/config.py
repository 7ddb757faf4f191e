"""
Configuration dataclasses for the ACME ownership verifier.

This module defines the configuration structures used throughout the
system: platform API access, the polling budget of the verification state
machine, logging, and output language.
"""

from dataclasses import dataclass, field
from typing import Optional


DEFAULT_API_BASE_URL = "https://terminus.pantheon.io/api"
DEFAULT_DOCS_LINK = "https://pantheon.io/docs/guides/launch/domains"


@dataclass
class ApiConfig:
    """Platform API access configuration."""

    base_url: str = DEFAULT_API_BASE_URL
    token: Optional[str] = None
    client_id: str = "acme-ownership"
    timeout_seconds: float = 30.0
    docs_link: str = DEFAULT_DOCS_LINK


@dataclass
class PollingConfig:
    """Budget of the verification polling loop."""

    interval_seconds: float = 10.0
    max_attempts: int = 15
    max_fetch_failures: int = 3
    max_missing_results: int = 10
    deadline_seconds: Optional[float] = None


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "warn"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class SystemConfig:
    """Main system configuration combining all sub-configurations."""

    api: ApiConfig = field(default_factory=ApiConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    language: str = "en"  # 'en' or 'de'
