"""
Crawler configuration.

Settings are loaded from environment variables (and a `.env` file when one
exists); command-line flags are applied on top by the CLI. The site registry
maps known storefronts to their output file prefix.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from pydantic import field_validator
from pydantic_settings import BaseSettings

from .base import ConfigurationError


@dataclass
class SiteConfig:
    """Configuration for a crawlable storefront."""
    name: str                     # Full display name
    base_url: str                 # Storefront root, sitemap.xml lives here
    output_prefix: str            # Prefix for product CSV files


# ============================================================
# SITE CONFIGURATIONS
# ============================================================

SITES = {
    'pihut': SiteConfig(
        name='The Pi Hut',
        base_url='https://thepihut.com',
        output_prefix='pihut',
    ),
}

DEFAULT_SITE = 'pihut'

TRUE_VALUES = {'true', '1', 'yes', 'on'}


class Settings(BaseSettings):
    """Crawler settings loaded from environment variables."""

    # Target
    target_url: Optional[str] = None
    selector: Optional[str] = None
    login_url: Optional[str] = None

    # Mode
    crawl_sitemap: bool = False
    max_products: int = 0
    batch_size: int = 10
    sitemap_fetcher: str = "browser"  # "browser" or "http"
    skip_failed_sitemaps: bool = False

    # Browser
    headless: bool = False
    browser_profile_dir: str = ".browser_profile"
    navigation_timeout: float = 60.0

    # Output
    output_dir: str = "outputs"

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_dir: str = "logs"

    @field_validator('crawl_sitemap', 'headless', 'skip_failed_sitemaps', mode='before')
    @classmethod
    def _parse_flag(cls, value):
        # Only explicit truthy strings enable a flag; anything else is False
        if isinstance(value, bool):
            return value
        return str(value if value is not None else '').strip().lower() in TRUE_VALUES

    @field_validator('max_products', mode='before')
    @classmethod
    def _parse_max_products(cls, value):
        try:
            return max(int(str(value).strip()), 0)
        except (TypeError, ValueError):
            return 0

    @field_validator('batch_size', mode='before')
    @classmethod
    def _parse_batch_size(cls, value):
        try:
            size = int(str(value).strip())
        except (TypeError, ValueError):
            return 10
        return size if size > 0 else 10

    @field_validator('sitemap_fetcher', mode='before')
    @classmethod
    def _parse_fetcher(cls, value):
        fetcher = str(value or 'browser').strip().lower()
        if fetcher not in ('browser', 'http'):
            raise ValueError(f"sitemap_fetcher must be 'browser' or 'http', got '{value}'")
        return fetcher

    @property
    def profile_path(self) -> Path:
        """Absolute path of the persistent browser profile."""
        return Path(self.browser_profile_dir).resolve()

    @property
    def output_path(self) -> Path:
        """Absolute path of the output directory."""
        return Path(self.output_dir).resolve()

    @property
    def log_file(self) -> Path:
        """Get the log file path."""
        return Path(self.log_dir) / "crawler.log"

    def validate_mode(self):
        """
        Check that the requested mode has what it needs.

        Raises:
            ConfigurationError: If single-page mode lacks a URL or selector
        """
        if not self.crawl_sitemap and (not self.target_url or not self.selector):
            raise ConfigurationError("Single-page mode requires both a target URL and a CSS selector")

    class Config:
        # Only load .env if it exists to avoid permission errors
        env_file = ".env" if __import__("pathlib").Path(".env").exists() else None
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra environment variables


def get_site_config(site_key: str) -> SiteConfig:
    """
    Get configuration for a specific site.

    Args:
        site_key: Site identifier (e.g., 'pihut')

    Returns:
        SiteConfig for the site

    Raises:
        ValueError: If site_key is not found
    """
    if site_key not in SITES:
        valid_keys = ', '.join(sorted(SITES.keys()))
        raise ValueError(f"Unknown site: '{site_key}'. Valid sites: {valid_keys}")
    return SITES[site_key]


def _host(url: str) -> str:
    if not url.startswith(('http://', 'https://')):
        url = 'https://' + url
    host = urlparse(url).netloc.split(':')[0].lower()
    return host[4:] if host.startswith('www.') else host


def get_site_config_for_url(url: Optional[str]) -> SiteConfig:
    """
    Resolve the site configuration for a storefront URL.

    Falls back to the default site when no URL is given, and builds an
    ad-hoc config (prefix taken from the host name) for unknown sites.
    """
    if not url or not url.strip():
        return get_site_config(DEFAULT_SITE)

    url = url.strip()
    host = _host(url)
    for config in SITES.values():
        if _host(config.base_url) == host:
            return config

    prefix = host.split('.')[0] if host else 'products'
    return SiteConfig(name=host or url, base_url=url, output_prefix=prefix or 'products')
