"""
Sitemap-driven product catalog crawler.

This package provides:
- Product URL discovery from storefront sitemaps
- Batched, bounded-concurrency page crawling through a shared browser session
- Fallback-chained product field extraction (JSON-LD, platform metadata, DOM)
- Incremental CSV persistence, one batch at a time
"""

from .base import ProductRecord, ProductUrlSet, CrawlResult, CrawlError, SitemapError, ConfigurationError
from .config import Settings, SITES, get_site_config, get_site_config_for_url
from .crawler import BatchCrawler, resolve_limit
from .extractor import ProductExtractor
from .sinks import IncrementalCsvSink, write_csv
from .sitemap import SitemapDiscoverer
from .snapshot import PageSnapshot

__all__ = [
    'ProductRecord',
    'ProductUrlSet',
    'CrawlResult',
    'CrawlError',
    'SitemapError',
    'ConfigurationError',
    'Settings',
    'SITES',
    'get_site_config',
    'get_site_config_for_url',
    'BatchCrawler',
    'resolve_limit',
    'ProductExtractor',
    'IncrementalCsvSink',
    'write_csv',
    'SitemapDiscoverer',
    'PageSnapshot',
]
