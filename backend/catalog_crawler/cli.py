#!/usr/bin/env python3
"""
Command-line entry point for the catalog crawler.

Usage:
    python -m catalog_crawler --crawlSitemap --url https://thepihut.com --maxProducts 50
    python -m catalog_crawler --url https://example.com/list --selector "a.product-link"

Flags take precedence over environment variables (TARGET_URL, SELECTOR,
LOGIN_URL, CRAWL_SITEMAP, MAX_PRODUCTS, HEADLESS, BROWSER_PROFILE_DIR,
OUTPUT_DIR, ...), which take precedence over a .env file.
"""

import argparse
import asyncio
import json
import logging
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from .base import PRODUCT_COLUMNS, LINK_COLUMNS, ConfigurationError, CrawlResult
from .config import Settings, get_site_config_for_url
from .crawler import BatchCrawler
from .crawlers import BrowserSession, StaticCrawler
from .login import LoginGate
from .sinks import IncrementalCsvSink, write_csv
from .single_page import scrape_selector
from .sitemap import SitemapDiscoverer

logger = logging.getLogger(__name__)

USAGE = (
    'Usage: catalog-crawler --url <URL> --selector <CSS> [--loginUrl <LOGIN_URL>] '
    '[--headless <true|false>] [--crawlSitemap <true|false>] [--maxProducts <N>]'
)


# Custom formatter to strip ANSI color codes from file logs
class ColorStripFormatter(logging.Formatter):
    """Formatter that strips ANSI color codes from log messages."""
    ansi_escape = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')

    def format(self, record):
        message = super().format(record)
        return self.ansi_escape.sub('', message)


def configure_logging(settings: Settings):
    """Log to the console with colors and to logs/crawler.log without them."""
    settings.log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(settings.log_file, encoding='utf-8')
    file_handler.setFormatter(ColorStripFormatter(settings.log_format))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(settings.log_format))

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        handlers=[file_handler, console_handler],
        force=True  # Override any existing configuration
    )

    # Suppress per-request logging from the HTTP client
    logging.getLogger('httpx').setLevel(logging.WARNING)


def timestamp(now: Optional[datetime] = None) -> str:
    """Run timestamp for output file names, e.g. 20250131-142501."""
    return (now or datetime.now()).strftime('%Y%m%d-%H%M%S')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='catalog-crawler', description='Crawl product catalogs into CSV')
    # Boolean flags accept a bare flag (true) or an explicit value
    flag = dict(nargs='?', const='true', default=None)

    parser.add_argument('--url', dest='target_url', help='Target page, or storefront root in sitemap mode')
    parser.add_argument('--selector', help='CSS selector (single-page mode)')
    parser.add_argument('--loginUrl', '--login-url', dest='login_url', help='Login page to open first (single-page mode)')
    parser.add_argument('--crawlSitemap', '--crawl-sitemap', dest='crawl_sitemap', help='Crawl products from the sitemap', **flag)
    parser.add_argument('--maxProducts', '--max-products', dest='max_products', help='Maximum products to scrape (0 for all)')
    parser.add_argument('--headless', help='Run the browser headless', **flag)
    parser.add_argument('--batchSize', '--batch-size', dest='batch_size', help='Concurrent pages per batch')
    parser.add_argument('--profileDir', '--profile-dir', dest='browser_profile_dir', help='Persistent browser profile directory')
    parser.add_argument('--outputDir', '--output-dir', dest='output_dir', help='Directory for CSV output')
    parser.add_argument('--sitemapFetcher', '--sitemap-fetcher', dest='sitemap_fetcher', choices=['browser', 'http'],
                        help='Load sitemaps through the browser or plain HTTP')
    parser.add_argument('--skipFailedSitemaps', '--skip-failed-sitemaps', dest='skip_failed_sitemaps',
                        help='Skip product sitemaps that fail to load', **flag)
    return parser


def load_settings(argv: Optional[List[str]] = None) -> Settings:
    """Build Settings from the environment with command-line overrides applied."""
    args = build_parser().parse_args(argv)
    overrides: Dict[str, str] = {key: value for key, value in vars(args).items() if value is not None}
    return Settings(**overrides)


async def crawl_sitemap(settings: Settings, session) -> CrawlResult:
    """Discover product URLs from the sitemap and crawl them into CSV."""
    site = get_site_config_for_url(settings.target_url)
    base_url = (settings.target_url or site.base_url).strip()

    if settings.login_url:
        logger.warning("Login URL is ignored in sitemap mode")

    if settings.sitemap_fetcher == 'http':
        async with StaticCrawler() as fetcher:
            discoverer = SitemapDiscoverer(fetcher, skip_failed_sitemaps=settings.skip_failed_sitemaps)
            product_urls = await discoverer.discover(base_url)
    else:
        discoverer = SitemapDiscoverer(session, skip_failed_sitemaps=settings.skip_failed_sitemaps)
        product_urls = await discoverer.discover(base_url)

    output_dir = settings.output_path
    output_dir.mkdir(parents=True, exist_ok=True)
    output_file = output_dir / f"{site.output_prefix}-{timestamp()}.csv"

    sink = IncrementalCsvSink()
    sink.open(output_file, PRODUCT_COLUMNS)

    crawler = BatchCrawler(navigation_timeout=settings.navigation_timeout)
    result = await crawler.run(
        product_urls.to_list(),
        settings.batch_size,
        session,
        sink,
        max_products=settings.max_products,
    )
    logger.info(f"Done! Saved {result.written} rows to {output_file}")
    logger.info(f"Run summary: {json.dumps(result.to_dict())}")
    return result


async def scrape_single_page(settings: Settings, session) -> Path:
    """Collect selector matches from one page into CSV."""
    async with session.new_page() as page:
        if settings.login_url:
            await LoginGate(settings.login_url)(page)
        rows = await scrape_selector(page, settings.target_url, settings.selector)

    output_dir = settings.output_path
    output_dir.mkdir(parents=True, exist_ok=True)
    output_file = output_dir / f"scrape-{timestamp()}.csv"
    write_csv(output_file, LINK_COLUMNS, rows)
    logger.info(f"Saved {len(rows)} rows to {output_file}")
    return output_file


async def run(settings: Settings, session_factory: Callable = BrowserSession) -> int:
    """
    Run the configured mode inside one browser session.

    Returns:
        Process exit code (0 on success, 1 on an unrecovered error)
    """
    session = session_factory(settings.profile_path, headless=settings.headless)
    try:
        await session.start()
        if settings.crawl_sitemap:
            await crawl_sitemap(settings, session)
        else:
            await scrape_single_page(settings, session)
        return 0
    except Exception as e:
        logger.error(str(e) or repr(e))
        return 1
    finally:
        await session.close()


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = load_settings(argv)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        settings.validate_mode()
    except ConfigurationError:
        print(USAGE, file=sys.stderr)
        return 1

    configure_logging(settings)
    return asyncio.run(run(settings))


if __name__ == '__main__':
    sys.exit(main())
