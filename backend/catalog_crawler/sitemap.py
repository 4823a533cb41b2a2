"""
Sitemap-driven product URL discovery.

Shopify storefronts publish a sitemap index at /sitemap.xml whose entries
include sitemap_products_N.xml documents. Product pages are the locations
under /products/ in those documents.
"""

import html
import logging
from typing import List, Optional, Protocol

from .base import ProductUrlSet, SitemapError
from .utils.extractors import extract_locs

logger = logging.getLogger(__name__)

PRODUCT_SITEMAP_MARKER = 'sitemap_products'
PRODUCT_PATH_MARKER = '/products/'


class Fetcher(Protocol):
    async def fetch(self, url: str) -> str:
        """Fetch a URL and return the raw document body."""
        ...


def sitemap_url_for(base_url: str) -> str:
    """
    Build the root sitemap address for a storefront.

    Examples:
        https://thepihut.com -> https://thepihut.com/sitemap.xml
        https://thepihut.com/ -> https://thepihut.com/sitemap.xml
    """
    return (base_url.strip().rstrip('/') + '/sitemap.xml').strip()


def parse_locs(xml: str) -> List[str]:
    """
    Parse a sitemap document into its ordered <loc> values.

    Entity references (e.g. &amp;) are decoded; duplicates are kept.
    """
    return [html.unescape(loc) for loc in extract_locs(xml)]


def select_product_sitemaps(locs: List[str]) -> List[str]:
    """Pick product sub-sitemaps, or every location when none are marked."""
    product_sitemaps = [loc for loc in locs if PRODUCT_SITEMAP_MARKER in loc]
    return product_sitemaps or list(locs)


class SitemapDiscoverer:
    """
    Discovers product page URLs from a storefront's sitemaps.

    Args:
        fetcher: Object with an async fetch(url) -> str method
        skip_failed_sitemaps: Log and skip sub-sitemaps that fail to load
            instead of aborting discovery
    """

    def __init__(self, fetcher: Fetcher, skip_failed_sitemaps: bool = False):
        self.fetcher = fetcher
        self.skip_failed_sitemaps = skip_failed_sitemaps

    async def _fetch_locs(self, url: str) -> List[str]:
        try:
            xml = await self.fetcher.fetch(url)
        except Exception as e:
            raise SitemapError(f"Failed to fetch sitemap {url}: {e}") from e
        return parse_locs(xml)

    async def discover(self, base_url: str, urls: Optional[ProductUrlSet] = None) -> ProductUrlSet:
        """
        Collect product URLs in first-seen order.

        Args:
            base_url: Storefront root URL
            urls: Optional set to extend (a new one is created otherwise)

        Returns:
            ProductUrlSet of product page URLs

        Raises:
            SitemapError: If the root sitemap, or (unless skipping is
                enabled) any sub-sitemap, cannot be fetched
        """
        urls = urls if urls is not None else ProductUrlSet()
        root_url = sitemap_url_for(base_url)
        logger.info(f"Fetching sitemap from {root_url}...")

        root_locs = [loc.strip() for loc in await self._fetch_locs(root_url) if loc.strip()]
        candidates = select_product_sitemaps(root_locs)
        logger.info(f"Found {len(root_locs)} sitemap entries, {len(candidates)} candidate sitemap(s)")

        for sitemap in candidates:
            try:
                locs = await self._fetch_locs(sitemap)
            except SitemapError as e:
                if not self.skip_failed_sitemaps:
                    raise
                logger.warning(f"Skipping sitemap: {e}")
                continue

            added = 0
            for loc in locs:
                loc = loc.strip()
                if loc and PRODUCT_PATH_MARKER in loc and urls.add(loc):
                    added += 1
            logger.debug(f"{sitemap}: {added} new product URL(s)")

        return urls
