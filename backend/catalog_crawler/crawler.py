"""
Batched product crawl.

URLs are processed in fixed-size batches. Every URL in a batch is fetched
and extracted concurrently through the shared browser session; the next
batch starts only after all of the current batch has settled, and the
batch's records are appended to the sink as one unit.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Sequence

from .base import Colors, CrawlResult, ProductRecord
from .extractor import ProductExtractor
from .sinks import IncrementalCsvSink
from .snapshot import capture_snapshot

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
NAVIGATION_TIMEOUT_SECONDS = 60.0


def resolve_limit(max_products: int, discovered: int) -> int:
    """
    Number of URLs to crawl.

    Examples:
        (5, 20) -> 5
        (50, 20) -> 20
        (0, 20) -> 20
    """
    if max_products and max_products > 0:
        return min(max_products, discovered)
    return discovered


class BatchCrawler:
    """
    Drives fetch + extract cycles over a URL list.

    Usage:
        crawler = BatchCrawler()
        result = await crawler.run(urls, 10, session, sink, max_products=50)
    """

    def __init__(
        self,
        extractor: Optional[ProductExtractor] = None,
        navigation_timeout: float = NAVIGATION_TIMEOUT_SECONDS,
        before_crawl: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        """
        Initialize the crawler.

        Args:
            extractor: Product extractor (default strategy chain if omitted)
            navigation_timeout: Seconds allowed per page navigation
            before_crawl: Optional awaitable run once before the first batch,
                e.g. waiting for the operator to finish logging in
        """
        self.extractor = extractor or ProductExtractor()
        self.navigation_timeout = navigation_timeout
        self.before_crawl = before_crawl
        self.result: Optional[CrawlResult] = None

    async def scrape_product(self, url: str, session) -> Optional[ProductRecord]:
        """
        Fetch and extract one product page.

        Errors are logged and recorded; the URL then yields no record.
        The page is closed on every path.
        """
        if not url or not url.strip():
            return None

        try:
            async with session.new_page() as page:
                await page.goto(
                    url,
                    wait_until='domcontentloaded',
                    timeout=int(self.navigation_timeout * 1000),
                )
                snapshot = await capture_snapshot(page, url)
                return self.extractor.extract(snapshot)
        except Exception as e:
            if self.result is not None:
                self.result.errors += 1
                self.result.error_details.append({'url': url, 'error': str(e)})
            logger.error(f"   {Colors.red('[ERR]')} Failed to scrape {url}: {e}")
            return None

    async def run(
        self,
        urls: Sequence[str],
        batch_size: int,
        session,
        sink: IncrementalCsvSink,
        max_products: int = 0,
    ) -> CrawlResult:
        """
        Crawl URLs batch by batch and append results to the sink.

        Args:
            urls: Ordered product URLs
            batch_size: Maximum concurrent pages per batch
            session: Browser session exposing new_page()
            sink: Opened IncrementalCsvSink
            max_products: Cap on URLs to attempt (0 for all)

        Returns:
            CrawlResult with counts
        """
        urls = list(urls)
        batch_size = batch_size if batch_size and batch_size > 0 else DEFAULT_BATCH_SIZE
        limit = resolve_limit(max_products, len(urls))

        self.result = CrawlResult(
            started_at=datetime.now(timezone.utc),
            discovered=len(urls),
            output_path=str(sink.path) if sink.path else None,
        )
        logger.info(f"Found {len(urls)} products. Scraping {limit} of them...")

        if self.before_crawl is not None:
            await self.before_crawl()

        for start in range(0, limit, batch_size):
            batch = urls[start:min(start + batch_size, limit)]
            self.result.attempted += len(batch)

            # Join barrier: the next batch waits for every page in this one
            results: List[Optional[ProductRecord]] = await asyncio.gather(
                *(self.scrape_product(url, session) for url in batch)
            )
            records = [record for record in results if record is not None]
            self.result.written += sink.append_rows(records)

            logger.info(
                f"{Colors.bold('Progress')}: Processed {min(start + batch_size, limit)}/{limit} products... "
                f"({Colors.green(f'{len(records)} saved')}, {Colors.red(f'{len(batch) - len(records)} failed')})"
            )

        self.result.completed_at = datetime.now(timezone.utc)
        duration = self.result.duration_seconds or 0
        logger.info(
            f"✅ Crawl complete in {duration:.1f}s: {self.result.written} rows, "
            f"{self.result.errors} errors"
        )
        return self.result
