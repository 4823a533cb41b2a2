"""
Base data structures for the catalog crawler.

This module defines the records, URL containers and result objects
shared by the discovery, extraction and persistence stages.
"""

from typing import List, Dict, Optional, Iterable, Iterator, Tuple
from dataclasses import dataclass, field
from datetime import datetime


# ANSI color codes for terminal output
class Colors:
    """ANSI color codes for colorized logging."""
    RESET = '\033[0m'
    BOLD = '\033[1m'

    # Colors
    GREEN = '\033[92m'
    RED = '\033[91m'
    GRAY = '\033[90m'

    @staticmethod
    def green(text):
        return f"{Colors.GREEN}{text}{Colors.RESET}"

    @staticmethod
    def red(text):
        return f"{Colors.RED}{text}{Colors.RESET}"

    @staticmethod
    def gray(text):
        return f"{Colors.GRAY}{text}{Colors.RESET}"

    @staticmethod
    def bold(text):
        return f"{Colors.BOLD}{text}{Colors.RESET}"


class CrawlError(Exception):
    """Base class for crawler failures that should stop a run."""


class SitemapError(CrawlError):
    """Raised when a sitemap document cannot be fetched."""


class ConfigurationError(CrawlError):
    """Raised when the requested mode is missing required parameters."""


PRODUCT_COLUMNS = ['name', 'sku', 'price', 'availability']
LINK_COLUMNS = ['text', 'href']


@dataclass(frozen=True)
class ProductRecord:
    """Normalized product data extracted from one product page."""
    name: str = ''
    sku: str = ''
    price: str = ''
    availability: str = ''

    def as_row(self) -> Tuple[str, str, str, str]:
        return (self.name, self.sku, self.price, self.availability)


@dataclass(frozen=True)
class LinkRow:
    """A matched element from single-page mode."""
    text: str = ''
    href: str = ''

    def as_row(self) -> Tuple[str, str]:
        return (self.text, self.href)


class ProductUrlSet:
    """
    Ordered set of product URLs.

    Iteration follows first-insertion order and re-adding a URL is a no-op,
    so batch numbering is reproducible across runs with the same sitemaps.
    """

    def __init__(self, urls: Optional[Iterable[str]] = None):
        self._urls: Dict[str, None] = {}
        for url in urls or ():
            self.add(url)

    def add(self, url: str) -> bool:
        """Insert a URL. Returns True if it was not already present."""
        if url in self._urls:
            return False
        self._urls[url] = None
        return True

    def to_list(self) -> List[str]:
        return list(self._urls)

    def __contains__(self, url) -> bool:
        return url in self._urls

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)

    def __len__(self) -> int:
        return len(self._urls)

    def __repr__(self) -> str:
        return f"ProductUrlSet({len(self._urls)} urls)"


@dataclass
class CrawlResult:
    """Result of a batch crawl."""
    started_at: datetime
    completed_at: Optional[datetime] = None
    discovered: int = 0
    attempted: int = 0
    written: int = 0
    errors: int = 0
    error_details: List[Dict] = field(default_factory=list)
    output_path: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.errors == 0

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at and self.started_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict:
        """
        Run summary as logged at the end of a sitemap crawl.

        Failed URLs are listed without their error messages; those are
        already logged per URL as they happen.
        """
        duration = self.duration_seconds
        return {
            'output_path': self.output_path,
            'discovered': self.discovered,
            'attempted': self.attempted,
            'written': self.written,
            'errors': self.errors,
            'failed_urls': [detail['url'] for detail in self.error_details],
            'duration_seconds': round(duration, 1) if duration is not None else None,
            'success': self.success,
        }
