"""Document fetchers: a shared browser session and a plain HTTP client."""

from .static import StaticCrawler
from .browser import BrowserSession

__all__ = ['StaticCrawler', 'BrowserSession']
