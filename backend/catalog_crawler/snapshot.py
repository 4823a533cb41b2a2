"""
Plain captures of loaded product pages.

The browser is only asked for raw material (HTML, title, visible text and
the platform product object); every extraction decision runs against the
resulting PageSnapshot, so it can be built from static HTML in tests.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from bs4 import BeautifulSoup


# Visible text as rendered, with line breaks between blocks
BODY_TEXT_JS = "() => document.body ? document.body.innerText : ''"

# Shopify exposes the product under window.meta or window.ShopifyAnalytics.meta
PLATFORM_PRODUCT_JS = """
() => {
    const meta = window.meta && window.meta.product;
    const analytics = window.ShopifyAnalytics && window.ShopifyAnalytics.meta
        && window.ShopifyAnalytics.meta.product;
    const product = meta || analytics;
    return product ? JSON.parse(JSON.stringify(product)) : null;
}
"""


@dataclass
class PageSnapshot:
    """Document content of a loaded page."""
    url: str
    html: str
    title: str = ''
    body_text: Optional[str] = None
    platform_product: Optional[Dict[str, Any]] = None
    _soup: Optional[BeautifulSoup] = field(default=None, init=False, repr=False, compare=False)

    @property
    def soup(self) -> BeautifulSoup:
        """Parsed document, built on first use."""
        if self._soup is None:
            self._soup = BeautifulSoup(self.html or '', 'html.parser')
        return self._soup

    @property
    def text(self) -> str:
        """Visible body text; derived from the HTML when not captured."""
        if self.body_text is None:
            body = self.soup.body or self.soup
            self.body_text = body.get_text('\n')
        return self.body_text

    @property
    def document_title(self) -> str:
        if self.title:
            return self.title
        title_tag = self.soup.title
        return title_tag.get_text().strip() if title_tag else ''

    @classmethod
    def from_html(
        cls,
        html: str,
        url: str = '',
        platform_product: Optional[Dict[str, Any]] = None,
        body_text: Optional[str] = None,
    ) -> 'PageSnapshot':
        return cls(url=url, html=html, body_text=body_text, platform_product=platform_product)


async def capture_snapshot(page, url: str = '') -> PageSnapshot:
    """
    Capture a PageSnapshot from a loaded Playwright page.

    Args:
        page: Page that has finished navigating
        url: URL the page was opened for (defaults to page.url)

    Returns:
        PageSnapshot of the current document
    """
    html = await page.content()
    title = await page.title()
    body_text = await page.evaluate(BODY_TEXT_JS)
    platform_product = await page.evaluate(PLATFORM_PRODUCT_JS)
    if not isinstance(platform_product, dict):
        platform_product = None
    return PageSnapshot(
        url=url or page.url,
        html=html,
        title=title or '',
        body_text=body_text or '',
        platform_product=platform_product,
    )
