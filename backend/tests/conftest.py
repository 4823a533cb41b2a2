"""
Pytest configuration and fixtures for catalog crawler tests.

FakeSession and FakePage stand in for the Playwright context and pages:
they serve canned HTML per URL and record the open/close order of pages so
batching and teardown can be checked without a browser.
"""

import asyncio
from contextlib import asynccontextmanager

import pytest
from bs4 import BeautifulSoup

from catalog_crawler.snapshot import BODY_TEXT_JS


CRAWLER_ENV_VARS = [
    'TARGET_URL', 'SELECTOR', 'LOGIN_URL', 'CRAWL_SITEMAP', 'MAX_PRODUCTS',
    'HEADLESS', 'BROWSER_PROFILE_DIR', 'OUTPUT_DIR', 'BATCH_SIZE',
    'SITEMAP_FETCHER', 'SKIP_FAILED_SITEMAPS', 'NAVIGATION_TIMEOUT',
    'LOG_LEVEL', 'LOG_DIR',
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of Settings."""
    for name in CRAWLER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def product_page(name, sku='', price='', extra=''):
    """Minimal product page with JSON-LD structured data."""
    return f"""
    <html><head><title>{name} | Shop</title>
    <script type="application/ld+json">
    {{"@context": "https://schema.org", "@type": "Product", "name": "{name}", "sku": "{sku}",
      "offers": {{"@type": "Offer", "price": "{price}", "availability": "https://schema.org/InStock"}}}}
    </script></head>
    <body><h1>{name}</h1>{extra}</body></html>
    """


class FakeResponse:
    def __init__(self, body, status=200):
        self.body = body
        self.status = status

    async def text(self):
        return self.body


class FakePage:
    """Playwright page double serving HTML from the session's site map."""

    def __init__(self, session, page_id):
        self.session = session
        self.page_id = page_id
        self.url = 'about:blank'
        self.html = ''
        self.goto_calls = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append({'url': url, 'wait_until': wait_until, 'timeout': timeout})
        self.session.events.append(('goto', url))
        # Yield so concurrent pages in a batch interleave
        await asyncio.sleep(0)
        if url in self.session.failing_urls:
            raise Exception(f"Timeout {timeout}ms exceeded navigating to {url}")
        if url not in self.session.pages:
            return FakeResponse('Not Found', status=404)
        self.url = url
        self.html = self.session.pages[url]
        return FakeResponse(self.html)

    async def content(self):
        return self.html

    async def title(self):
        soup = BeautifulSoup(self.html, 'html.parser')
        return soup.title.get_text().strip() if soup.title else ''

    async def evaluate(self, script):
        if script == BODY_TEXT_JS:
            soup = BeautifulSoup(self.html, 'html.parser')
            body = soup.body or soup
            return body.get_text('\n')
        return self.session.platform_products.get(self.url)

    async def eval_on_selector_all(self, selector, script):
        soup = BeautifulSoup(self.html, 'html.parser')
        results = []
        for node in soup.select(selector):
            anchor = node if node.name == 'a' else node.find_parent('a')
            href = anchor.get('href') if anchor is not None else None
            results.append({'text': node.get_text().strip(), 'href': href or ''})
        return results


class FakeSession:
    """Browser session double implementing new_page(), fetch(), start() and close()."""

    def __init__(self, pages=None, failing_urls=None, platform_products=None, documents=None):
        self.pages = dict(pages or {})
        self.failing_urls = set(failing_urls or ())
        self.platform_products = dict(platform_products or {})
        self.documents = dict(documents or {})
        self.events = []
        self.page_objects = []
        self.opened = 0
        self.closed = 0
        self.open_now = 0
        self.peak_open = 0
        self.started = False
        self.session_closed = False
        self.fetched = []

    async def start(self):
        self.started = True

    async def close(self):
        self.session_closed = True

    @asynccontextmanager
    async def new_page(self):
        self.opened += 1
        self.open_now += 1
        self.peak_open = max(self.peak_open, self.open_now)
        page = FakePage(self, self.opened)
        self.page_objects.append(page)
        self.events.append(('open', page.page_id))
        try:
            yield page
        finally:
            self.open_now -= 1
            self.closed += 1
            requested = page.goto_calls[-1]['url'] if page.goto_calls else None
            self.events.append(('close', requested))

    async def fetch(self, url):
        self.fetched.append(url)
        if url not in self.documents:
            raise Exception(f"HTTP 404 for {url}")
        return self.documents[url]


class FakeFetcher:
    """Sitemap fetcher double."""

    def __init__(self, documents):
        self.documents = documents
        self.fetched = []

    async def fetch(self, url):
        self.fetched.append(url)
        if url not in self.documents:
            raise Exception(f"HTTP 404 for {url}")
        return self.documents[url]


def sitemap_index(*locs):
    entries = ''.join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'


def urlset(*locs):
    entries = ''.join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'


@pytest.fixture
def shop_sitemaps():
    """A storefront with two product sitemaps sharing one product."""
    return {
        'https://shop.test/sitemap.xml': sitemap_index(
            'https://shop.test/sitemap_products_1.xml?from=1&amp;to=2',
            'https://shop.test/sitemap_pages_1.xml',
            'https://shop.test/sitemap_products_2.xml',
        ),
        'https://shop.test/sitemap_products_1.xml?from=1&to=2': urlset(
            'https://shop.test/',
            'https://shop.test/products/raspberry-pi-5',
            'https://shop.test/products/pico-w',
        ),
        'https://shop.test/sitemap_products_2.xml': urlset(
            'https://shop.test/products/pico-w',
            'https://shop.test/products/hat-case',
        ),
        'https://shop.test/sitemap_pages_1.xml': urlset(
            'https://shop.test/pages/about',
        ),
    }


@pytest.fixture
def product_urls():
    return [f"https://shop.test/products/item-{i}" for i in range(20)]


@pytest.fixture
def product_pages(product_urls):
    return {
        url: product_page(f"Item {i}", sku=f"SKU-{i}", price=f"{i}.99")
        for i, url in enumerate(product_urls)
    }
