"""
Single-page selector mode.

Loads one page, collects every element matching a CSS selector and records
its visible text and link target (its own href, or the nearest enclosing
anchor's).
"""

import logging
from typing import List

from .base import LinkRow

logger = logging.getLogger(__name__)

COLLECT_LINKS_JS = """
nodes => nodes.map(n => {
    const anchor = n.closest('a');
    const href = n.href || (anchor ? anchor.href : null);
    const text = (n.innerText || n.textContent || '').trim();
    return { text, href: href || '' };
})
"""


async def scrape_selector(page, url: str, selector: str) -> List[LinkRow]:
    """
    Collect text and links for elements matching a selector.

    Args:
        page: Playwright page
        url: Page to load
        selector: CSS selector

    Returns:
        LinkRow per matched element, in document order
    """
    await page.goto(url, wait_until='domcontentloaded')
    results = await page.eval_on_selector_all(selector, COLLECT_LINKS_JS)
    rows = [
        LinkRow(text=str(item.get('text') or ''), href=str(item.get('href') or ''))
        for item in results or []
    ]
    logger.info(f"Matched {len(rows)} element(s) for '{selector}' on {url}")
    return rows
