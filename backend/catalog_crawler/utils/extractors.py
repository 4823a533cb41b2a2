"""
Text extraction utilities for product pages.

These functions pull specific values out of page text using regex patterns.
"""

import re
from typing import List, Optional


LOC_PATTERN = re.compile(r'<loc>([^<]+)</loc>')
DECIMAL_PATTERN = re.compile(r'(\d+(?:\.\d+)?)')
NUMERIC_PATTERN = re.compile(r'^\d+(?:\.\d+)?$')
STOCK_LINE_PATTERNS = [
    re.compile(r'Stock:\s*([^\n]+)', re.IGNORECASE),
    re.compile(r'Availability:\s*([^\n]+)', re.IGNORECASE),
]
UNITS_LEFT_PATTERN = re.compile(r'Only \d+ units left', re.IGNORECASE)
SKU_LINE_PATTERN = re.compile(r'SKU:\s*([^\n]+)')


def extract_locs(xml: str) -> List[str]:
    """
    Extract the raw text of every <loc> element, in document order.

    Duplicates are kept; callers decide how to merge them.
    """
    return LOC_PATTERN.findall(xml or '')


def extract_price_number(text: str) -> str:
    """
    Reduce a price string to its numeric part.

    Examples:
        19.99 -> 19.99
        £19.99 inc VAT -> 19.99
        Free -> Free

    Args:
        text: Raw price text

    Returns:
        First decimal number found, or the original text if none
    """
    text = (text or '').strip()
    if not text or NUMERIC_PATTERN.match(text):
        return text
    match = DECIMAL_PATTERN.search(text)
    return match.group(1) if match else text


def extract_stock_text(body_text: str) -> Optional[str]:
    """
    Find a stock status in visible page text.

    Handles:
        Stock: In stock
        Availability: Sold out
        Only 3 units left

    Returns:
        The labelled value, 'InStock' for a units-left phrase, or None
    """
    body_text = body_text or ''
    for pattern in STOCK_LINE_PATTERNS:
        match = pattern.search(body_text)
        if match:
            value = match.group(1).strip()
            if value:
                return value

    if UNITS_LEFT_PATTERN.search(body_text):
        return 'InStock'
    return None


def extract_sku_text(body_text: str) -> Optional[str]:
    """Find a 'SKU: ...' line in visible page text."""
    match = SKU_LINE_PATTERN.search(body_text or '')
    if match:
        return match.group(1).strip() or None
    return None
