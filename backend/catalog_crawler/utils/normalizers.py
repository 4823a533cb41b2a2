"""
Data normalization utilities for product fields.

These functions standardize scraped values into the formats written to CSV.
"""

import html
from decimal import Decimal, InvalidOperation
from typing import Any


IN_STOCK = 'InStock'
OUT_OF_STOCK = 'OutOfStock'
DISCONTINUED = 'Discontinued'
DISCONTINUED_MARKER = '[discontinued]'


def decode_html(text: Any) -> str:
    """
    Decode HTML entities.

    Examples:
        Pi &amp; Case -> Pi & Case
        &quot;Zero&quot; -> "Zero"
    """
    if not text:
        return ''
    return html.unescape(str(text))


def to_text(value: Any) -> str:
    """
    Convert a JSON scalar to text.

    Falsy values (None, '', 0) become ''. Whole floats drop the
    fractional part, matching how browsers stringify numbers.
    """
    if value is None or value is False or value == '' or value == 0:
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def last_path_segment(value: str) -> str:
    """
    Keep only the final path segment of a slash-separated value.

    Examples:
        https://schema.org/InStock -> InStock
        InStock -> InStock
    """
    if '/' in value:
        return value.split('/')[-1]
    return value


def normalize_availability(text: str) -> str:
    """
    Map free-text stock phrases to a standard status.

    Examples:
        In stock -> InStock
        Only 3 units left -> InStock
        Currently Out of Stock -> OutOfStock
        Sold out -> OutOfStock
        Pre-order -> Pre-order
    """
    if not text:
        return ''
    lowered = text.lower()
    if 'in stock' in lowered or 'units left' in text:
        return IN_STOCK
    if 'out of stock' in lowered or 'sold out' in lowered:
        return OUT_OF_STOCK
    return text


def format_minor_units(amount: Any) -> str:
    """
    Convert an integer minor-unit price to a two-decimal string.

    Examples:
        1999 -> 19.99
        500 -> 5.00
        0 -> ''
    """
    if not amount:
        return ''
    try:
        return f"{Decimal(str(amount)) / 100:.2f}"
    except InvalidOperation:
        return ''


def is_discontinued(name: str) -> bool:
    """Check whether a product name carries the discontinued marker."""
    return bool(name) and DISCONTINUED_MARKER in name.lower()
