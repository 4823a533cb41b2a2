"""Shared utilities for the crawler."""

from .normalizers import (
    decode_html,
    to_text,
    last_path_segment,
    normalize_availability,
    format_minor_units,
    is_discontinued,
)
from .extractors import (
    extract_locs,
    extract_price_number,
    extract_stock_text,
    extract_sku_text,
)

__all__ = [
    'decode_html',
    'to_text',
    'last_path_segment',
    'normalize_availability',
    'format_minor_units',
    'is_discontinued',
    'extract_locs',
    'extract_price_number',
    'extract_stock_text',
    'extract_sku_text',
]
