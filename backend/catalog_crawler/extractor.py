"""
Product field extraction.

A product page is resolved by an ordered chain of strategies. Each strategy
looks at a PageSnapshot (plus the record built so far) and returns only the
fields it is confident about. Merging is "first non-empty wins" per field,
and the discontinued-name override runs as a separate, always-last pass.

Strategy order:
    1. Structured data (JSON-LD Product)
    2. Platform metadata (Shopify product object, only while SKU is missing)
    3. DOM heuristics (per field, only while still empty)
"""

import json
import logging
from dataclasses import fields, replace
from typing import Any, Callable, Dict, Iterator, List, Optional

from .base import ProductRecord, Colors
from .snapshot import PageSnapshot
from .utils.normalizers import (
    DISCONTINUED,
    decode_html,
    to_text,
    last_path_segment,
    normalize_availability,
    format_minor_units,
    is_discontinued,
)
from .utils.extractors import (
    extract_price_number,
    extract_stock_text,
    extract_sku_text,
)

logger = logging.getLogger(__name__)

Partial = Dict[str, str]
Strategy = Callable[[PageSnapshot, ProductRecord], Partial]

PRODUCT_FIELDS = [f.name for f in fields(ProductRecord)]

PRICE_SELECTORS = ['[itemprop="price"]', '.price', '.product-price']
AVAILABILITY_SELECTORS = ['[data-stock]', '.availability', '.stock-status', '.product-form__inventory']
SKU_SELECTORS = ['.sku', '[itemprop="sku"]', '.product-sku', '.variant-sku']


# ============================================================
# MERGE POLICY
# ============================================================

def merge_partial(record: ProductRecord, partial: Optional[Partial]) -> ProductRecord:
    """
    Fill empty fields of a record from a partial result.

    Fields that already hold a value are never overwritten.
    """
    if not partial:
        return record
    updates = {
        name: partial[name]
        for name in PRODUCT_FIELDS
        if not getattr(record, name) and partial.get(name)
    }
    return replace(record, **updates) if updates else record


def apply_overrides(record: ProductRecord) -> ProductRecord:
    """Force availability to Discontinued when the name is marked as such."""
    if is_discontinued(record.name):
        return replace(record, availability=DISCONTINUED)
    return record


# ============================================================
# STRATEGY 1: STRUCTURED DATA
# ============================================================

def _iter_entities(data: Any) -> Iterator[Dict]:
    """Yield JSON-LD objects from a top-level object, list or @graph."""
    items = data if isinstance(data, list) else [data]
    for item in items:
        if not isinstance(item, dict):
            continue
        yield item
        graph = item.get('@graph')
        if isinstance(graph, list):
            for node in graph:
                if isinstance(node, dict):
                    yield node


def _is_product(entity: Dict) -> bool:
    types = entity.get('@type')
    if isinstance(types, list):
        return 'Product' in types
    return types == 'Product'


def _first_offer(entity: Dict) -> Optional[Dict]:
    offers = entity.get('offers')
    if isinstance(offers, list):
        offers = offers[0] if offers else None
    return offers if isinstance(offers, dict) else None


def _offer_price(offer: Dict) -> str:
    price = to_text(offer.get('price'))
    if price:
        return price
    price_spec = offer.get('priceSpecification')
    if isinstance(price_spec, list):
        price_spec = price_spec[0] if price_spec else None
    if isinstance(price_spec, dict):
        return to_text(price_spec.get('price'))
    return ''


def _offer_availability(offer: Dict) -> str:
    availability = offer.get('availability') or ''
    if isinstance(availability, list):
        availability = availability[0] if availability else ''
    if isinstance(availability, dict):
        availability = availability.get('name') or availability.get('@id') or ''
    return last_path_segment(to_text(availability))


def _product_from_entity(entity: Dict) -> Partial:
    partial = {
        'name': decode_html(to_text(entity.get('name'))),
        'sku': decode_html(to_text(entity.get('sku'))),
        'price': '',
        'availability': '',
    }
    offer = _first_offer(entity)
    if offer:
        partial['price'] = _offer_price(offer)
        partial['availability'] = _offer_availability(offer)
    return partial


def structured_data_strategy(snapshot: PageSnapshot, current: ProductRecord) -> Partial:
    """Read the first JSON-LD Product entity on the page."""
    scripts = snapshot.soup.find_all('script', attrs={'type': 'application/ld+json'})
    for script in scripts:
        content = script.string or script.get_text()
        if not content or not content.strip():
            continue
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping malformed JSON-LD block on {snapshot.url}: {e}")
            continue

        for entity in _iter_entities(data):
            if _is_product(entity):
                return _product_from_entity(entity)
    return {}


# ============================================================
# STRATEGY 2: PLATFORM METADATA
# ============================================================

def platform_metadata_strategy(snapshot: PageSnapshot, current: ProductRecord) -> Partial:
    """
    Read the storefront's in-page product object.

    Only consulted while the SKU is still unknown. Prices are stored in
    minor units (cents) and converted to a two-decimal string.
    """
    if current.sku:
        return {}

    product = snapshot.platform_product
    if not isinstance(product, dict):
        return {}
    variants = product.get('variants')
    if not isinstance(variants, list) or not variants or not isinstance(variants[0], dict):
        return {}

    variant = variants[0]
    product_type = to_text(product.get('type'))
    if 'Case' in product_type:
        name = variant.get('name') or product.get('handle')
    else:
        name = variant.get('name') or snapshot.document_title

    return {
        'name': decode_html(to_text(name)),
        'sku': decode_html(to_text(variant.get('sku'))),
        'price': format_minor_units(variant.get('price')),
    }


# ============================================================
# STRATEGY 3: DOM HEURISTICS
# ============================================================

def _first_text(snapshot: PageSnapshot, selectors: List[str]) -> str:
    for selector in selectors:
        element = snapshot.soup.select_one(selector)
        if element is not None:
            return element.get_text().strip()
    return ''


def _dom_name(snapshot: PageSnapshot) -> str:
    heading = snapshot.soup.find('h1')
    return heading.get_text().strip() if heading else ''


def _dom_price(snapshot: PageSnapshot) -> str:
    price = ''
    meta = snapshot.soup.select_one('meta[property="product:price:amount"]')
    if meta is not None:
        price = (meta.get('content') or '').strip()

    if not price:
        itemprop = snapshot.soup.select_one('[itemprop="price"]')
        if itemprop is not None:
            price = (itemprop.get('content') or '').strip() or itemprop.get_text().strip()

    if not price:
        price = _first_text(snapshot, PRICE_SELECTORS)

    return extract_price_number(price)


def _dom_availability(snapshot: PageSnapshot) -> str:
    text = _first_text(snapshot, AVAILABILITY_SELECTORS)
    if not text:
        text = extract_stock_text(snapshot.text) or ''
    return last_path_segment(normalize_availability(text))


def _dom_sku(snapshot: PageSnapshot) -> str:
    return _first_text(snapshot, SKU_SELECTORS) or extract_sku_text(snapshot.text) or ''


DOM_FIELD_EXTRACTORS = {
    'name': _dom_name,
    'price': _dom_price,
    'availability': _dom_availability,
    'sku': _dom_sku,
}


def dom_heuristic_strategy(snapshot: PageSnapshot, current: ProductRecord) -> Partial:
    """Scrape visible markup for each field that is still empty."""
    return {
        name: extract(snapshot)
        for name, extract in DOM_FIELD_EXTRACTORS.items()
        if not getattr(current, name)
    }


DEFAULT_STRATEGIES: List[Strategy] = [
    structured_data_strategy,
    platform_metadata_strategy,
    dom_heuristic_strategy,
]


class ProductExtractor:
    """
    Applies the strategy chain to a page snapshot.

    Usage:
        extractor = ProductExtractor()
        record = extractor.extract(PageSnapshot.from_html(html))
    """

    def __init__(self, strategies: Optional[List[Strategy]] = None):
        self.strategies = list(strategies) if strategies is not None else list(DEFAULT_STRATEGIES)

    def extract(self, snapshot: PageSnapshot) -> ProductRecord:
        """
        Build a product record from a snapshot.

        Missing data never raises; unmatched fields stay empty strings.
        """
        record = ProductRecord()
        for strategy in self.strategies:
            partial = strategy(snapshot, record)
            record = merge_partial(record, partial)
        record = apply_overrides(record)
        self.log_extraction(snapshot.url, record)
        return record

    def log_extraction(self, url: str, record: ProductRecord):
        """Log captured and missing fields for a product page."""
        captured = [name for name in PRODUCT_FIELDS if getattr(record, name)]
        missing = [name for name in PRODUCT_FIELDS if not getattr(record, name)]
        if captured:
            logger.debug(f"   ➤ {url}: {', '.join(captured)}")
        else:
            logger.debug(f"   ➤ {url}: {Colors.gray('no data captured')}")
        if missing:
            logger.debug(f"   ✘ missing: {', '.join(missing)}")
