"""
Product Resolver: maps a scanned or typed term to a catalog product.

Match tiers, first hit wins, all case-insensitive:
  1. exact SKU
  2. exact name
  3. term contained in name
Within a tier the first product in catalog order wins.
"""
from typing import Callable, Iterable, Optional

from pos_terminal.models.product import Product
import logging

logger = logging.getLogger(__name__)


class ProductResolver:
    """Resolves terms against a catalog supplied by `products_source`."""

    def __init__(self, products_source: Callable[[], Iterable[Product]]):
        self._products_source = products_source

    def resolve(self, term: str) -> Optional[Product]:
        needle = (term or "").strip().lower()
        if not needle:
            return None

        products = list(self._products_source())

        for product in products:
            if product.sku.lower() == needle:
                return product

        for product in products:
            if product.name.lower() == needle:
                return product

        for product in products:
            if needle in product.name.lower():
                logger.debug(f"Resolved '{term}' to {product.sku} by partial name")
                return product

        return None
