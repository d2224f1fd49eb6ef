"""
Catalog Service: shared product list and inventory adjustments.

Every terminal resolves against the same catalog and decrements the same
stock levels. The catalog can be seeded from a JSON file and refreshed from a
remote inventory API.
"""
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
import json
import logging

import httpx
from pydantic import ValidationError

from pos_terminal.models.product import Product
from pos_terminal.utils.config import settings
from pos_terminal.utils.exceptions import CatalogLoadError, ProductNotFoundError

logger = logging.getLogger(__name__)


DEMO_PRODUCTS: List[Dict[str, Any]] = [
    {"id": "1", "sku": "A1", "name": "Apple", "price": "1.50", "quantityOnHand": 120},
    {"id": "2", "sku": "B2", "name": "Banana", "price": "0.75", "quantityOnHand": 200},
    {"id": "3", "sku": "M3", "name": "Whole Milk 1L", "price": "2.49", "quantityOnHand": 40},
    {"id": "4", "sku": "BR4", "name": "Sourdough Bread", "price": "4.25", "quantityOnHand": 25},
    {"id": "5", "sku": "C5", "name": "Cheddar Cheese", "price": "5.99", "quantityOnHand": 30},
    {"id": "6", "sku": "E6", "name": "Free Range Eggs (12)", "price": "3.89", "quantityOnHand": 60},
]


def parse_products(payload: Any) -> List[Product]:
    """Accept either a bare list of products or {"products": [...]}."""
    if isinstance(payload, dict):
        payload = payload.get("products", payload.get("items"))
    if not isinstance(payload, list):
        raise CatalogLoadError("Catalog payload must be a list of products")
    try:
        return [Product.model_validate(item) for item in payload]
    except ValidationError as e:
        raise CatalogLoadError(f"Invalid product record: {e}") from e


class CatalogService:
    """In-process catalog that also acts as the inventory gateway."""

    def __init__(
        self,
        products: Optional[Iterable[Product]] = None,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        if products is None:
            products = [Product.model_validate(item) for item in DEMO_PRODUCTS]
        self._products: List[Product] = list(products)
        self.api_url = api_url if api_url is not None else settings.INVENTORY_API_URL
        self.api_key = api_key if api_key is not None else settings.INVENTORY_API_KEY

    def products(self) -> List[Product]:
        return list(self._products)

    def get(self, product_id: str) -> Optional[Product]:
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    def replace(self, products: Iterable[Product]) -> None:
        self._products = list(products)
        logger.info(f"Catalog replaced: {len(self._products)} products")

    async def adjust_quantity(self, product_id: str, delta: int) -> Product:
        """
        Apply a stock delta (negative for sales).

        Stock may go below zero: the goods have already left the store.
        """
        product = self.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        product.quantity_on_hand += delta
        logger.info(f"Stock {product.sku}: {delta:+d} -> {product.quantity_on_hand}")
        if product.quantity_on_hand < 0:
            logger.warning(f"Stock for {product.sku} is negative ({product.quantity_on_hand})")
        return product

    def load_file(self, path: str) -> int:
        """Replace the catalog with products read from a JSON file."""
        try:
            payload = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogLoadError(f"Could not read catalog file {path}: {e}") from e
        self.replace(parse_products(payload))
        return len(self._products)

    async def refresh_from_remote(self) -> int:
        """
        Pull the product list from the inventory API.

        Returns:
            Number of products loaded, or -1 if the refresh failed and the
            current catalog was kept.
        """
        if not self.api_url:
            logger.debug("INVENTORY_API_URL not set; skipping catalog refresh")
            return -1

        headers = {"accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key

        try:
            async with httpx.AsyncClient(timeout=15.0) as client:
                response = await client.get(self.api_url, headers=headers)
                response.raise_for_status()
                products = parse_products(response.json())
        except (httpx.HTTPError, ValueError, CatalogLoadError) as e:
            logger.error(f"Catalog refresh failed: {e}")
            return -1

        self.replace(products)
        return len(products)


catalog_service = CatalogService()
