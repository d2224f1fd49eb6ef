"""
Cart: line items keyed by product id with derived subtotal, tax and total.

Prices are frozen when a product is first added; later increments never
re-read the catalog. Totals are recomputed from the lines on every call.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional

from pos_terminal.models.product import Product

DEFAULT_TAX_RATE = Decimal("0.08")


@dataclass
class CartLine:
    product_id: str
    name: str
    sku: str
    price: Decimal
    quantity: int = 1

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class Cart:
    """Ordered collection of cart lines. Order is for display only."""

    def __init__(self, tax_rate: Decimal = DEFAULT_TAX_RATE):
        self.tax_rate = Decimal(tax_rate)
        self._lines: Dict[str, CartLine] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._lines

    def get(self, product_id: str) -> Optional[CartLine]:
        return self._lines.get(product_id)

    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def add_or_increment(self, product: Product) -> CartLine:
        line = self._lines.get(product.id)
        if line:
            line.quantity += 1
            return line

        line = CartLine(
            product_id=product.id,
            name=product.name,
            sku=product.sku,
            price=product.price,
        )
        self._lines[product.id] = line
        return line

    def set_quantity(self, product_id: str, quantity: int) -> None:
        """Overwrite a line's quantity; zero or negative removes the line."""
        if quantity <= 0:
            self.remove(product_id)
            return
        line = self._lines.get(product_id)
        if line:
            line.quantity = quantity

    def remove(self, product_id: str) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self._lines.values()), Decimal("0"))

    def tax(self) -> Decimal:
        return self.subtotal() * self.tax_rate

    def total(self) -> Decimal:
        return self.subtotal() + self.tax()
