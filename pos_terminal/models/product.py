"""Catalog product record shared by every terminal."""
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    sku: str
    name: str
    price: Decimal = Field(ge=0)
    quantity_on_hand: int = Field(0, alias="quantityOnHand")
