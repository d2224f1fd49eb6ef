"""API models using Pydantic.

Request bodies for the terminal endpoints and the session view returned by
every terminal operation. Amounts are rounded to cents here, for display.
"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from pydantic import BaseModel, Field

from pos_terminal.services.payment_service import PaymentMethod

CENTS = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


# --- Requests ---

class ScanRequest(BaseModel):
    term: str = Field(..., min_length=1, max_length=200)

class QuantityRequest(BaseModel):
    quantity: int

class CustomerRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=120)

class PaymentRequest(BaseModel):
    method: PaymentMethod


# --- Responses ---

class CartLineView(BaseModel):
    product_id: str
    name: str
    sku: str
    price: Decimal
    quantity: int
    line_total: Decimal

class ReceiptView(BaseModel):
    reference: Optional[str] = None
    method: PaymentMethod
    lines: List[CartLineView] = []
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    customer_name: Optional[str] = None
    paid_at: datetime

class ScannerView(BaseModel):
    status: str
    url: str
    last_scanned_code: Optional[str] = None
    reconnect_pending: bool = False

class SessionView(BaseModel):
    terminal: str
    title: str
    state: str
    lines: List[CartLineView] = []
    item_count: int = 0
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    last_error: Optional[str] = None
    last_scanned_code: Optional[str] = None
    payment_snapshot_total: Decimal
    customer_name: Optional[str] = None
    receipt: Optional[ReceiptView] = None
    scanner: ScannerView

class ProductView(BaseModel):
    id: str
    sku: str
    name: str
    price: Decimal
    quantity_on_hand: int

class OperationResult(BaseModel):
    accepted: bool
    session: SessionView
