"""
Transaction Controller: the checkout session state machine.

    Idle <-> Scanning --submit_payment--> Paying --approved--> Success
                ^                            |                    |
                +------- declined -----------+                    |
                +------------- auto-reset / new transaction ------+

Idle and Scanning differ only by whether the cart holds anything. The
controller owns the cart, the advisory error banner, the payment snapshot
and the auto-reset timer. All mutation happens on the event loop thread.
"""
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Protocol
import asyncio

from pos_terminal.services.cart import Cart, CartLine, DEFAULT_TAX_RATE
from pos_terminal.services.payment_service import PaymentGateway, PaymentMethod, PaymentResult
from pos_terminal.services.product_resolver import ProductResolver
from pos_terminal.utils.structured_logging import get_logger


class TransactionState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    PAYING = "paying"
    SUCCESS = "success"


class InventoryGateway(Protocol):
    async def adjust_quantity(self, product_id: str, delta: int):
        ...


@dataclass
class Receipt:
    reference: Optional[str]
    method: PaymentMethod
    lines: List[CartLine]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    customer_name: Optional[str]
    paid_at: datetime


class TransactionController:
    """One checkout session per terminal. Not shared across terminals."""

    def __init__(
        self,
        resolver: ProductResolver,
        inventory: InventoryGateway,
        payments: PaymentGateway,
        reset_delay: float = 5.0,
        tax_rate: Decimal = DEFAULT_TAX_RATE,
        name: str = "terminal",
    ):
        self.name = name
        self.reset_delay = reset_delay
        self.cart = Cart(tax_rate)
        self.last_error: Optional[str] = None
        self.last_scanned_code: Optional[str] = None
        self.payment_snapshot_total = Decimal("0")
        self.receipt: Optional[Receipt] = None
        self.customer_name: Optional[str] = None

        self._resolver = resolver
        self._inventory = inventory
        self._payments = payments
        self._paying = False
        self._success = False
        self._closed = False
        self._generation = 0
        self._reset_task: Optional[asyncio.Task] = None
        self._logger = get_logger(__name__).bind(terminal=name)

    @property
    def state(self) -> TransactionState:
        if self._paying:
            return TransactionState.PAYING
        if self._success:
            return TransactionState.SUCCESS
        return TransactionState.SCANNING if len(self.cart) else TransactionState.IDLE

    @property
    def reset_pending(self) -> bool:
        return self._reset_task is not None and not self._reset_task.done()

    # ---- scanning & cart edits ----

    def scan(self, term: str) -> Optional[CartLine]:
        """Resolve a term and add the product; misses only set the error banner."""
        if self._paying:
            self.last_error = "Payment is processing. Please wait before scanning more items."
            self._logger.warning(f"Scan '{term}' rejected: payment in flight")
            return None
        if self._success:
            self._logger.info("Scan after completed sale; starting a new transaction")
            self.start_new_transaction()

        self.last_error = None
        if not term or not term.strip():
            return None

        product = self._resolver.resolve(term)
        if product is None:
            self.last_error = f"Product not found: {term}"
            self._logger.info(f"No catalog match for '{term}'")
            return None

        line = self.cart.add_or_increment(product)
        self._logger.info(f"Added {product.sku} (qty {line.quantity})")
        return line

    def scan_from_device(self, code: str) -> Optional[CartLine]:
        self.last_scanned_code = code
        return self.scan(code)

    def set_quantity(self, product_id: str, quantity: int) -> bool:
        if self._cart_locked():
            return False
        self.cart.set_quantity(product_id, quantity)
        return True

    def remove_item(self, product_id: str) -> bool:
        if self._cart_locked():
            return False
        self.cart.remove(product_id)
        return True

    def set_customer_name(self, name: Optional[str]) -> None:
        self.customer_name = (name or "").strip() or None

    def _cart_locked(self) -> bool:
        if self._paying:
            self.last_error = "The cart cannot be changed while payment is processing."
            return True
        if self._success:
            self.last_error = "This sale is complete. Start a new transaction to edit the cart."
            return True
        return False

    # ---- payment ----

    async def submit_payment(self, method: PaymentMethod) -> bool:
        """
        Settle the current cart.

        Returns True only for the call that completed a sale on this session.
        A call made while another settlement is in flight is ignored. If the
        session is reset before settlement finishes, stock is still adjusted
        for an approved payment but the new session is left untouched.
        """
        if self._paying:
            self._logger.info("Duplicate payment submission ignored")
            return False
        if self._success:
            self._logger.info("Payment submitted for an already completed sale; ignored")
            return False
        if not len(self.cart):
            self.last_error = "Cart is empty. Scan items before paying."
            return False

        method = PaymentMethod(method)
        generation = self._generation
        self._paying = True
        self.last_error = None
        lines = [replace(line) for line in self.cart.lines()]
        subtotal, tax, total = self.cart.subtotal(), self.cart.tax(), self.cart.total()
        self._logger.info(f"Settling {total:.2f} by {method.value} for {len(lines)} line(s)")

        try:
            result = await self._payments.settle(total, method)
        except Exception as e:
            self._logger.error(f"Payment gateway error: {e}")
            result = PaymentResult(approved=False, message=str(e) or "gateway error")

        if generation != self._generation:
            # Session was reset mid-settlement; the goods still left the store
            if result.approved:
                self._logger.info(f"Settlement {result.reference} completed after the session was reset")
                await self._adjust_inventory(lines)
            else:
                self._logger.info("Settlement declined after the session was reset")
            return False

        if not result.approved:
            self._paying = False
            self.last_error = f"Payment declined: {result.message or 'no reason given'}"
            self._logger.warning(self.last_error)
            return False

        await self._adjust_inventory(lines)
        if generation != self._generation:
            return False

        self.payment_snapshot_total = total
        self.receipt = Receipt(
            reference=result.reference,
            method=method,
            lines=lines,
            subtotal=subtotal,
            tax=tax,
            total=total,
            customer_name=self.customer_name,
            paid_at=datetime.now(timezone.utc),
        )
        self._paying = False
        self._success = True
        self._logger.info(f"Payment approved (ref: {result.reference})")

        if not self._closed:
            self._schedule_reset()
        return True

    async def _adjust_inventory(self, lines: List[CartLine]) -> None:
        # One adjustment per line; a failed line is logged and not retried.
        for line in lines:
            try:
                await self._inventory.adjust_quantity(line.product_id, -line.quantity)
            except Exception as e:
                self._logger.error(f"Inventory adjustment failed for {line.sku}: {e}")

    # ---- reset ----

    def start_new_transaction(self) -> bool:
        """Clear the session from any state. An in-flight settlement is detached, not cancelled."""
        if self._paying:
            self._logger.info("New transaction while payment in flight; detaching settlement")
        self._generation += 1
        self._paying = False
        self._cancel_reset()
        self._reset_session()
        self.last_error = None
        return True

    def close(self) -> None:
        """Cancel pending timers; used on terminal teardown."""
        self._closed = True
        self._cancel_reset()

    def _schedule_reset(self) -> None:
        self._cancel_reset()
        self._reset_task = asyncio.create_task(self._auto_reset())

    def _cancel_reset(self) -> None:
        task, self._reset_task = self._reset_task, None
        if task is not None and not task.done():
            task.cancel()

    async def _auto_reset(self) -> None:
        await asyncio.sleep(self.reset_delay)
        if self._reset_task is not asyncio.current_task():
            return
        self._reset_task = None
        self._logger.info("Auto-reset after completed sale")
        self._reset_session()

    def _reset_session(self) -> None:
        self.cart.clear()
        self.customer_name = None
        self.payment_snapshot_total = Decimal("0")
        self.receipt = None
        self._success = False
