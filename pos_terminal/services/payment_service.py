"""
Payment Service: settlement stand-in for the checkout terminals.

The simulated gateway waits a fixed settlement delay and always approves.
A real gateway must implement the same `settle` coroutine and report
declines through `PaymentResult.approved = False`.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Protocol
import asyncio
import logging
import uuid

from pos_terminal.utils.config import settings

logger = logging.getLogger(__name__)


class PaymentMethod(str, Enum):
    CARD = "card"
    CASH = "cash"


@dataclass
class PaymentResult:
    approved: bool
    reference: Optional[str] = None
    message: str = ""


class PaymentGateway(Protocol):
    async def settle(self, amount: Decimal, method: PaymentMethod) -> PaymentResult:
        ...


class SimulatedPaymentGateway:
    """Fixed-latency gateway that approves every settlement."""

    def __init__(self, settlement_delay: Optional[float] = None):
        if settlement_delay is None:
            settlement_delay = settings.PAYMENT_SETTLEMENT_DELAY
        self.settlement_delay = settlement_delay

    async def settle(self, amount: Decimal, method: PaymentMethod) -> PaymentResult:
        reference = f"SIM-{uuid.uuid4().hex[:12]}"
        logger.info(f"Mocking {PaymentMethod(method).value} settlement of {amount:.2f} (ref: {reference})")
        await asyncio.sleep(self.settlement_delay)
        return PaymentResult(approved=True, reference=reference, message="Approved")
