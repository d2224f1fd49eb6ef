import asyncio
from decimal import Decimal

import pytest

from pos_terminal.models.product import Product
from pos_terminal.services.catalog_service import CatalogService, DEMO_PRODUCTS
from pos_terminal.services.payment_service import PaymentResult
from pos_terminal.services.product_resolver import ProductResolver
from pos_terminal.services.transaction_controller import TransactionController


class FakeSocket:
    """Stands in for a websockets client connection: async-iterates frames until closed."""

    _CLOSE = object()

    def __init__(self):
        self.frames = asyncio.Queue()
        self.closed = False

    def push(self, frame):
        self.frames.put_nowait(frame)

    def drop(self):
        """Simulate the device going away."""
        self.frames.put_nowait(self._CLOSE)

    async def close(self):
        self.closed = True
        self.frames.put_nowait(self._CLOSE)

    def __aiter__(self):
        return self

    async def __anext__(self):
        frame = await self.frames.get()
        if frame is self._CLOSE:
            raise StopAsyncIteration
        return frame


class FakeConnector:
    """Hands out FakeSockets; `fail` makes the next attempts raise."""

    def __init__(self):
        self.sockets = []
        self.urls = []
        self.fail = False
        self.gate = None

    async def __call__(self, url):
        self.urls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise OSError("Connection refused")
        socket = FakeSocket()
        self.sockets.append(socket)
        return socket


class StubPayments:
    """Payment gateway with a controllable result and latency."""

    def __init__(self, approved=True, delay=0.0, message="Approved"):
        self.approved = approved
        self.delay = delay
        self.message = message
        self.calls = []

    async def settle(self, amount, method):
        self.calls.append((amount, method))
        await asyncio.sleep(self.delay)
        if not self.approved:
            return PaymentResult(approved=False, message=self.message)
        return PaymentResult(approved=True, reference=f"TEST-{len(self.calls)}", message=self.message)


@pytest.fixture
def catalog():
    return CatalogService(
        products=[Product.model_validate(item) for item in DEMO_PRODUCTS],
        api_url="",
        api_key="",
    )


@pytest.fixture
def payments():
    return StubPayments()


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def make_controller(catalog, payments):
    def _make(reset_delay=0.05, **kwargs):
        return TransactionController(
            resolver=ProductResolver(catalog.products),
            inventory=kwargs.pop("inventory", catalog),
            payments=kwargs.pop("payments", payments),
            reset_delay=reset_delay,
            tax_rate=kwargs.pop("tax_rate", Decimal("0.08")),
            name="test",
        )
    return _make
