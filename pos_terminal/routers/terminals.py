"""
Terminal Router: HTTP surface for the customer and staff checkout terminals.

Each endpoint delegates to the terminal's TransactionController or
ScannerLink and returns the resulting session view. Advisory errors (unknown
product, cart locked, payment declined) come back in `last_error`, not as
HTTP errors.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from pos_terminal.models.api_models import (
    CartLineView,
    CustomerRequest,
    OperationResult,
    PaymentRequest,
    ProductView,
    QuantityRequest,
    ReceiptView,
    ScannerView,
    ScanRequest,
    SessionView,
    to_cents,
)
from pos_terminal.services.cart import CartLine
from pos_terminal.services.terminal_service import Terminal, TerminalService
from pos_terminal.utils.exceptions import UnknownTerminalError
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_terminal_service(request: Request) -> TerminalService:
    return request.app.state.terminal_service


def get_terminal(variant: str, service: TerminalService = Depends(get_terminal_service)) -> Terminal:
    try:
        return service.get(variant)
    except UnknownTerminalError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _line_view(line: CartLine) -> CartLineView:
    return CartLineView(
        product_id=line.product_id,
        name=line.name,
        sku=line.sku,
        price=to_cents(line.price),
        quantity=line.quantity,
        line_total=to_cents(line.line_total),
    )


def build_session_view(terminal: Terminal) -> SessionView:
    controller = terminal.controller
    cart = controller.cart
    receipt = None
    if controller.receipt:
        r = controller.receipt
        receipt = ReceiptView(
            reference=r.reference,
            method=r.method,
            lines=[_line_view(line) for line in r.lines],
            subtotal=to_cents(r.subtotal),
            tax=to_cents(r.tax),
            total=to_cents(r.total),
            customer_name=r.customer_name,
            paid_at=r.paid_at,
        )

    return SessionView(
        terminal=terminal.variant.value,
        title=terminal.options.title,
        state=controller.state.value,
        lines=[_line_view(line) for line in cart.lines()],
        item_count=cart.item_count(),
        subtotal=to_cents(cart.subtotal()),
        tax=to_cents(cart.tax()),
        total=to_cents(cart.total()),
        last_error=controller.last_error,
        last_scanned_code=controller.last_scanned_code,
        payment_snapshot_total=to_cents(controller.payment_snapshot_total),
        customer_name=controller.customer_name,
        receipt=receipt,
        scanner=ScannerView(
            status=terminal.scanner.status.value,
            url=terminal.scanner.url,
            last_scanned_code=terminal.scanner.last_scanned_code,
            reconnect_pending=terminal.scanner.reconnect_pending,
        ),
    )


def _result(accepted: bool, terminal: Terminal) -> OperationResult:
    return OperationResult(accepted=accepted, session=build_session_view(terminal))


@router.get("", response_model=List[SessionView])
async def list_terminals(service: TerminalService = Depends(get_terminal_service)):
    return [build_session_view(t) for t in service.all()]


@router.get("/{variant}", response_model=SessionView)
async def get_session(terminal: Terminal = Depends(get_terminal)):
    return build_session_view(terminal)


@router.post("/{variant}/scan", response_model=OperationResult)
async def scan(body: ScanRequest, terminal: Terminal = Depends(get_terminal)):
    line = terminal.controller.scan(body.term)
    return _result(line is not None, terminal)


@router.put("/{variant}/items/{product_id}", response_model=OperationResult)
async def set_quantity(product_id: str, body: QuantityRequest, terminal: Terminal = Depends(get_terminal)):
    accepted = terminal.controller.set_quantity(product_id, body.quantity)
    return _result(accepted, terminal)


@router.delete("/{variant}/items/{product_id}", response_model=OperationResult)
async def remove_item(product_id: str, terminal: Terminal = Depends(get_terminal)):
    accepted = terminal.controller.remove_item(product_id)
    return _result(accepted, terminal)


@router.put("/{variant}/customer", response_model=OperationResult)
async def set_customer(body: CustomerRequest, terminal: Terminal = Depends(get_terminal)):
    if not terminal.options.collects_customer_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{terminal.options.title} does not record customer names",
        )
    terminal.controller.set_customer_name(body.name)
    return _result(True, terminal)


@router.post("/{variant}/payment", response_model=OperationResult)
async def submit_payment(body: PaymentRequest, terminal: Terminal = Depends(get_terminal)):
    accepted = await terminal.controller.submit_payment(body.method)
    return _result(accepted, terminal)


@router.post("/{variant}/new-transaction", response_model=OperationResult)
async def start_new_transaction(terminal: Terminal = Depends(get_terminal)):
    accepted = terminal.controller.start_new_transaction()
    return _result(accepted, terminal)


@router.post("/{variant}/scanner/reconnect", response_model=OperationResult)
async def reconnect_scanner(terminal: Terminal = Depends(get_terminal)):
    if not terminal.scanner_enabled:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{terminal.options.title} has no scanner enabled",
        )
    await terminal.scanner.reconnect()
    return _result(True, terminal)


@router.get("/{variant}/quick-add", response_model=List[ProductView])
async def quick_add(terminal: Terminal = Depends(get_terminal)):
    return [
        ProductView(
            id=p.id,
            sku=p.sku,
            name=p.name,
            price=to_cents(p.price),
            quantity_on_hand=p.quantity_on_hand,
        )
        for p in terminal.quick_add_products()
    ]
