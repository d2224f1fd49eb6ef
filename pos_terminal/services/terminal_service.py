"""
Terminal Service: one scanner link + one checkout session per terminal variant.

The customer self-checkout and the staff checkout share every piece of
checkout logic; they differ only in cosmetic options (quick-add list size,
optional customer name). Both run against the same catalog.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pos_terminal.models.product import Product
from pos_terminal.services.cart import DEFAULT_TAX_RATE
from pos_terminal.services.catalog_service import CatalogService, catalog_service
from pos_terminal.services.payment_service import PaymentGateway, SimulatedPaymentGateway
from pos_terminal.services.product_resolver import ProductResolver
from pos_terminal.services.scanner_link import Connector, ScannerLink
from pos_terminal.services.transaction_controller import TransactionController
from pos_terminal.utils.config import BaseConfig, settings
from pos_terminal.utils.exceptions import UnknownTerminalError
import logging

logger = logging.getLogger(__name__)


class TerminalVariant(str, Enum):
    CUSTOMER = "customer"
    STAFF = "staff"


@dataclass
class TerminalOptions:
    variant: TerminalVariant
    title: str
    scanner_url: str
    quick_add_limit: int = 3
    collects_customer_name: bool = False


class Terminal:
    """A checkout terminal: scanner link feeding a transaction controller."""

    def __init__(
        self,
        options: TerminalOptions,
        catalog: CatalogService,
        payments: PaymentGateway,
        reconnect_delay: float = 5.0,
        reset_delay: float = 5.0,
        tax_rate: Decimal = DEFAULT_TAX_RATE,
        connector: Optional[Connector] = None,
        scanner_enabled: bool = True,
    ):
        self.options = options
        self.catalog = catalog
        self.scanner_enabled = scanner_enabled
        name = options.variant.value

        self.controller = TransactionController(
            resolver=ProductResolver(catalog.products),
            inventory=catalog,
            payments=payments,
            reset_delay=reset_delay,
            name=name,
            tax_rate=tax_rate,
        )
        self.scanner = ScannerLink(
            url=options.scanner_url,
            on_code=self.controller.scan_from_device,
            reconnect_delay=reconnect_delay,
            connector=connector,
            name=name,
        )

    @property
    def variant(self) -> TerminalVariant:
        return self.options.variant

    def start(self) -> None:
        if self.scanner_enabled:
            self.scanner.connect()
        else:
            logger.info(f"{self.options.title}: scanner disabled, manual entry only")

    async def stop(self) -> None:
        await self.scanner.disconnect()
        self.controller.close()

    def quick_add_products(self) -> List[Product]:
        return self.catalog.products()[: self.options.quick_add_limit]


class TerminalService:
    """Holds the customer and staff terminals for the lifetime of the app."""

    def __init__(self, terminals: Optional[List[Terminal]] = None):
        self._terminals: Dict[TerminalVariant, Terminal] = {}
        for terminal in terminals or []:
            self._terminals[terminal.variant] = terminal

    @classmethod
    def from_settings(
        cls,
        config: BaseConfig = settings,
        catalog: Optional[CatalogService] = None,
        payments: Optional[PaymentGateway] = None,
        connector: Optional[Connector] = None,
    ) -> "TerminalService":
        catalog = catalog or catalog_service
        payments = payments or SimulatedPaymentGateway(config.PAYMENT_SETTLEMENT_DELAY)
        option_sets = [
            TerminalOptions(
                variant=TerminalVariant.CUSTOMER,
                title="Self Checkout",
                scanner_url=config.SCANNER_WS_URL,
                quick_add_limit=config.CUSTOMER_QUICK_ADD_LIMIT,
            ),
            TerminalOptions(
                variant=TerminalVariant.STAFF,
                title="Staff Checkout Terminal",
                scanner_url=config.staff_scanner_url,
                quick_add_limit=config.STAFF_QUICK_ADD_LIMIT,
                collects_customer_name=True,
            ),
        ]
        terminals = [
            Terminal(
                options,
                catalog=catalog,
                payments=payments,
                reconnect_delay=config.SCANNER_RECONNECT_DELAY,
                reset_delay=config.AUTO_RESET_DELAY,
                tax_rate=config.TAX_RATE,
                connector=connector,
                scanner_enabled=config.SCANNER_ENABLED,
            )
            for options in option_sets
        ]
        return cls(terminals)

    def get(self, variant: str) -> Terminal:
        try:
            return self._terminals[TerminalVariant(variant)]
        except (ValueError, KeyError):
            raise UnknownTerminalError(str(variant)) from None

    def all(self) -> List[Terminal]:
        return list(self._terminals.values())

    def start_all(self) -> None:
        for terminal in self._terminals.values():
            terminal.start()
            logger.info(f"Started {terminal.options.title}")

    async def stop_all(self) -> None:
        for terminal in self._terminals.values():
            try:
                await terminal.stop()
            except Exception as e:
                logger.error(f"Error stopping {terminal.options.title}: {e}")
        logger.info("All terminals stopped")
