"""Domain exceptions for the checkout terminal."""


class POSError(Exception):
    """Base class for checkout terminal errors."""


class ProductNotFoundError(POSError):
    """No catalog product carries the requested id."""

    def __init__(self, product_id: str):
        super().__init__(f"Unknown product: {product_id}")
        self.product_id = product_id


class UnknownTerminalError(POSError):
    """No terminal is registered for the requested variant."""

    def __init__(self, variant: str):
        super().__init__(f"Unknown terminal: {variant}")
        self.variant = variant


class CatalogLoadError(POSError):
    """The catalog source could not be read or parsed."""
