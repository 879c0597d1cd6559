"""Typed failures raised by the marketplace core.

Malformed input is reported with Protean's ``ValidationError`` (a dict of
field to messages). Everything else the core can refuse has its own type so
the request layer can map it to a response without parsing messages.
"""


class MarketplaceError(Exception):
    """Base class for marketplace failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ProductUnavailableError(MarketplaceError):
    """One or more requested products do not exist or are not active."""

    def __init__(self, product_ids, message: str | None = None):
        self.product_ids = sorted(str(pid) for pid in product_ids)
        super().__init__(message or f"Products unavailable: {', '.join(self.product_ids)}")

    def to_dict(self) -> dict:
        return {"error": self.message, "product_ids": self.product_ids}


class InsufficientStockError(MarketplaceError):
    """Requested quantity exceeds what is on hand.

    ``stale`` is set when the pre-check passed but a concurrent purchase
    consumed the stock before the conditional write; the caller should
    re-read the cart and catalogue rather than retry blindly.
    """

    STALE_MESSAGE = "Insufficient stock for one or more items. Please refresh and try again."

    def __init__(
        self,
        message: str | None = None,
        product_id=None,
        product_name=None,
        requested=None,
        available=None,
        stale: bool = False,
    ):
        self.product_id = str(product_id) if product_id is not None else None
        self.product_name = product_name
        self.requested = requested
        self.available = available
        self.stale = stale
        if message is None:
            if stale:
                message = self.STALE_MESSAGE
            else:
                message = f"Insufficient stock for {product_name or product_id}: requested {requested}, available {available}"
        super().__init__(message)

    @classmethod
    def stale_read(cls):
        return cls(stale=True)

    def to_dict(self) -> dict:
        body = {"error": self.message, "stale": self.stale}
        if self.product_id is not None:
            body.update(
                product_id=self.product_id,
                product_name=self.product_name,
                requested=self.requested,
                available=self.available,
            )
        return body


class InvalidTransitionError(MarketplaceError):
    """The requested order status is not reachable from the current one."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition from {current} to {target}")

    def to_dict(self) -> dict:
        return {"error": self.message, "from": self.current, "to": self.target}


class AccessDeniedError(MarketplaceError):
    """The acting identity may not invoke this operation."""


class StockConflictError(MarketplaceError):
    """A conditional stock edit found a different on-hand count than expected."""

    def __init__(self, product_id, expected: int, message: str | None = None):
        self.product_id = str(product_id)
        self.expected = expected
        super().__init__(message or f"Stock for {product_id} changed since it was read (expected {expected})")


class PersistenceError(MarketplaceError):
    """The transaction could not commit for infrastructure reasons.

    Nothing was applied; the user may retry.
    """
