"""Checkout failure taxonomy.

Every hard failure of a checkout attempt is a ``CheckoutError`` subclass
carrying a stable ``code`` (for API clients) and a ``message`` fit to show the
shopper. Soft outcomes (unresolvable lines, insufficient stock) are data on
the partition and backorder results, not exceptions.
"""

from enum import Enum


class CheckoutError(Exception):
    """Base class for a categorized checkout failure."""

    code = "checkout_failed"
    default_message = "Something went wrong. Please try again."
    http_status = 400

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        # Set by the orchestrator when a draft was already persisted before the failure
        self.backorder = None
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class EmptyCart(CheckoutError):
    code = "empty_cart"
    default_message = "Your cart is empty."


class AddressMissing(CheckoutError):
    code = "address_missing"
    default_message = "Please add a delivery address before placing the order."
    http_status = 422


class ResalePriceInvalid(CheckoutError):
    code = "resale_price_invalid"
    default_message = "Please enter a valid selling price."
    http_status = 422

    def __init__(self, message: str | None = None, line_id: str | None = None, **context):
        super().__init__(message, line_id=line_id, **context)
        self.line_id = line_id


class CouponRejection(Enum):
    NOT_FOUND = "not_found"
    NOT_YET_ACTIVE = "not_yet_active"
    EXPIRED = "expired"
    BELOW_MINIMUM_ORDER = "below_minimum_order"
    USAGE_CAP_REACHED = "usage_cap_reached"
    PER_USER_CAP_REACHED = "per_user_cap_reached"


_COUPON_MESSAGES = {
    CouponRejection.NOT_FOUND: "This coupon code is not valid.",
    CouponRejection.NOT_YET_ACTIVE: "This coupon is not yet active.",
    CouponRejection.EXPIRED: "This coupon has expired.",
    CouponRejection.BELOW_MINIMUM_ORDER: "Minimum order value is {min_order_value}.",
    CouponRejection.USAGE_CAP_REACHED: "This coupon has reached its usage limit.",
    CouponRejection.PER_USER_CAP_REACHED: "You can only use this coupon {per_user_limit} time(s).",
}


class CouponInvalid(CheckoutError):
    code = "coupon_invalid"
    http_status = 422

    def __init__(self, reason: CouponRejection, **context):
        self.reason = reason
        super().__init__(_COUPON_MESSAGES[reason].format(**context), **context)

    def to_dict(self) -> dict:
        return {"code": self.code, "reason": self.reason.value, "message": self.message}


class PersistenceFailure(CheckoutError):
    """A store write failed; any partial write has already been compensated."""

    code = "persistence_failure"
    default_message = "We could not place your order. Please try again."
    http_status = 500


class LedgerSyncFailure(CheckoutError):
    """An ancillary ledger write failed. Logged by the caller, never surfaced."""

    code = "ledger_sync_failure"
    default_message = "Ledger synchronisation failed."
    http_status = 500
