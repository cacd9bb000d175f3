"""Checkout orchestration: one attempt, one outcome.

    EmptyCart? -> Partition -> Backorder (best effort) -> in-stock empty? done
    -> AddressMissing? -> ResalePriceInvalid? -> Price -> Order

A checkout either returns a CheckoutOutcome carrying an order, a backorder
draft, or both, or raises exactly one CheckoutError. Lookup problems never
abort an attempt; they degrade inside the partitioner. When a hard failure
happens after a draft was already saved, the draft travels on the raised
error as ``exc.backorder``.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable
from uuid import uuid4

import structlog

from checkout.address import get_address_provider
from checkout.address.port import AddressProvider, AddressSnapshot
from checkout.availability.partitioner import AvailabilityPartitioner
from checkout.backorder.materializer import BackorderMaterializer, BackorderResult
from checkout.cart import get_cart_store
from checkout.cart.port import CartStore
from checkout.catalog import get_catalog
from checkout.catalog.port import CatalogPort
from checkout.config import EngineSettings
from checkout.coupon.coupon import normalize_code
from checkout.coupon.validation import validate_coupon
from checkout.customer import CustomerProfile
from checkout.errors import AddressMissing, CheckoutError, EmptyCart, PersistenceFailure
from checkout.order.materializer import OrderMaterializer, OrderRef, PaymentDetails
from checkout.pricing.engine import coupon_discount, price, subtotal
from checkout.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)


class CartMutation(Enum):
    ORDERED = "ordered"
    DRAFTED = "drafted"


@dataclass(frozen=True)
class AppliedCoupon:
    code: str
    discount_amount: float
    subtotal: float


@dataclass(frozen=True)
class CheckoutOutcome:
    order: OrderRef | None = None
    backorder: BackorderResult | None = None
    backorder_failed: bool = False

    @property
    def drafted(self) -> bool:
        return self.backorder is not None and self.backorder.draft is not None


class CheckoutService:
    """Runs checkout for one shopper against their live cart.

    Collaborators default to the process-wide adapters from each factory;
    tests pass in-memory fakes explicitly.
    """

    def __init__(
        self,
        customer: CustomerProfile,
        cart: CartStore | None = None,
        catalog: CatalogPort | None = None,
        addresses: AddressProvider | None = None,
        payment: PaymentDetails | None = None,
        settings: EngineSettings | None = None,
        on_cart_mutated: Callable[[CartMutation, tuple[str, ...]], None] | None = None,
    ):
        self.customer = customer
        self.cart = cart or get_cart_store()
        self.catalog = catalog or get_catalog()
        self.addresses = addresses or get_address_provider()
        self.payment = payment or PaymentDetails()
        self.settings = settings or EngineSettings.from_env()
        self.coupon_code: str | None = None

        self._listeners: list[Callable] = []
        if on_cart_mutated is not None:
            self._listeners.append(on_cart_mutated)

        self.partitioner = AvailabilityPartitioner(self.catalog, self.settings)
        self.orders = OrderMaterializer(self.cart, currency=self.settings.currency)
        self.backorders = BackorderMaterializer(self.cart)

    @property
    def user_id(self):
        return self.customer.user_id

    def subscribe(self, callback: Callable[[CartMutation, tuple[str, ...]], None]) -> None:
        self._listeners.append(callback)

    def _notify(self, kind: CartMutation, line_ids: tuple[str, ...]) -> None:
        for callback in self._listeners:
            try:
                callback(kind, line_ids)
            except Exception:
                logger.error("cart_mutation_callback_failed", kind=kind.value, exc_info=True)

    # ------------------------------------------------------------------
    # Coupons
    # ------------------------------------------------------------------
    def apply_coupon(self, code: str) -> AppliedCoupon:
        """Validate ``code`` against the current cart and keep it for checkout."""
        lines = self.cart.list(self.user_id)
        if not lines:
            raise EmptyCart()

        amount = subtotal(lines)
        coupon = validate_coupon(code, amount, user_id=self.user_id)
        self.coupon_code = coupon.code
        discount = coupon_discount(coupon, amount)
        logger.info("coupon_applied", user_id=self.user_id, code=coupon.code, discount=discount)
        return AppliedCoupon(code=coupon.code, discount_amount=discount, subtotal=amount)

    def remove_coupon(self) -> None:
        if self.coupon_code:
            logger.info("coupon_removed", user_id=self.user_id, code=self.coupon_code)
        self.coupon_code = None

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------
    def _default_address(self) -> AddressSnapshot | None:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="checkout-address")
        try:
            future = executor.submit(self.addresses.default_address, self.user_id)
            return future.result(timeout=self.settings.lookup_timeout_seconds)
        except Exception as exc:
            logger.warning("address_lookup_failed", user_id=self.user_id, error=repr(exc))
            return None
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def checkout(self, coupon_code: str | None = None) -> CheckoutOutcome:
        """Place an order for in-stock lines and draft the rest.

        ``coupon_code`` overrides any coupon remembered by apply_coupon().
        """
        add_context(checkout_id=str(uuid4()), user_id=str(self.user_id))
        try:
            return self._run(normalize_code(coupon_code) or self.coupon_code)
        finally:
            clear_context()

    def _run(self, coupon_code: str | None) -> CheckoutOutcome:
        lines = self.cart.list(self.user_id)
        if not lines:
            raise EmptyCart()

        logger.info("checkout_started", lines=len(lines), coupon_code=coupon_code)
        partition = self.partitioner.partition(lines)
        address = self._default_address()

        backorder = None
        backorder_failed = False
        if partition.out_of_stock:
            try:
                backorder = self.backorders.materialize(
                    partition.out_of_stock,
                    self.user_id,
                    address=address,
                    payment_method=self.payment.method,
                )
            except PersistenceFailure:
                backorder_failed = True
                logger.error("backorder_failed", lines=len(partition.out_of_stock))
            else:
                if backorder.draft is not None:
                    self._notify(CartMutation.DRAFTED, backorder.draft.line_ids)

        if not partition.in_stock:
            if backorder_failed:
                raise PersistenceFailure("We could not save your backorder. Please try again.")
            logger.info("checkout_completed", order=None, backorder=backorder.draft is not None)
            return CheckoutOutcome(backorder=backorder)

        try:
            if address is None or not address.is_deliverable():
                raise AddressMissing()

            quote = price(
                [resolved.line for resolved in partition.in_stock],
                coupon_code=coupon_code,
                user_id=self.user_id,
            )
            order = self.orders.materialize(
                partition.in_stock,
                quote,
                address,
                self.customer,
                self.payment,
            )
        except CheckoutError as exc:
            exc.backorder = backorder
            logger.info("checkout_failed", code=exc.code, backorder=backorder is not None and backorder.draft is not None)
            raise

        self._notify(CartMutation.ORDERED, order.line_ids)
        if quote.coupon is not None:
            self.coupon_code = None

        logger.info(
            "checkout_completed",
            order_number=order.order_number,
            backorder=backorder is not None and backorder.draft is not None,
        )
        return CheckoutOutcome(order=order, backorder=backorder, backorder_failed=backorder_failed)
