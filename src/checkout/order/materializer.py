"""Persist an order for the in-stock part of a cart.

The header goes in first, then its line items. If the items cannot be
written the header is deleted again and PersistenceFailure is raised, so no
order is left without lines. Reseller earnings and coupon usage are written
afterwards on a best-effort basis. Finally the ordered lines, and only those,
leave the shopper's cart.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from checkout.address.port import AddressSnapshot
from checkout.availability.partitioner import ResolvedLine
from checkout.cart.port import CartStore
from checkout.customer import CustomerProfile
from checkout.errors import LedgerSyncFailure, PersistenceFailure
from checkout.order.ledger import record_coupon_redemption, record_reseller_earnings
from checkout.order.order import Order, OrderItem, PaymentMethod, PaymentStatus
from checkout.pricing.engine import Quote, line_total, money

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PaymentDetails:
    method: str = PaymentMethod.COD.value
    status: str = PaymentStatus.PENDING.value


@dataclass(frozen=True)
class OrderRef:
    order_id: str
    order_number: str
    status: str
    payable: float
    item_count: int
    line_ids: tuple[str, ...]
    ledger_synced: bool = True


def build_order_item(resolved: ResolvedLine) -> OrderItem:
    line = resolved.line
    return OrderItem(
        product_id=resolved.product_id,
        variant_id=resolved.variant_id,
        line_id=line.line_id,
        name=line.name,
        sku=line.sku,
        size=line.variant_hint.size,
        color=line.variant_hint.color,
        quantity=line.quantity,
        unit_price=line.unit_price,
        total_price=line_total(line),
        is_resale=line.is_resale_flagged,
    )


def _address_fields(address: AddressSnapshot) -> dict:
    return {
        "full_name": address.full_name,
        "phone": address.phone,
        "line1": address.line1,
        "line2": address.line2,
        "city": address.city,
        "state": address.state,
        "postal_code": address.postal_code,
        "country": address.country,
    }


class OrderMaterializer:
    def __init__(self, cart: CartStore, currency: str = "INR"):
        self.cart = cart
        self.currency = currency

    def _compensate(self, order: Order) -> None:
        repo = current_domain.repository_for(Order)
        try:
            record = repo.get(order.id)
        except ObjectNotFoundError:
            return
        repo._dao.delete(record)
        logger.warning("order_header_rolled_back", order_id=str(order.id), order_number=order.order_number)

    def _sync_ledgers(self, order: Order, lines: list[ResolvedLine], quote: Quote, user_id) -> bool:
        synced = True
        if quote.reseller is not None:
            try:
                record_reseller_earnings(user_id, str(order.id), order.order_number, lines)
            except LedgerSyncFailure as exc:
                synced = False
                logger.error("reseller_ledger_sync_failed", order_id=str(order.id), error=exc.message, exc_info=True)

        if quote.coupon is not None:
            try:
                record_coupon_redemption(str(quote.coupon.id), user_id, str(order.id), quote.discount)
            except LedgerSyncFailure as exc:
                synced = False
                logger.error("coupon_ledger_sync_failed", order_id=str(order.id), error=exc.message, exc_info=True)

        return synced

    def materialize(
        self,
        lines: list[ResolvedLine],
        quote: Quote,
        address: AddressSnapshot,
        customer: CustomerProfile,
        payment: PaymentDetails | None = None,
    ) -> OrderRef:
        payment = payment or PaymentDetails()
        repo = current_domain.repository_for(Order)

        try:
            order = Order.open(
                user_id=customer.user_id,
                subtotal=quote.subtotal,
                discount_amount=quote.discount,
                shipping_amount=quote.shipping,
                tax_amount=quote.tax,
                total_amount=quote.payable,
                payment_status=payment.status,
                payment_method=payment.method,
                coupon_code=quote.coupon_code,
                currency=self.currency,
                shipping_address=_address_fields(address),
                customer={"name": customer.name, "email": customer.email, "phone": customer.phone},
                reseller=quote.reseller,
            )
            repo.add(order)
        except Exception as exc:
            logger.error("order_header_write_failed", user_id=customer.user_id, exc_info=True)
            raise PersistenceFailure() from exc

        try:
            order.attach_items([build_order_item(resolved) for resolved in lines])
            repo.add(order)
        except Exception as exc:
            logger.error("order_items_write_failed", order_id=str(order.id), exc_info=True)
            self._compensate(order)
            raise PersistenceFailure(order_number=order.order_number) from exc

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            items=len(lines),
            total=money(order.total_amount),
        )

        ledger_synced = self._sync_ledgers(order, lines, quote, customer.user_id)

        line_ids = tuple(resolved.line_id for resolved in lines)
        try:
            self.cart.remove(customer.user_id, line_ids)
        except Exception:
            # The order stands; stale lines are the shopper's to remove
            logger.error("cart_cleanup_failed", order_id=str(order.id), line_ids=list(line_ids), exc_info=True)

        return OrderRef(
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            payable=order.total_amount,
            item_count=len(lines),
            line_ids=line_ids,
            ledger_synced=ledger_synced,
        )
