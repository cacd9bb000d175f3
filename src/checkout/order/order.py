"""Order aggregate: a confirmed or pending order placed from in-stock lines.

The header is written before its line items so that a failed item write can
be compensated by deleting the header. Once items are attached their totals
must add up to the header subtotal.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from checkout.domain import checkout


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(Enum):
    COD = "cod"


def generate_order_number(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    return f"ORD-{now:%Y%m%d}-{uuid4().hex[:6].upper()}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@checkout.value_object(part_of="Order")
class ShippingAddress:
    """The delivery address as it was when the order was placed."""

    full_name = String(max_length=255)
    phone = String(max_length=20)
    line1 = String(required=True, max_length=255)
    line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(max_length=100, default="India")


@checkout.value_object(part_of="Order")
class CustomerSnapshot:
    name = String(max_length=255)
    email = String(max_length=255)
    phone = String(max_length=20)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@checkout.entity(part_of="Order")
class OrderItem:
    """A line of the order. Product and variant may be unknown for degraded lines."""

    product_id = Identifier()
    variant_id = Identifier()
    line_id = String(max_length=255)
    name = String(max_length=255)
    sku = String(max_length=100)
    size = String(max_length=50)
    color = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    is_resale = Boolean(default=False)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@checkout.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    user_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(max_length=20, default=PaymentMethod.COD.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    subtotal = Float(default=0.0, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    shipping_amount = Float(default=0.0, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="INR")
    coupon_code = String(max_length=50)
    is_reseller_order = Boolean(default=False)
    reseller_original_total = Float()
    reseller_total = Float()
    reseller_profit = Float()
    reseller_margin_percentage = Float()
    shipping_address = ValueObject(ShippingAddress)
    customer = ValueObject(CustomerSnapshot)
    items = HasMany(OrderItem)
    placed_at = DateTime()

    @invariant.post
    def discount_cannot_exceed_subtotal(self):
        if (self.discount_amount or 0) > (self.subtotal or 0):
            raise ValidationError({"discount_amount": ["Discount cannot exceed the subtotal"]})

    @invariant.post
    def item_totals_must_match_subtotal(self):
        if not self.items:
            return
        total = sum(item.total_price for item in self.items)
        if abs(total - (self.subtotal or 0)) >= 0.005:
            raise ValidationError({"items": ["Line totals must add up to the order subtotal"]})

    @classmethod
    def open(
        cls,
        user_id,
        subtotal,
        discount_amount,
        shipping_amount,
        tax_amount,
        total_amount,
        payment_status=PaymentStatus.PENDING.value,
        payment_method=PaymentMethod.COD.value,
        coupon_code=None,
        currency="INR",
        shipping_address=None,
        customer=None,
        reseller=None,
    ):
        """Build the order header. Items are attached separately."""
        now = datetime.now(UTC)
        status = OrderStatus.CONFIRMED if payment_status == PaymentStatus.PAID.value else OrderStatus.PENDING
        reseller_fields = {}
        if reseller is not None:
            reseller_fields = {
                "is_reseller_order": True,
                "reseller_original_total": reseller.original_total,
                "reseller_total": reseller.reseller_total,
                "reseller_profit": reseller.profit,
                "reseller_margin_percentage": reseller.margin_percentage,
            }

        return cls(
            order_number=generate_order_number(now),
            user_id=user_id,
            status=status.value,
            payment_method=payment_method,
            payment_status=payment_status,
            subtotal=subtotal,
            discount_amount=discount_amount,
            shipping_amount=shipping_amount,
            tax_amount=tax_amount,
            total_amount=total_amount,
            currency=currency,
            coupon_code=coupon_code,
            shipping_address=ShippingAddress(**shipping_address) if isinstance(shipping_address, dict) else shipping_address,
            customer=CustomerSnapshot(**customer) if isinstance(customer, dict) else customer,
            placed_at=now,
            **reseller_fields,
        )

    def attach_items(self, items):
        from checkout.order.events import OrderPlaced

        if self.items:
            raise ValidationError({"items": ["Order items are already attached"]})

        with atomic_change(self):
            for item in items:
                self.add_items(item)

        self.raise_(
            OrderPlaced(
                order_id=self.id,
                order_number=self.order_number,
                user_id=self.user_id,
                status=self.status,
                payment_status=self.payment_status,
                item_count=len(self.items),
                subtotal=self.subtotal,
                discount_amount=self.discount_amount,
                total_amount=self.total_amount,
                coupon_code=self.coupon_code,
                placed_at=self.placed_at,
            )
        )
