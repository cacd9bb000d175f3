"""Domain events for orders placed at checkout."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Order")
class OrderPlaced:
    """An order was persisted with all of its line items."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    status = String(required=True)
    payment_status = String(required=True)
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    discount_amount = Float()
    total_amount = Float(required=True)
    coupon_code = String()
    placed_at = DateTime(required=True)
