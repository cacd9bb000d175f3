"""Domain events for the Coupon aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Coupon")
class CouponRegistered:
    """A new coupon was made available to shoppers."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    discount_value = Float(required=True)
    registered_at = DateTime(required=True)


@checkout.event(part_of="Coupon")
class CouponRedeemed:
    """A coupon was applied to a placed order."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    discount_amount = Float(required=True)
    uses_count = Integer(required=True)
    redeemed_at = DateTime(required=True)


@checkout.event(part_of="Coupon")
class CouponDeactivated:
    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    deactivated_at = DateTime(required=True)
