"""Ancillary ledgers written after an order is placed.

Reseller earnings (one row per resale line) and coupon redemptions are
book-keeping, not part of the order itself. Failures here surface as
LedgerSyncFailure for the caller to log; they never undo the order.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from checkout.coupon.coupon import Coupon, CouponUsage
from checkout.domain import checkout
from checkout.errors import LedgerSyncFailure
from checkout.pricing.engine import base_total, money


@checkout.aggregate
class ResellerEarning:
    """What a reseller earns on one line of an order they placed for a buyer."""

    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    product_id = Identifier()
    variant_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    base_unit_price = Float(required=True, min_value=0.0)
    reseller_unit_price = Float(required=True, min_value=0.0)
    base_total = Float(required=True, min_value=0.0)
    reseller_total = Float(required=True, min_value=0.0)
    margin_amount = Float(default=0.0)
    recorded_at = DateTime(default=lambda: datetime.now(UTC))


def record_reseller_earnings(user_id, order_id, order_number, resolved_lines) -> list[ResellerEarning]:
    """Write one earning per resale line. Raises LedgerSyncFailure on any write error."""
    earnings = []
    try:
        repo = current_domain.repository_for(ResellerEarning)
        for resolved in resolved_lines:
            line = resolved.line
            if not line.is_resale_flagged:
                continue
            base = base_total(line)
            earning = ResellerEarning(
                user_id=user_id,
                order_id=order_id,
                order_number=order_number,
                product_id=resolved.product_id,
                variant_id=resolved.variant_id,
                quantity=line.quantity,
                base_unit_price=line.unit_price,
                reseller_unit_price=money(line.resale_price / line.quantity),
                base_total=base,
                reseller_total=money(line.resale_price),
                margin_amount=money(line.resale_price - base),
            )
            repo.add(earning)
            earnings.append(earning)
    except Exception as exc:
        raise LedgerSyncFailure(f"Reseller earnings for order {order_number} were not recorded", order_id=order_id) from exc

    return earnings


def record_coupon_redemption(coupon_id, user_id, order_id, discount_amount) -> CouponUsage:
    """Append to the usage ledger and bump the coupon's global counter."""
    try:
        usage = CouponUsage(
            coupon_id=coupon_id,
            user_id=user_id,
            order_id=order_id,
            discount_amount=discount_amount,
        )
        current_domain.repository_for(CouponUsage).add(usage)

        coupon_repo = current_domain.repository_for(Coupon)
        coupon = coupon_repo.get(coupon_id)
        coupon.record_redemption(user_id=user_id, order_id=order_id, discount_amount=discount_amount)
        coupon_repo.add(coupon)
    except Exception as exc:
        raise LedgerSyncFailure(f"Coupon usage for order {order_id} was not recorded", coupon_id=coupon_id) from exc

    return usage
