"""Coupon aggregate and the per-user usage ledger.

Codes are stored trimmed and upper-cased so that shoppers can type them in
any case. ``uses_count`` is a global counter; the per-user count lives in the
CouponUsage ledger, one record per redeemed order.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from checkout.domain import checkout


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


@checkout.aggregate
class Coupon:
    """A discount shoppers apply at checkout, percentage or fixed amount.

    A coupon is usable while active and inside its optional date window, and
    until either its global ``max_uses`` or the shopper's ``per_user_limit``
    is exhausted. Unset (or zero) caps mean unlimited.
    """

    code = String(required=True, max_length=50, unique=True)
    description = Text()
    discount_type = String(choices=DiscountType, required=True)
    discount_value = Float(required=True, min_value=0.0)
    min_order_value = Float(min_value=0.0)
    start_date = DateTime()
    end_date = DateTime()
    max_uses = Integer(min_value=0)
    uses_count = Integer(default=0, min_value=0)
    per_user_limit = Integer(min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and (self.discount_value or 0) > 100:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def window_must_start_before_it_ends(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError({"end_date": ["Coupon cannot end before it starts"]})

    @classmethod
    def register(
        cls,
        code,
        discount_type,
        discount_value,
        description=None,
        min_order_value=None,
        start_date=None,
        end_date=None,
        max_uses=None,
        per_user_limit=None,
    ):
        from checkout.coupon.events import CouponRegistered

        discount_type = discount_type.value if isinstance(discount_type, DiscountType) else discount_type
        now = datetime.now(UTC)
        coupon = cls(
            code=normalize_code(code),
            description=description,
            discount_type=discount_type,
            discount_value=discount_value,
            min_order_value=min_order_value,
            start_date=start_date,
            end_date=end_date,
            max_uses=max_uses,
            per_user_limit=per_user_limit,
            created_at=now,
        )
        coupon.raise_(
            CouponRegistered(
                coupon_id=coupon.id,
                code=coupon.code,
                discount_type=discount_type,
                discount_value=discount_value,
                registered_at=now,
            )
        )
        return coupon

    def deactivate(self):
        from checkout.coupon.events import CouponDeactivated

        if not self.is_active:
            raise ValidationError({"is_active": ["Coupon is already inactive"]})

        self.is_active = False
        self.raise_(
            CouponDeactivated(
                coupon_id=self.id,
                code=self.code,
                deactivated_at=datetime.now(UTC),
            )
        )

    def record_redemption(self, user_id, order_id, discount_amount):
        from checkout.coupon.events import CouponRedeemed

        self.uses_count = (self.uses_count or 0) + 1
        self.raise_(
            CouponRedeemed(
                coupon_id=self.id,
                code=self.code,
                user_id=user_id,
                order_id=order_id,
                discount_amount=discount_amount,
                uses_count=self.uses_count,
                redeemed_at=datetime.now(UTC),
            )
        )


@checkout.aggregate
class CouponUsage:
    """One redemption of a coupon by a user, for per-user caps."""

    coupon_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    discount_amount = Float(default=0.0, min_value=0.0)
    used_at = DateTime(default=lambda: datetime.now(UTC))
