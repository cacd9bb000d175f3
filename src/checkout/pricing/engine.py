"""Totals for a checkout: line totals, coupon discount, reseller margin.

Money is rounded half-up to two places. Shipping is free, and tax is
recorded as zero on the order.

Reseller lines are priced at the shopper-entered ``resale_price``, which is
the total for the line (not per unit) and may not undercut the base total.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from checkout.cart.port import CartLine
from checkout.coupon.coupon import Coupon, DiscountType
from checkout.coupon.validation import validate_coupon
from checkout.errors import ResalePriceInvalid

SHIPPING_AMOUNT = 0.0
TAX_AMOUNT = 0.0

_CENT = Decimal("0.01")


def money(value) -> float:
    """Round to two decimal places, halves away from zero."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def round_half_up(value) -> float:
    """Round to a whole amount, halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def base_total(line: CartLine) -> float:
    return money(line.unit_price * line.quantity)


def line_total(line: CartLine) -> float:
    if line.is_resale_flagged and line.resale_price is not None and line.resale_price > 0:
        return money(line.resale_price)
    return base_total(line)


def subtotal(lines) -> float:
    return money(sum(line_total(line) for line in lines))


# ---------------------------------------------------------------------------
# Reseller margin
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ResellerSummary:
    original_total: float
    reseller_total: float
    profit: float
    margin_percentage: float


def validate_resale_lines(lines) -> None:
    """Reject the first resale line whose selling price is missing or below cost."""
    for line in lines:
        if not line.is_resale_flagged:
            continue
        if line.resale_price is None or line.resale_price <= 0:
            raise ResalePriceInvalid(
                f"Please enter a selling price for {line.name or 'this item'}.",
                line_id=line.line_id,
            )
        if line.resale_price < base_total(line):
            raise ResalePriceInvalid(
                f"Selling price for {line.name or 'this item'} cannot be below {base_total(line):.2f}.",
                line_id=line.line_id,
            )


def reseller_summary(lines) -> ResellerSummary | None:
    """Margin over the resale lines, or None when there are none."""
    resale_lines = [line for line in lines if line.is_resale_flagged]
    if not resale_lines:
        return None

    validate_resale_lines(resale_lines)
    original = money(sum(base_total(line) for line in resale_lines))
    reseller = money(sum(line.resale_price for line in resale_lines))
    profit = money(max(0.0, reseller - original))
    margin = money(profit / original * 100) if original > 0 else 0.0
    return ResellerSummary(
        original_total=original,
        reseller_total=reseller,
        profit=profit,
        margin_percentage=margin,
    )


# ---------------------------------------------------------------------------
# Discounts
# ---------------------------------------------------------------------------
def compute_discount(discount_type: str, discount_value: float, amount: float) -> float:
    if discount_type == DiscountType.PERCENTAGE.value:
        discount = round_half_up(amount * discount_value / 100)
    else:
        discount = min(discount_value, amount)
    return money(min(max(discount, 0.0), amount))


def coupon_discount(coupon: Coupon, amount: float) -> float:
    return compute_discount(coupon.discount_type, coupon.discount_value, amount)


def payable_total(amount: float, discount: float, shipping: float = SHIPPING_AMOUNT) -> float:
    return money(max(0.0, amount - discount + shipping))


@dataclass(frozen=True)
class Quote:
    subtotal: float
    discount: float
    shipping: float
    tax: float
    payable: float
    coupon: Coupon | None = None
    reseller: ResellerSummary | None = None

    @property
    def coupon_code(self) -> str | None:
        return self.coupon.code if self.coupon is not None else None


def price(lines, coupon_code: str | None = None, user_id=None, now: datetime | None = None) -> Quote:
    """Price ``lines``, applying ``coupon_code`` if given.

    Raises ResalePriceInvalid for an unacceptable resale line and
    CouponInvalid when the coupon does not validate against this subtotal.
    """
    lines = list(lines)
    reseller = reseller_summary(lines)
    amount = subtotal(lines)

    coupon = None
    discount = 0.0
    if coupon_code:
        coupon = validate_coupon(coupon_code, amount, user_id=user_id, now=now)
        discount = coupon_discount(coupon, amount)

    return Quote(
        subtotal=amount,
        discount=discount,
        shipping=SHIPPING_AMOUNT,
        tax=TAX_AMOUNT,
        payable=payable_total(amount, discount),
        coupon=coupon,
        reseller=reseller,
    )
