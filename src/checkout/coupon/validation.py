"""Coupon eligibility checks.

Checks run in a fixed order and the first failure rejects the coupon:
existence and active flag, date window, minimum order value, global usage
cap, then the shopper's own usage count from the ledger.
"""

from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain

from checkout.coupon.coupon import Coupon, CouponUsage, normalize_code
from checkout.errors import CouponInvalid, CouponRejection

logger = structlog.get_logger(__name__)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def find_active_coupon(code: str) -> Coupon | None:
    normalized = normalize_code(code)
    if not normalized:
        return None
    repo = current_domain.repository_for(Coupon)
    return repo._dao.query.filter(code=normalized, is_active=True).all().first


def usage_count(coupon_id, user_id) -> int:
    """How many orders this user has already redeemed the coupon on."""
    repo = current_domain.repository_for(CouponUsage)
    return repo._dao.query.filter(coupon_id=str(coupon_id), user_id=str(user_id)).all().total


def validate_coupon(code: str, subtotal: float, user_id=None, now: datetime | None = None) -> Coupon:
    """Return the coupon behind ``code`` if it may be applied to ``subtotal``.

    Raises CouponInvalid carrying the first rejection reason.
    """
    coupon = find_active_coupon(code)
    if coupon is None:
        raise CouponInvalid(CouponRejection.NOT_FOUND, code=normalize_code(code))

    now = _as_utc(now or datetime.now(UTC))
    if coupon.start_date and now < _as_utc(coupon.start_date):
        raise CouponInvalid(CouponRejection.NOT_YET_ACTIVE, code=coupon.code)
    if coupon.end_date and now > _as_utc(coupon.end_date):
        raise CouponInvalid(CouponRejection.EXPIRED, code=coupon.code)

    if coupon.min_order_value is not None and subtotal < coupon.min_order_value:
        raise CouponInvalid(
            CouponRejection.BELOW_MINIMUM_ORDER,
            code=coupon.code,
            min_order_value=f"{coupon.min_order_value:.2f}",
        )

    if coupon.max_uses and (coupon.uses_count or 0) >= coupon.max_uses:
        raise CouponInvalid(CouponRejection.USAGE_CAP_REACHED, code=coupon.code)

    if coupon.per_user_limit and user_id is not None:
        if usage_count(coupon.id, user_id) >= coupon.per_user_limit:
            raise CouponInvalid(
                CouponRejection.PER_USER_CAP_REACHED,
                code=coupon.code,
                per_user_limit=coupon.per_user_limit,
            )

    logger.debug("coupon_validated", code=coupon.code, subtotal=subtotal)
    return coupon
