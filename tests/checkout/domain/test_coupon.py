from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from protean.utils import DomainObjects

from checkout.coupon.coupon import Coupon, CouponUsage, DiscountType, normalize_code
from checkout.coupon.events import CouponDeactivated, CouponRedeemed, CouponRegistered
from checkout.coupon.validation import usage_count, validate_coupon
from checkout.errors import CouponInvalid, CouponRejection


def _save(**kwargs):
    kwargs.setdefault("discount_type", DiscountType.PERCENTAGE)
    kwargs.setdefault("discount_value", 10)
    coupon = Coupon.register(**kwargs)
    current_domain.repository_for(Coupon).add(coupon)
    return coupon


def _redeem(coupon, user_id):
    current_domain.repository_for(CouponUsage).add(
        CouponUsage(coupon_id=coupon.id, user_id=user_id, order_id=str(uuid4()), discount_amount=10.0)
    )


def test_coupon_aggregate_element_type():
    assert Coupon.element_type == DomainObjects.AGGREGATE
    assert CouponUsage.element_type == DomainObjects.AGGREGATE


def test_codes_are_trimmed_and_upper_cased():
    assert normalize_code("  welcome10 ") == "WELCOME10"
    assert normalize_code(None) == ""


class TestCouponAggregate:
    def test_register_normalizes_code_and_raises_event(self):
        coupon = Coupon.register(code=" diwali ", discount_type="fixed", discount_value=150)

        assert coupon.code == "DIWALI"
        assert coupon.is_active is True
        assert coupon.uses_count == 0
        assert len(coupon._events) == 1
        assert isinstance(coupon._events[0], CouponRegistered)

    def test_percentage_above_hundred_is_invalid(self):
        with pytest.raises(ValidationError) as exc:
            Coupon.register(code="TOO-MUCH", discount_type="percentage", discount_value=120)
        assert "discount_value" in exc.value.messages

    def test_window_cannot_end_before_it_starts(self):
        now = datetime.now(UTC)
        with pytest.raises(ValidationError) as exc:
            Coupon.register(
                code="BACKWARDS",
                discount_type="fixed",
                discount_value=10,
                start_date=now,
                end_date=now - timedelta(days=1),
            )
        assert "end_date" in exc.value.messages

    def test_unknown_discount_type_is_invalid(self):
        with pytest.raises(ValidationError):
            Coupon.register(code="ODD", discount_type="bogo", discount_value=1)

    def test_deactivate(self):
        coupon = Coupon.register(code="BYE", discount_type="fixed", discount_value=10)
        coupon.deactivate()

        assert coupon.is_active is False
        assert isinstance(coupon._events[-1], CouponDeactivated)

    def test_cannot_deactivate_twice(self):
        coupon = Coupon.register(code="BYE", discount_type="fixed", discount_value=10)
        coupon.deactivate()

        with pytest.raises(ValidationError):
            coupon.deactivate()

    def test_record_redemption_bumps_counter(self):
        coupon = Coupon.register(code="USED", discount_type="fixed", discount_value=10)
        coupon.record_redemption(user_id=str(uuid4()), order_id=str(uuid4()), discount_amount=10.0)

        assert coupon.uses_count == 1
        assert isinstance(coupon._events[-1], CouponRedeemed)


class TestValidationOrder:
    def test_unknown_code(self):
        with pytest.raises(CouponInvalid) as exc:
            validate_coupon("NOPE", 1000.0)
        assert exc.value.reason == CouponRejection.NOT_FOUND

    def test_inactive_coupon_reads_as_not_found(self):
        coupon = _save(code="OLD")
        coupon.deactivate()
        current_domain.repository_for(Coupon).add(coupon)

        with pytest.raises(CouponInvalid) as exc:
            validate_coupon("old", 1000.0)
        assert exc.value.reason == CouponRejection.NOT_FOUND

    def test_not_yet_active(self):
        _save(code="SOON", start_date=datetime.now(UTC) + timedelta(days=2))

        with pytest.raises(CouponInvalid) as exc:
            validate_coupon("SOON", 1000.0)
        assert exc.value.reason == CouponRejection.NOT_YET_ACTIVE

    def test_expired(self):
        _save(
            code="GONE",
            start_date=datetime.now(UTC) - timedelta(days=10),
            end_date=datetime.now(UTC) - timedelta(days=1),
        )

        with pytest.raises(CouponInvalid) as exc:
            validate_coupon("GONE", 1000.0)
        assert exc.value.reason == CouponRejection.EXPIRED

    def test_window_check_precedes_minimum_order(self):
        _save(code="GONE", end_date=datetime.now(UTC) - timedelta(days=1), min_order_value=5000)

        with pytest.raises(CouponInvalid) as exc:
            validate_coupon("GONE", 10.0)
        assert exc.value.reason == CouponRejection.EXPIRED

    def test_below_minimum_order(self):
        _save(code="MIN500", min_order_value=500)

        with pytest.raises(CouponInvalid) as exc:
            validate_coupon("MIN500", 499.99)
        assert exc.value.reason == CouponRejection.BELOW_MINIMUM_ORDER

    def test_minimum_order_is_inclusive(self):
        _save(code="MIN500", min_order_value=500)
        assert validate_coupon("MIN500", 500.0).code == "MIN500"

    def test_usage_cap_reached(self):
        coupon = _save(code="FIRST100", max_uses=1)
        coupon.record_redemption(user_id=str(uuid4()), order_id=str(uuid4()), discount_amount=5.0)
        current_domain.repository_for(Coupon).add(coupon)

        with pytest.raises(CouponInvalid) as exc:
            validate_coupon("FIRST100", 1000.0)
        assert exc.value.reason == CouponRejection.USAGE_CAP_REACHED

    def test_zero_caps_mean_unlimited(self):
        coupon = _save(code="OPEN", max_uses=0, per_user_limit=0)
        user_id = str(uuid4())
        _redeem(coupon, user_id)

        assert validate_coupon("OPEN", 100.0, user_id=user_id).code == "OPEN"

    def test_per_user_cap_reached(self):
        coupon = _save(code="ONCE", per_user_limit=1)
        user_id = str(uuid4())
        _redeem(coupon, user_id)

        with pytest.raises(CouponInvalid) as exc:
            validate_coupon("ONCE", 1000.0, user_id=user_id)
        assert exc.value.reason == CouponRejection.PER_USER_CAP_REACHED
        assert "1 time(s)" in exc.value.message

    def test_per_user_cap_is_per_user(self):
        coupon = _save(code="ONCE", per_user_limit=1)
        _redeem(coupon, str(uuid4()))

        assert validate_coupon("ONCE", 1000.0, user_id=str(uuid4())).code == "ONCE"

    def test_usage_count_reads_the_ledger(self):
        coupon = _save(code="TWICE", per_user_limit=2)
        user_id = str(uuid4())
        _redeem(coupon, user_id)
        _redeem(coupon, user_id)

        assert usage_count(coupon.id, user_id) == 2

    def test_explicit_now_is_honoured(self):
        start = datetime(2026, 1, 1, tzinfo=UTC)
        _save(code="NEWYEAR", start_date=start, end_date=start + timedelta(days=7))

        assert validate_coupon("NEWYEAR", 100.0, now=start + timedelta(days=1)).code == "NEWYEAR"
        with pytest.raises(CouponInvalid):
            validate_coupon("NEWYEAR", 100.0, now=start + timedelta(days=8))
