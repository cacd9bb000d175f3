"""Coupon administration: register and deactivate, as commands."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, Integer, String, Text
from protean.utils.globals import current_domain

from checkout.coupon.coupon import Coupon, normalize_code
from checkout.domain import checkout


@checkout.command(part_of="Coupon")
class RegisterCoupon:
    code = String(required=True, max_length=50)
    description = Text()
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True)
    min_order_value = Float()
    start_date = DateTime()
    end_date = DateTime()
    max_uses = Integer()
    per_user_limit = Integer()


@checkout.command(part_of="Coupon")
class DeactivateCoupon:
    code = String(required=True, max_length=50)


@checkout.command_handler(part_of=Coupon)
class CouponAdministrationHandler:
    @handle(RegisterCoupon)
    def register_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        code = normalize_code(command.code)
        if repo._dao.query.filter(code=code).all().items:
            raise ValidationError({"code": [f"Coupon {code} already exists"]})

        coupon = Coupon.register(
            code=code,
            description=command.description,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            min_order_value=command.min_order_value,
            start_date=command.start_date,
            end_date=command.end_date,
            max_uses=command.max_uses,
            per_user_limit=command.per_user_limit,
        )
        repo.add(coupon)
        return str(coupon.id)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        code = normalize_code(command.code)
        coupon = repo._dao.query.filter(code=code).all().first
        if coupon is None:
            raise ObjectNotFoundError(f"Coupon {code} does not exist")

        coupon.deactivate()
        repo.add(coupon)
        return str(coupon.id)
