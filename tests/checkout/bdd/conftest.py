"""Shared BDD fixtures and step definitions for checkout."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers

from checkout.coupon.coupon import Coupon, DiscountType


@pytest.fixture()
def prices():
    """Unit price per SKU, as listed in the catalogue."""
    return {}


@pytest.fixture()
def outcome():
    return {"result": None, "error": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("the shopper has a default delivery address")
def _(address_book, customer):
    assert address_book.default_address(customer.user_id) is not None


@given(parsers.cfparse('the catalogue lists "{sku}" at {price:f} with {stock:d} in stock'))
def _(make_product, prices, sku, price, stock):
    make_product(name=f"Product {sku}", sku=sku, stock=stock)
    prices[sku] = price


@given(parsers.cfparse('the cart holds {quantity:d} of "{sku}"'))
def _(make_line, fill_cart, prices, sku, quantity):
    fill_cart(make_line(sku, quantity=quantity, unit_price=prices[sku], line_id=f"{sku}-{quantity}", sku=sku))


@given(parsers.cfparse('a coupon "{code}" for {percent:d} percent limited to {limit:d} use per shopper'))
def _(code, percent, limit):
    coupon = Coupon.register(
        code=code,
        discount_type=DiscountType.PERCENTAGE,
        discount_value=percent,
        per_user_limit=limit,
    )
    current_domain.repository_for(Coupon).add(coupon)
