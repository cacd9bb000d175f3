from dataclasses import replace
from unittest.mock import patch
from uuid import uuid4

import pytest
from protean import current_domain

from checkout.address.fake_provider import InMemoryAddressBook
from checkout.backorder.draft import BackorderDraft
from checkout.coupon.coupon import Coupon, DiscountType
from checkout.errors import (
    AddressMissing,
    CouponInvalid,
    CouponRejection,
    EmptyCart,
    PersistenceFailure,
    ResalePriceInvalid,
)
from checkout.orchestrator import CartMutation, CheckoutService
from checkout.order.order import Order


def _orders():
    return current_domain.repository_for(Order)._dao.query.all().items


def _drafts():
    return current_domain.repository_for(BackorderDraft)._dao.query.all().items


def _register(code="SAVE10", **kwargs):
    kwargs.setdefault("discount_type", DiscountType.PERCENTAGE)
    kwargs.setdefault("discount_value", 10)
    coupon = Coupon.register(code=code, **kwargs)
    current_domain.repository_for(Coupon).add(coupon)
    return coupon


class TestScenarios:
    def test_in_stock_cart_becomes_a_single_order(self, service, make_product, make_line, fill_cart, cart, customer):
        make_product(name="Kurta", sku="X", stock=5)
        fill_cart(make_line("X", quantity=2, unit_price=500.0))

        with patch.object(service.backorders, "materialize", wraps=service.backorders.materialize) as backorders:
            outcome = service.checkout()

        backorders.assert_not_called()
        assert outcome.order is not None
        assert outcome.backorder is None
        [order] = _orders()
        assert order.subtotal == 1000.0
        assert order.total_amount == 1000.0
        assert cart.list(customer.user_id) == []

    def test_out_of_stock_cart_becomes_a_single_draft(self, service, make_product, make_line, fill_cart, cart, customer):
        make_product(name="Saree", sku="Y", stock=1)
        fill_cart(make_line("Y", quantity=3, unit_price=200.0))

        with patch.object(service.orders, "materialize", wraps=service.orders.materialize) as orders:
            outcome = service.checkout()

        orders.assert_not_called()
        assert outcome.order is None
        assert outcome.drafted
        [draft] = _drafts()
        [item] = draft.items
        assert (item.quantity, item.unit_price) == (3, 200.0)
        assert _orders() == []
        assert cart.list(customer.user_id) == []

    def test_mixed_cart_is_split_between_order_and_draft(self, service, make_product, make_line, fill_cart, cart, customer):
        kurta = make_product(name="Kurta", variants=[("M", "Red", 5)])
        saree = make_product(name="Saree", stock=0)
        fill_cart(
            make_line(kurta.product_id, quantity=1, unit_price=800.0, size="M", color="Red", line_id="kurta"),
            make_line(saree.product_id, quantity=2, unit_price=1500.0, line_id="saree"),
        )

        outcome = service.checkout()

        [order] = _orders()
        [draft] = _drafts()
        assert [item.line_id for item in order.items] == ["kurta"]
        assert [item.line_id for item in draft.items] == ["saree"]
        assert str(draft.id) == outcome.backorder.draft.draft_id
        assert order.order_number.startswith("ORD-")
        assert draft.draft_number.startswith("DRAFT-")
        assert cart.list(customer.user_id) == []


class TestHardFailures:
    def test_empty_cart(self, service):
        with pytest.raises(EmptyCart):
            service.checkout()
        assert _orders() == [] and _drafts() == []

    def test_missing_address_blocks_the_order(self, customer, cart, catalog, settings, make_product, make_line, fill_cart):
        make_product(sku="X", stock=5)
        fill_cart(make_line("X"))
        service = CheckoutService(customer, cart=cart, catalog=catalog, addresses=InMemoryAddressBook(), settings=settings)

        with pytest.raises(AddressMissing):
            service.checkout()

        assert _orders() == []
        assert len(cart.list(customer.user_id)) == 1

    def test_unreachable_address_book_counts_as_missing(self, service, address_book, make_product, make_line, fill_cart):
        make_product(sku="X", stock=5)
        fill_cart(make_line("X"))
        address_book.configure(should_fail=True)

        with pytest.raises(AddressMissing):
            service.checkout()

    def test_resale_below_base_is_rejected_before_persistence(self, service, make_product, make_line, fill_cart):
        make_product(sku="X", stock=5)
        fill_cart(make_line("X", quantity=2, unit_price=500.0, is_resale_flagged=True, resale_price=900.0))

        with pytest.raises(ResalePriceInvalid):
            service.checkout()
        assert _orders() == []

    def test_draft_saved_before_a_failure_travels_on_the_error(
        self, customer, cart, catalog, settings, make_product, make_line, fill_cart
    ):
        make_product(sku="X", stock=5)
        make_product(sku="Y", stock=0)
        fill_cart(make_line("X", line_id="x"), make_line("Y", line_id="y"))
        service = CheckoutService(customer, cart=cart, catalog=catalog, addresses=InMemoryAddressBook(), settings=settings)

        with pytest.raises(AddressMissing) as exc:
            service.checkout()

        assert exc.value.backorder.draft is not None
        assert len(_drafts()) == 1
        assert [line.line_id for line in cart.list(customer.user_id)] == ["x"]

    def test_failed_backorder_alone_is_a_persistence_failure(self, service, make_product, make_line, fill_cart):
        make_product(sku="Y", stock=0)
        fill_cart(make_line("Y"))

        with patch.object(service.backorders, "materialize", side_effect=PersistenceFailure()):
            with pytest.raises(PersistenceFailure):
                service.checkout()

    def test_failed_backorder_does_not_stop_the_order(self, service, make_product, make_line, fill_cart):
        make_product(sku="X", stock=5)
        make_product(sku="Y", stock=0)
        fill_cart(make_line("X"), make_line("Y"))

        with patch.object(service.backorders, "materialize", side_effect=PersistenceFailure()):
            outcome = service.checkout()

        assert outcome.order is not None
        assert outcome.backorder_failed is True

    def test_draft_that_cannot_be_built_does_not_stop_the_order(
        self, service, make_product, make_line, fill_cart, cart, customer
    ):
        make_product(name="Shirt", sku="X", stock=5)
        make_product(name="Saree", sku="Y", stock=0)
        fill_cart(
            make_line("X", line_id="x", name="Shirt"),
            make_line("Y", line_id="y", name="Saree", image="https://cdn.example.com/" + "s" * 1000),
        )

        outcome = service.checkout()

        assert outcome.order is not None
        assert outcome.backorder is None
        assert outcome.backorder_failed is True
        assert len(_orders()) == 1
        assert _drafts() == []
        assert [line.line_id for line in cart.list(customer.user_id)] == ["y"]

    def test_unwritable_draft_does_not_stop_the_order(self, service, make_product, make_line, fill_cart):
        make_product(sku="X", stock=5)
        make_product(sku="Y", stock=0)
        fill_cart(make_line("X"), make_line("Y"))

        with patch("checkout.backorder.materializer.current_domain") as domain:
            domain.repository_for.return_value.add.side_effect = RuntimeError("db down")
            outcome = service.checkout()

        assert outcome.order is not None
        assert outcome.backorder_failed is True

    def test_undeliverable_address_counts_as_missing(
        self, service, address_book, customer, home_address, make_product, make_line, fill_cart
    ):
        make_product(sku="X", stock=5)
        fill_cart(make_line("X"))
        address_book.set_default(customer.user_id, replace(home_address, postal_code="  "))

        with pytest.raises(AddressMissing):
            service.checkout()
        assert _orders() == []

    def test_address_the_order_cannot_store_is_a_persistence_failure(
        self, service, address_book, customer, home_address, make_product, make_line, fill_cart, cart
    ):
        make_product(sku="X", stock=5)
        make_product(sku="Y", stock=0)
        fill_cart(make_line("X", line_id="x"), make_line("Y", line_id="y"))
        address_book.set_default(customer.user_id, replace(home_address, phone="+91 98765 43210 ext 12345"))

        with pytest.raises(PersistenceFailure) as exc:
            service.checkout()

        assert _orders() == []
        assert exc.value.backorder.draft is not None
        assert [line.line_id for line in cart.list(customer.user_id)] == ["x"]

    def test_missing_address_is_reported_before_resale_price(
        self, customer, cart, catalog, settings, make_product, make_line, fill_cart
    ):
        make_product(sku="X", stock=5)
        fill_cart(make_line("X", quantity=2, unit_price=500.0, is_resale_flagged=True, resale_price=900.0))
        service = CheckoutService(customer, cart=cart, catalog=catalog, addresses=InMemoryAddressBook(), settings=settings)

        with pytest.raises(AddressMissing):
            service.checkout()


class TestDegradedCheckout:
    def test_catalogue_outage_routes_by_cached_stock(self, service, catalog, make_line, fill_cart):
        catalog.configure(fail_on={"get_by_id", "find_by_sku", "search_by_name", "variant_quantity", "product_quantity"})
        fill_cart(
            make_line(str(uuid4()), line_id="cached", stock_hint=4),
            make_line(str(uuid4()), line_id="uncached"),
        )

        outcome = service.checkout()

        assert outcome.order.item_count == 1
        assert outcome.backorder.processed_count == 1

    def test_unresolvable_out_of_stock_line_stays_in_cart(self, service, make_line, fill_cart, cart, customer):
        fill_cart(make_line("mystery", name="Unknown"))

        outcome = service.checkout()

        assert outcome.order is None
        assert outcome.backorder.draft is None
        assert outcome.backorder.skipped_count == 1
        assert len(cart.list(customer.user_id)) == 1


class TestCoupons:
    def test_applied_coupon_discounts_the_order(self, service, make_product, make_line, fill_cart):
        _register("SAVE10")
        make_product(sku="X", stock=5)
        fill_cart(make_line("X", quantity=1, unit_price=250.0))

        applied = service.apply_coupon(" save10 ")
        outcome = service.checkout()

        assert applied.code == "SAVE10"
        assert applied.discount_amount == 25.0
        order = current_domain.repository_for(Order).get(outcome.order.order_id)
        assert order.discount_amount == 25.0
        assert order.total_amount == 225.0
        assert service.coupon_code is None

    def test_removed_coupon_is_not_applied(self, service, make_product, make_line, fill_cart):
        _register("SAVE10")
        make_product(sku="X", stock=5)
        fill_cart(make_line("X", quantity=1, unit_price=250.0))

        service.apply_coupon("SAVE10")
        service.remove_coupon()
        outcome = service.checkout()

        assert outcome.order.payable == 250.0

    def test_coupon_revalidated_against_in_stock_subtotal(self, service, make_product, make_line, fill_cart):
        _register("MIN1000", discount_type=DiscountType.FIXED, discount_value=100, min_order_value=1000)
        make_product(sku="X", stock=5)
        make_product(sku="Y", stock=0)
        fill_cart(make_line("X", quantity=1, unit_price=600.0), make_line("Y", quantity=1, unit_price=600.0))

        assert service.apply_coupon("MIN1000").discount_amount == 100.0
        with pytest.raises(CouponInvalid) as exc:
            service.checkout()

        assert exc.value.reason == CouponRejection.BELOW_MINIMUM_ORDER
        assert exc.value.backorder.draft is not None
        assert _orders() == []

    def test_per_user_cap_rejects_the_next_use(self, service, make_product, make_line, fill_cart):
        _register("ONCE", per_user_limit=1)
        make_product(sku="X", stock=50)

        fill_cart(make_line("X", quantity=1, unit_price=250.0))
        service.apply_coupon("ONCE")
        service.checkout()

        fill_cart(make_line("X", quantity=9, unit_price=250.0))
        with pytest.raises(CouponInvalid) as exc:
            service.apply_coupon("ONCE")
        assert exc.value.reason == CouponRejection.PER_USER_CAP_REACHED

    def test_apply_coupon_on_empty_cart(self, service):
        _register("SAVE10")
        with pytest.raises(EmptyCart):
            service.apply_coupon("SAVE10")


class TestCartMutationCallbacks:
    def test_callbacks_fire_for_ordered_and_drafted_lines(self, service, make_product, make_line, fill_cart):
        make_product(sku="X", stock=5)
        make_product(sku="Y", stock=0)
        fill_cart(make_line("X", line_id="x"), make_line("Y", line_id="y"))
        seen = []
        service.subscribe(lambda kind, line_ids: seen.append((kind, line_ids)))

        service.checkout()

        assert seen == [(CartMutation.DRAFTED, ("y",)), (CartMutation.ORDERED, ("x",))]

    def test_failing_callback_does_not_fail_checkout(self, service, make_product, make_line, fill_cart):
        make_product(sku="X", stock=5)
        fill_cart(make_line("X"))

        def _boom(kind, line_ids):
            raise RuntimeError("ui gone")

        service.subscribe(_boom)

        assert service.checkout().order is not None
