from uuid import uuid4

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from checkout.address import reset_address_provider
from checkout.address.fake_provider import InMemoryAddressBook
from checkout.address.port import AddressSnapshot
from checkout.cart import reset_cart_store
from checkout.cart.fake_store import InMemoryCartStore
from checkout.cart.port import CartLine, VariantHint
from checkout.catalog import reset_catalog
from checkout.catalog.fake_adapter import InMemoryCatalog
from checkout.catalog.port import CatalogProduct, CatalogVariant
from checkout.config import EngineSettings
from checkout.customer import CustomerProfile
from checkout.orchestrator import CheckoutService


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout
    from checkout.utils.db import drop_db, setup_db

    bed = DomainFixture(checkout)
    bed.setup()
    setup_db(checkout)
    yield bed
    drop_db(checkout)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    with checkout_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_catalog()
    reset_cart_store()
    reset_address_provider()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
@pytest.fixture()
def catalog():
    return InMemoryCatalog()


@pytest.fixture()
def cart():
    return InMemoryCartStore()


@pytest.fixture()
def customer():
    return CustomerProfile(user_id=str(uuid4()), name="Asha Rao", email="asha@example.com", phone="9876543210")


@pytest.fixture()
def home_address():
    return AddressSnapshot(
        full_name="Asha Rao",
        phone="9876543210",
        line1="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        postal_code="560001",
    )


@pytest.fixture()
def address_book(customer, home_address):
    book = InMemoryAddressBook()
    book.set_default(customer.user_id, home_address)
    return book


@pytest.fixture()
def settings():
    return EngineSettings(lookup_timeout_seconds=1.0, lookup_workers=4)


@pytest.fixture()
def service(customer, cart, catalog, address_book, settings):
    return CheckoutService(
        customer=customer,
        cart=cart,
        catalog=catalog,
        addresses=address_book,
        settings=settings,
    )


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_product(catalog):
    """Seed the catalogue. ``variants`` is a list of (size, color, quantity)."""

    def _make(name="Cotton Kurta", sku=None, variants=None, stock=None):
        product = CatalogProduct(
            product_id=str(uuid4()),
            sku=sku,
            name=name,
            variants=tuple(
                CatalogVariant(
                    variant_id=str(uuid4()),
                    size_label=size,
                    color_label=color,
                    available_quantity=quantity,
                )
                for size, color, quantity in (variants or [])
            ),
            stock_quantity=stock,
        )
        return catalog.add_product(product)

    return _make


@pytest.fixture()
def make_line():
    def _make(ref, quantity=1, unit_price=100.0, line_id=None, size=None, color=None, **fields):
        return CartLine(
            line_id=line_id or f"{ref}-{size or 'any'}-{color or 'any'}",
            raw_product_ref=ref,
            quantity=quantity,
            unit_price=unit_price,
            variant_hint=VariantHint(size=size, color=color),
            **fields,
        )

    return _make


@pytest.fixture()
def fill_cart(cart, customer):
    def _fill(*lines):
        for line in lines:
            cart.add(customer.user_id, line)
        return list(lines)

    return _fill
