"""In-memory catalogue for development and tests.

Products are seeded with ``add_product``; stock can be changed afterwards to
simulate concurrent decrements. ``fail_on`` makes chosen operations raise and
``latency`` delays every call, which is how lookup timeouts are exercised.
"""

import time

from checkout.catalog.port import CatalogPort, CatalogProduct, CatalogVariant


class CatalogUnavailable(Exception):
    """Raised by the fake when an operation is configured to fail."""


class InMemoryCatalog(CatalogPort):
    def __init__(self) -> None:
        self._products: dict[str, CatalogProduct] = {}
        self._variant_stock: dict[str, int] = {}
        self._product_stock: dict[str, int] = {}
        self.fail_on: set[str] = set()
        self.latency: float = 0.0
        self.calls: list[tuple[str, str]] = []

    def add_product(self, product: CatalogProduct) -> CatalogProduct:
        self._products[product.product_id] = product
        for variant in product.variants:
            self._variant_stock[variant.variant_id] = variant.available_quantity
        if product.stock_quantity is not None:
            self._product_stock[product.product_id] = product.stock_quantity
        return product

    def set_variant_stock(self, variant_id: str, quantity: int) -> None:
        self._variant_stock[variant_id] = quantity

    def set_product_stock(self, product_id: str, quantity: int) -> None:
        self._product_stock[product_id] = quantity

    def configure(self, fail_on=(), latency: float = 0.0) -> None:
        self.fail_on = set(fail_on)
        self.latency = latency

    def _record(self, operation: str, argument: str) -> None:
        self.calls.append((operation, argument))
        if self.latency:
            time.sleep(self.latency)
        if operation in self.fail_on:
            raise CatalogUnavailable(f"{operation} is unavailable")

    def get_by_id(self, product_id: str) -> CatalogProduct | None:
        self._record("get_by_id", product_id)
        return self._products.get(product_id)

    def find_by_sku(self, sku: str) -> CatalogProduct | None:
        self._record("find_by_sku", sku)
        return next((p for p in self._products.values() if p.sku is not None and p.sku == sku), None)

    def search_by_name(self, term: str) -> CatalogProduct | None:
        self._record("search_by_name", term)
        needle = term.strip().lower()
        if not needle:
            return None
        return next((p for p in self._products.values() if needle in p.name.lower()), None)

    def variant_quantity(self, variant_id: str) -> int | None:
        self._record("variant_quantity", variant_id)
        return self._variant_stock.get(variant_id)

    def product_quantity(self, product_id: str) -> int | None:
        self._record("product_quantity", product_id)
        return self._product_stock.get(product_id)

    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]


def variant(variant_id: str, size=None, color=None, quantity: int = 0) -> CatalogVariant:
    return CatalogVariant(variant_id=variant_id, size_label=size, color_label=color, available_quantity=quantity)
