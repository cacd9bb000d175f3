"""Catalogue port (abstract interface).

The checkout engine only ever reads the catalogue: it looks products up by id,
exact SKU or name fragment, and reads live stock at variant or product level.
Adapters may raise on transport errors; callers degrade instead of failing.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CatalogVariant:
    variant_id: str
    size_label: str | None = None
    color_label: str | None = None
    available_quantity: int = 0


@dataclass(frozen=True)
class CatalogProduct:
    product_id: str
    sku: str | None
    name: str
    variants: tuple[CatalogVariant, ...] = field(default_factory=tuple)
    stock_quantity: int | None = None


class CatalogPort(ABC):
    """Read-only access to the product catalogue."""

    @abstractmethod
    def get_by_id(self, product_id: str) -> CatalogProduct | None:
        """Return the product with this id, or None."""
        ...

    @abstractmethod
    def find_by_sku(self, sku: str) -> CatalogProduct | None:
        """Return the product whose SKU equals ``sku`` exactly, or None."""
        ...

    @abstractmethod
    def search_by_name(self, term: str) -> CatalogProduct | None:
        """Return the first product whose name contains ``term`` (case-insensitive)."""
        ...

    @abstractmethod
    def variant_quantity(self, variant_id: str) -> int | None:
        """Live available quantity of a variant, or None when unknown."""
        ...

    @abstractmethod
    def product_quantity(self, product_id: str) -> int | None:
        """Live product-level stock, or None when unknown."""
        ...
