"""Cart store port.

The cart is owned by an external provider (device storage, a session, a
table). Checkout reads it once per attempt and removes exactly the lines it
ordered or drafted; anything left behind stays in the shopper's cart.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class VariantHint:
    size: str | None = None
    color: str | None = None
    variant_id: str | None = None


@dataclass(frozen=True)
class CartLine:
    """One line of a shopper's cart, as captured when the item was added.

    ``raw_product_ref`` may be a clean product id, a composite key, a SKU or
    something else entirely. ``stock_hint`` is the stock level cached at
    add-to-cart time and is only trusted when live stock cannot be read.
    """

    line_id: str
    raw_product_ref: str
    quantity: int
    unit_price: float
    variant_hint: VariantHint = field(default_factory=VariantHint)
    name: str = ""
    sku: str | None = None
    image: str | None = None
    stock_hint: int | None = None
    is_resale_flagged: bool = False
    resale_price: float | None = None

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError(f"Cart line {self.line_id} must have a positive quantity")


class CartStore(ABC):
    @abstractmethod
    def list(self, user_id: str) -> list[CartLine]:
        """Return the user's cart lines in the order they were added."""
        ...

    @abstractmethod
    def add(self, user_id: str, line: CartLine) -> None: ...

    @abstractmethod
    def remove(self, user_id: str, line_ids) -> None:
        """Remove the given lines; unknown ids are ignored."""
        ...

    @abstractmethod
    def clear(self, user_id: str) -> None: ...
