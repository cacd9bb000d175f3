"""Cart store factory."""

from checkout.cart.fake_store import InMemoryCartStore
from checkout.cart.port import CartStore

_current_store: CartStore | None = None


def get_cart_store() -> CartStore:
    """Return the active cart store. Defaults to InMemoryCartStore."""
    global _current_store
    if _current_store is None:
        _current_store = InMemoryCartStore()
    return _current_store


def set_cart_store(store: CartStore) -> None:
    global _current_store
    _current_store = store


def reset_cart_store() -> None:
    global _current_store
    _current_store = None
