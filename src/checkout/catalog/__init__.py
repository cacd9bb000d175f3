"""Catalogue adapter factory.

get_catalog() / set_catalog() swap the implementation the checkout service
uses by default; InMemoryCatalog backs development and tests.
"""

from checkout.catalog.fake_adapter import InMemoryCatalog
from checkout.catalog.port import CatalogPort

_current_catalog: CatalogPort | None = None


def get_catalog() -> CatalogPort:
    """Return the active catalogue adapter. Defaults to an empty InMemoryCatalog."""
    global _current_catalog
    if _current_catalog is None:
        _current_catalog = InMemoryCatalog()
    return _current_catalog


def set_catalog(catalog: CatalogPort) -> None:
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    global _current_catalog
    _current_catalog = None
