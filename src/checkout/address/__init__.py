"""Address provider factory."""

from checkout.address.fake_provider import InMemoryAddressBook
from checkout.address.port import AddressProvider

_current_provider: AddressProvider | None = None


def get_address_provider() -> AddressProvider:
    """Return the active address provider. Defaults to InMemoryAddressBook."""
    global _current_provider
    if _current_provider is None:
        _current_provider = InMemoryAddressBook()
    return _current_provider


def set_address_provider(provider: AddressProvider) -> None:
    global _current_provider
    _current_provider = provider


def reset_address_provider() -> None:
    global _current_provider
    _current_provider = None
