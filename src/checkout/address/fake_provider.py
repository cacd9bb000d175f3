"""In-memory address book for development and tests."""

import time

from checkout.address.port import AddressProvider, AddressSnapshot


class AddressBookUnavailable(Exception):
    pass


class InMemoryAddressBook(AddressProvider):
    def __init__(self) -> None:
        self._defaults: dict[str, AddressSnapshot] = {}
        self.should_fail = False
        self.latency: float = 0.0

    def set_default(self, user_id: str, address: AddressSnapshot) -> None:
        self._defaults[user_id] = address

    def configure(self, should_fail: bool = False, latency: float = 0.0) -> None:
        self.should_fail = should_fail
        self.latency = latency

    def default_address(self, user_id: str) -> AddressSnapshot | None:
        if self.latency:
            time.sleep(self.latency)
        if self.should_fail:
            raise AddressBookUnavailable("Address book is unavailable")
        return self._defaults.get(user_id)
