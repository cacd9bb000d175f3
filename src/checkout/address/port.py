"""Address provider port: the shopper's default delivery address."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AddressSnapshot:
    full_name: str
    phone: str
    line1: str
    city: str
    state: str
    postal_code: str
    line2: str | None = None
    country: str = "India"

    def one_line(self) -> str:
        return f"{self.line1}, {self.city}, {self.state} - {self.postal_code}"

    def is_deliverable(self) -> bool:
        """True when the fields an order cannot ship without are filled in."""
        return all((value or "").strip() for value in (self.line1, self.city, self.postal_code))


class AddressProvider(ABC):
    @abstractmethod
    def default_address(self, user_id: str) -> AddressSnapshot | None:
        """Return the user's default address, or None when they have none."""
        ...
