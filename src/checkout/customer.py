"""The signed-in shopper as checkout sees them."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CustomerProfile:
    user_id: str
    name: str = ""
    email: str | None = None
    phone: str | None = None
