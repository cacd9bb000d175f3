"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state; nothing is shared across
users. State keeps the ids returned by the API so follow-up requests can
reference them.
"""

from dataclasses import dataclass, field


@dataclass
class ShopperState:
    """Tracks one simulated shopper's cart and checkout results."""

    customer: dict = field(default_factory=dict)
    line_ids: list[str] = field(default_factory=list)
    draft_id: str | None = None
    coupon_code: str | None = None
