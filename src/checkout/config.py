"""Runtime tunables for the checkout engine, read from the environment."""

import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass(frozen=True)
class EngineSettings:
    """Bounds for external lookups plus the currency orders are recorded in.

    lookup_timeout_seconds caps each catalogue/address call; once it elapses
    the caller takes its documented fallback path instead of waiting.
    """

    lookup_timeout_seconds: float = 5.0
    lookup_workers: int = 8
    currency: str = "INR"

    def __post_init__(self):
        if self.lookup_timeout_seconds <= 0:
            raise ValueError("lookup_timeout_seconds must be positive")
        if self.lookup_workers < 1:
            raise ValueError("lookup_workers must be at least 1")

    @classmethod
    def from_env(cls) -> "EngineSettings":
        return cls(
            lookup_timeout_seconds=_env_float("CHECKOUT_LOOKUP_TIMEOUT_SECONDS", 5.0),
            lookup_workers=_env_int("CHECKOUT_LOOKUP_WORKERS", 8),
            currency=os.getenv("CHECKOUT_CURRENCY", "INR"),
        )
