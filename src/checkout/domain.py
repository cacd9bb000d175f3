"""Checkout bounded context: cart reconciliation, pricing and order materialization.

Resolves loosely referenced cart lines against the live catalogue, splits the
cart into in-stock and backordered buckets, prices the in-stock bucket and
persists a confirmed order and/or a backorder draft.
"""

from protean.domain import Domain

from checkout.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

checkout = Domain(name="checkout")
