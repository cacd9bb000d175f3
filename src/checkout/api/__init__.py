"""Checkout API package."""

from checkout.api.routes import backorder_router, cart_router, checkout_router, coupon_router, order_router

__all__ = ["cart_router", "checkout_router", "coupon_router", "order_router", "backorder_router"]
