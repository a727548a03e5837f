"""Backoffice API package."""

from backoffice.api.routes import account_router, order_router, product_router, settings_router

__all__ = ["order_router", "product_router", "account_router", "settings_router"]
