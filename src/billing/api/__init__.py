"""Billing domain API package."""

from billing.api.application import create_app
from billing.api.routes import (
    build_webhook_router,
    gateway_router,
    order_item_router,
    order_router,
    register_billing_exception_handlers,
)

__all__ = [
    "order_item_router",
    "order_router",
    "gateway_router",
    "build_webhook_router",
    "create_app",
    "register_billing_exception_handlers",
]
