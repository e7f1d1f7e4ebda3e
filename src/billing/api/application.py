"""FastAPI application factory for billing."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from billing.api.routes import (
    build_webhook_router,
    gateway_router,
    order_item_router,
    order_router,
    register_billing_exception_handlers,
)
from billing.cashier import Cashier, configure_cashier, get_cashier
from billing.domain import billing


def create_app(cashier: Cashier | None = None) -> FastAPI:
    """Build the API. Routes are only mounted when the Cashier registers them."""
    if cashier is not None:
        configure_cashier(cashier)
    cashier = get_cashier()

    app = FastAPI(
        title="Billing API",
        description="Order aggregation, payments and payment webhooks",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the billing domain context for each request."""
        with billing.domain_context():
            return await call_next(request)

    if cashier.registers_routes:
        app.include_router(order_item_router)
        app.include_router(order_router)
        app.include_router(gateway_router)
        app.include_router(build_webhook_router(cashier))

    register_billing_exception_handlers(app)

    @app.get("/health")
    async def health():
        return JSONResponse(
            content={
                "status": "ok",
                "domain": billing.name,
                "currency": cashier.uses_currency(),
                "routes": cashier.registers_routes,
            }
        )

    return app
