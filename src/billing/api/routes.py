"""FastAPI routes for the Billing domain — order items, billing runs and webhooks."""

import os

import structlog
from fastapi import APIRouter, FastAPI, Form, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers
from protean.utils.globals import current_domain

from billing.api.schemas import (
    BilledOrderSchema,
    BillingRunResponse,
    ConfigureGatewayRequest,
    GatewayConfigResponse,
    OrderItemIdResponse,
    PaymentIdResponse,
    ScheduleOrderItemRequest,
)
from billing.cashier import Cashier, get_cashier
from billing.errors import GatewayError
from billing.gateway import get_gateway
from billing.gateway.fake_adapter import FakeGateway
from billing.order.aggregation import OrderItemAggregator
from billing.order.retry import RetryOrderPayment
from billing.order_item.scheduling import ScheduleOrderItem
from billing.payment.webhook import reconciler
from billing.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Order Item Router
# ---------------------------------------------------------------------------
order_item_router = APIRouter(prefix="/order-items", tags=["order-items"])


@order_item_router.post("", status_code=201, response_model=OrderItemIdResponse)
async def schedule_order_item(body: ScheduleOrderItemRequest) -> OrderItemIdResponse:
    """Schedule a charge against an owner."""
    command = ScheduleOrderItem(
        owner_type=body.owner_type,
        owner_id=body.owner_id,
        currency=body.currency,
        amount=body.amount,
        description=body.description,
        process_at=body.process_at,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderItemIdResponse(order_item_id=result)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("/run", response_model=BillingRunResponse)
def run_billing() -> BillingRunResponse:
    """Assemble orders from every due order item and start their payments."""
    cashier = get_cashier()
    orders = OrderItemAggregator(cashier).run()
    return BillingRunResponse(
        orders=[
            BilledOrderSchema(
                order_id=str(order.id),
                number=order.number,
                owner_type=order.owner_type,
                owner_id=order.owner_id,
                currency=order.currency,
                total=order.total,
                payment_id=order.payment_id,
                formatted_total=cashier.format_amount(order.total_money()),
            )
            for order in orders
        ]
    )


@order_router.post("/{order_id}/retry-payment", response_model=PaymentIdResponse)
def retry_order_payment(order_id: str) -> PaymentIdResponse:
    """Start a new payment for an order whose payment failed."""
    payment_id = current_domain.process(RetryOrderPayment(order_id=order_id), asynchronous=False)
    return PaymentIdResponse(payment_id=payment_id)


# ---------------------------------------------------------------------------
# Gateway Router
# ---------------------------------------------------------------------------
gateway_router = APIRouter(prefix="/billing/gateway", tags=["billing"])


@gateway_router.post("/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )


# ---------------------------------------------------------------------------
# Webhook Router
# ---------------------------------------------------------------------------
def build_webhook_router(cashier: Cashier) -> APIRouter:
    """Router for the first payment webhook, mounted at the configured URL's path."""
    router = APIRouter(tags=["webhooks"])

    @router.post(f"/{cashier.first_payment_webhook_path()}", status_code=200)
    def first_payment_webhook(id: str | None = Form(None)) -> Response:
        """Reconcile the order paying with this payment. Always acknowledged outside debug mode."""
        if not id:
            logger.warning("webhook_missing_payment_id")
            return Response(status_code=200)

        add_context(payment_id=id)
        try:
            reconciler.handle(id)
        except Exception as exc:
            if get_cashier().debug:
                raise
            logger.exception("webhook_reconciliation_failed", error=str(exc))
        finally:
            clear_context()
        return Response(status_code=200)

    return router


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------
async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(
        status_code=502,
        content={"error": str(exc), "retryable": exc.retryable},
    )


def register_billing_exception_handlers(app: FastAPI) -> None:
    """Protean's domain exception mapping plus 502 for gateway failures."""
    register_exception_handlers(app)
    app.add_exception_handler(GatewayError, gateway_error_handler)
