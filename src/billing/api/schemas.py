"""Pydantic request/response schemas for the Billing API.

These are external contracts, kept separate from the internal Protean
commands they are translated into.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class ScheduleOrderItemRequest(BaseModel):
    owner_type: str
    owner_id: str
    currency: str = Field(min_length=3, max_length=3)
    amount: float = Field(gt=0)
    description: str
    process_at: datetime | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "owner_type": "user",
                    "owner_id": "42",
                    "currency": "EUR",
                    "amount": 12.50,
                    "description": "Monthly subscription",
                    "process_at": "2026-01-01T00:00:00Z",
                }
            ]
        }
    }


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Gateway unavailable"


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderItemIdResponse(BaseModel):
    order_item_id: str


class BilledOrderSchema(BaseModel):
    order_id: str
    number: str
    owner_type: str
    owner_id: str
    currency: str
    total: float
    payment_id: str | None = None
    formatted_total: str


class BillingRunResponse(BaseModel):
    orders: list[BilledOrderSchema]


class PaymentIdResponse(BaseModel):
    payment_id: str


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
