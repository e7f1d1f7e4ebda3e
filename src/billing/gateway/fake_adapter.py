"""Configurable fake payment gateway for development and testing.

Keeps payments in memory and lets tests (or the /billing/gateway/configure
route) decide whether calls succeed and which status a payment reports when
the webhook fetches it back.
"""

from dataclasses import replace
from decimal import Decimal
from uuid import uuid4

from billing.errors import GatewayError
from billing.gateway.port import GatewayPayment, GatewayPaymentStatus, PaymentGateway


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.payments: dict[str, GatewayPayment] = {}
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_payment(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        metadata: dict,
        webhook_url: str | None = None,
    ) -> GatewayPayment:
        self.calls.append(
            {
                "method": "create_payment",
                "amount": amount,
                "currency": currency,
                "description": description,
                "metadata": dict(metadata),
                "webhook_url": webhook_url,
            }
        )

        if not self.should_succeed:
            raise GatewayError(self.failure_reason, status_code=503)

        payment = GatewayPayment(
            id=f"tr_{uuid4().hex[:10]}",
            status=GatewayPaymentStatus.OPEN.value,
            amount=Decimal(str(amount)),
            currency=currency,
            metadata=dict(metadata),
        )
        self.payments[payment.id] = payment
        return payment

    def get_payment(self, payment_id: str) -> GatewayPayment:
        self.calls.append({"method": "get_payment", "payment_id": payment_id})

        if not self.should_succeed:
            raise GatewayError(self.failure_reason, status_code=503)

        try:
            return self.payments[payment_id]
        except KeyError:
            raise GatewayError(f"Payment {payment_id} not found", status_code=404, retryable=False) from None

    def set_status(self, payment_id: str, status: GatewayPaymentStatus) -> GatewayPayment:
        """Simulate the customer (or the bank) moving a payment to a new status."""
        payment = replace(self.payments[payment_id], status=status.value)
        self.payments[payment_id] = payment
        return payment

    def mark_paid(self, payment_id: str) -> GatewayPayment:
        return self.set_status(payment_id, GatewayPaymentStatus.PAID)

    def mark_failed(self, payment_id: str) -> GatewayPayment:
        return self.set_status(payment_id, GatewayPaymentStatus.FAILED)
