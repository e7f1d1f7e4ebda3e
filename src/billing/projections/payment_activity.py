"""Payment activity — append-only log of payment outcomes reported by webhooks."""

from uuid import uuid4

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, String
from protean.utils.globals import current_domain

from billing.domain import billing
from billing.order.events import PaymentFailed, PaymentPaid
from billing.order.order import Order


@billing.projection
class PaymentActivity:
    entry_id = Identifier(identifier=True, required=True)
    payment_id = String(required=True)
    order_id = Identifier(required=True)
    order_number = String(required=True)
    kind = String(required=True)  # Paid, Failed
    amount = Float()
    currency = String()
    gateway_status = String()
    occurred_at = DateTime()


@billing.projector(projector_for=PaymentActivity, aggregates=[Order])
class PaymentActivityProjector:
    @on(PaymentPaid)
    def on_payment_paid(self, event):
        current_domain.repository_for(PaymentActivity).add(
            PaymentActivity(
                entry_id=str(uuid4()),
                payment_id=event.payment_id,
                order_id=event.order_id,
                order_number=event.order_number,
                kind="Paid",
                amount=event.amount,
                currency=event.currency,
                gateway_status="paid",
                occurred_at=event.paid_at,
            )
        )

    @on(PaymentFailed)
    def on_payment_failed(self, event):
        current_domain.repository_for(PaymentActivity).add(
            PaymentActivity(
                entry_id=str(uuid4()),
                payment_id=event.payment_id,
                order_id=event.order_id,
                order_number=event.order_number,
                kind="Failed",
                amount=event.amount,
                currency=event.currency,
                gateway_status=event.gateway_status,
                occurred_at=event.failed_at,
            )
        )
