"""Order ledger — one row per order with its current payment state."""

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from billing.domain import billing
from billing.order.events import (
    OrderCreated,
    OrderPaymentStarted,
    PaymentFailed,
    PaymentPaid,
)
from billing.order.order import Order


@billing.projection
class OrderLedger:
    order_id = Identifier(identifier=True, required=True)
    order_number = String(required=True)
    owner_type = String(required=True)
    owner_id = String(required=True)
    currency = String(required=True)
    total = Float()
    item_count = Integer(default=0)
    payment_status = String(required=True)
    payment_id = String()
    payment_attempts = Integer(default=0)
    created_at = DateTime()
    paid_at = DateTime()
    updated_at = DateTime()


@billing.projector(projector_for=OrderLedger, aggregates=[Order])
class OrderLedgerProjector:
    @on(OrderCreated)
    def on_order_created(self, event):
        current_domain.repository_for(OrderLedger).add(
            OrderLedger(
                order_id=event.order_id,
                order_number=event.order_number,
                owner_type=event.owner_type,
                owner_id=event.owner_id,
                currency=event.currency,
                total=event.total,
                item_count=event.item_count,
                payment_status="Unpaid",
                payment_attempts=0,
                created_at=event.created_at,
                updated_at=event.created_at,
            )
        )

    @on(OrderPaymentStarted)
    def on_order_payment_started(self, event):
        repo = current_domain.repository_for(OrderLedger)
        view = repo.get(event.order_id)
        view.payment_status = "Unpaid"
        view.payment_id = event.payment_id
        view.payment_attempts = event.attempt_number
        view.updated_at = event.started_at
        repo.add(view)

    @on(PaymentPaid)
    def on_payment_paid(self, event):
        repo = current_domain.repository_for(OrderLedger)
        view = repo.get(event.order_id)
        view.payment_status = "Paid"
        view.paid_at = event.paid_at
        view.updated_at = event.paid_at
        repo.add(view)

    @on(PaymentFailed)
    def on_payment_failed(self, event):
        repo = current_domain.repository_for(OrderLedger)
        view = repo.get(event.order_id)
        view.payment_status = "Failed"
        view.updated_at = event.failed_at
        repo.add(view)
