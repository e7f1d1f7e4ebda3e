"""First payment webhook — command, handler and reconciler.

The gateway only tells us *which* payment changed. The handler looks up the
order, asks the gateway for the authoritative status and moves the order
accordingly. Paid orders are never touched again: a second notification for
them is a refund or chargeback, which billing does not handle.
"""

import threading
from collections import defaultdict

import structlog
from protean import handle
from protean.fields import Text
from protean.utils.globals import current_domain

from billing.cashier import get_cashier
from billing.domain import billing
from billing.errors import GatewayError
from billing.gateway import get_gateway
from billing.order.order import Order

logger = structlog.get_logger(__name__)


@billing.command(part_of="Order")
class ReconcileFirstPayment:
    """Reconcile an order with the gateway's view of its payment."""

    payment_id = Text(required=True)


@billing.command_handler(part_of=Order)
class ReconcileFirstPaymentHandler:
    @handle(ReconcileFirstPayment)
    def reconcile_first_payment(self, command):
        cashier = get_cashier()
        payment_id = command.payment_id

        repo = cashier.order_store()
        order = repo.find_by_payment_id(payment_id)
        order_number = order.number if order is not None else None

        if order is not None and order.is_paid():
            logger.info(
                "webhook_ignored_paid_order",
                payment_id=payment_id,
                order_number=order_number,
            )
            return

        try:
            payment = get_gateway().get_payment(payment_id)
        except GatewayError as exc:
            if cashier.debug:
                raise
            logger.warning(
                "webhook_gateway_lookup_failed",
                payment_id=payment_id,
                order_number=order_number,
                error=str(exc),
                status_code=exc.status_code,
            )
            return

        if order is None:
            # No aggregate to raise events from
            logger.warning(
                "webhook_unknown_payment",
                payment_id=payment_id,
                gateway_status=payment.status,
            )
            return

        if order.is_failed():
            if payment.is_paid():
                logger.warning(
                    "webhook_paid_after_failure",
                    payment_id=payment_id,
                    order_number=order.number,
                )
            return

        if payment.is_paid():
            order.mark_paid(payment.id)
            repo.add(order)
            logger.info("order_paid", payment_id=payment_id, order_number=order.number)
        elif payment.is_failed():
            order.record_payment_failure(payment.id, payment.status)
            repo.add(order)
            logger.info(
                "order_payment_failed",
                payment_id=payment_id,
                order_number=order.number,
                gateway_status=payment.status,
            )
        else:
            logger.info(
                "webhook_payment_still_open",
                payment_id=payment_id,
                order_number=order.number,
                gateway_status=payment.status,
            )


class PaymentWebhookReconciler:
    """Serializes reconciliation per payment id within the process."""

    def __init__(self) -> None:
        self._locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)
        self._guard = threading.Lock()

    def _lock_for(self, payment_id: str) -> threading.Lock:
        with self._guard:
            return self._locks[payment_id]

    def handle(self, payment_id: str) -> None:
        with self._lock_for(payment_id):
            current_domain.process(ReconcileFirstPayment(payment_id=payment_id), asynchronous=False)


reconciler = PaymentWebhookReconciler()
