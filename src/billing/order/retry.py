"""Order payment retry — command and handler.

Starts a new gateway payment for an order whose previous payment failed.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from billing.domain import billing
from billing.order.assembly import OrderAssembler
from billing.order.order import Order


@billing.command(part_of="Order")
class RetryOrderPayment:
    """Retry payment of a failed order."""

    order_id = Identifier(required=True)


@billing.command_handler(part_of=Order)
class RetryOrderPaymentHandler:
    @handle(RetryOrderPayment)
    def retry_order_payment(self, command):
        assembler = OrderAssembler()
        repo = current_domain.repository_for(assembler.cashier.order_model)
        order = repo.get(command.order_id)
        assembler.retry_payment(order)
        repo.add(order)
        return order.payment_id
