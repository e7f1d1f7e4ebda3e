"""Order assembly — command, handler and the assembler they delegate to.

One group of due order items becomes one Order: the items are claimed,
a payment is created at the gateway, and only then are the order and the
claimed items written. All of it happens in the command handler's unit of
work, so a gateway failure leaves the items pending and persists no order.
"""

import json
import threading
from collections.abc import Sequence

import structlog
from protean import handle
from protean.fields import Text
from protean.utils.globals import current_domain

from billing.cashier import Cashier, get_cashier
from billing.domain import billing
from billing.errors import InvariantViolation
from billing.gateway import get_gateway
from billing.gateway.port import PaymentGateway
from billing.order.number import OrderNumberGenerator
from billing.order.order import Order

logger = structlog.get_logger(__name__)

# Order numbers are derived from the order count, so creation is serialized
# within the process.
_assembly_lock = threading.Lock()


class OrderAssembler:
    def __init__(
        self,
        cashier: Cashier | None = None,
        gateway: PaymentGateway | None = None,
        number_generator: OrderNumberGenerator | None = None,
    ) -> None:
        self.cashier = cashier or get_cashier()
        self.gateway = gateway or get_gateway()
        self.number_generator = number_generator or OrderNumberGenerator(cashier=self.cashier)

    def create_from_items(self, items: Sequence):
        """Build an unpaid order from the items and mark each item processed."""
        if not items:
            raise InvariantViolation({"items": ["An order needs at least one order item"]})

        claimed = [str(item.id) for item in items if not item.is_pending()]
        if claimed:
            raise InvariantViolation({"items": [f"Order items already processed: {', '.join(claimed)}"]})

        order = self.cashier.order_model.create_from_items(items, self.number_generator.generate())
        for item in items:
            item.mark_processed(str(order.id))
        return order

    def process_payment(self, order):
        """Create the order's payment at the gateway and attach it to the order.

        GatewayError propagates untouched.
        """
        if not order.can_start_payment():
            raise InvariantViolation({"payment_id": [f"Order {order.number} cannot start a new payment"]})

        payment = self.gateway.create_payment(
            amount=order.total_money().amount,
            currency=order.currency,
            description=f"Order {order.number}",
            metadata={
                "order_id": str(order.id),
                "order_number": order.number,
                "owner_type": order.owner_type,
                "owner_id": order.owner_id,
            },
            webhook_url=self.cashier.first_payment_webhook_url or None,
        )
        order.start_payment(payment.id)
        logger.info(
            "order_payment_started",
            order_id=str(order.id),
            order_number=order.number,
            payment_id=payment.id,
        )
        return order

    def assemble(self, items: Sequence):
        """Create, pay for and persist one order. Must run inside a unit of work."""
        order = self.process_payment(self.create_from_items(items))

        current_domain.repository_for(self.cashier.order_model).add(order)
        item_repo = current_domain.repository_for(self.cashier.order_item_model)
        for item in items:
            item_repo.add(item)

        logger.info(
            "order_assembled",
            order_id=str(order.id),
            order_number=order.number,
            owner_type=order.owner_type,
            owner_id=order.owner_id,
            currency=order.currency,
            total=order.total,
            item_count=len(items),
        )
        return order

    def retry_payment(self, order):
        """Start a new payment attempt for a failed order."""
        if not order.is_failed():
            raise InvariantViolation(
                {"payment_status": [f"Order {order.number} is {order.payment_status}, only failed orders can retry"]}
            )
        return self.process_payment(order)


@billing.command(part_of="Order")
class AssembleOrder:
    """Turn a group of order items sharing one owner and currency into an order."""

    order_item_ids = Text(required=True)  # JSON: list of order item ids


@billing.command_handler(part_of=Order)
class AssembleOrderHandler:
    @handle(AssembleOrder)
    def assemble_order(self, command):
        item_ids = json.loads(command.order_item_ids)

        assembler = OrderAssembler()
        # Reloaded inside the unit of work so a concurrent run cannot claim them twice
        item_repo = current_domain.repository_for(assembler.cashier.order_item_model)
        items = [item_repo.get(item_id) for item_id in item_ids]

        order = assembler.assemble(items)
        return str(order.id)


def submit_order(item_ids: Sequence[str]) -> str:
    """Process an AssembleOrder command for the items, one assembly at a time."""
    with _assembly_lock:
        return current_domain.process(
            AssembleOrder(order_item_ids=json.dumps([str(item_id) for item_id in item_ids])),
            asynchronous=False,
        )
