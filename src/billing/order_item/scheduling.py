"""Order item scheduling — command and handler."""

from protean import handle
from protean.fields import DateTime, Float, String
from protean.utils.globals import current_domain

from billing.domain import billing
from billing.order_item.order_item import OrderItem


@billing.command(part_of="OrderItem")
class ScheduleOrderItem:
    """Schedule a charge against an owner."""

    owner_type = String(required=True, max_length=255)
    owner_id = String(required=True, max_length=255)
    currency = String(required=True, max_length=3)
    amount = Float(required=True)
    description = String(required=True, max_length=500)
    process_at = DateTime()


@billing.command_handler(part_of=OrderItem)
class ScheduleOrderItemHandler:
    @handle(ScheduleOrderItem)
    def schedule_order_item(self, command):
        item = OrderItem.schedule(
            owner_type=command.owner_type,
            owner_id=command.owner_id,
            currency=command.currency,
            amount=command.amount,
            description=command.description,
            process_at=command.process_at,
        )
        current_domain.repository_for(OrderItem).add(item)
        return str(item.id)
