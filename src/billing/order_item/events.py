"""Domain events for the OrderItem aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from billing.domain import billing


@billing.event(part_of="OrderItem")
class OrderItemScheduled:
    """A charge was scheduled against an owner."""

    __version__ = 1

    order_item_id = Identifier(required=True)
    owner_type = String(required=True)
    owner_id = String(required=True)
    currency = String(required=True)
    amount = Float(required=True)
    description = String(required=True)
    process_at = DateTime(required=True)


@billing.event(part_of="OrderItem")
class OrderItemProcessed:
    """The item was claimed by an order."""

    __version__ = 1

    order_item_id = Identifier(required=True)
    order_id = Identifier(required=True)
    processed_at = DateTime(required=True)
