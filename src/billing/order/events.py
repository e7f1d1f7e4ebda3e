"""Domain events for the Order aggregate.

PaymentPaid and PaymentFailed are the events external subscribers listen to
for provisioning and dunning. The rest keep the order's payment history
observable for projections.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from billing.domain import billing


@billing.event(part_of="Order")
class OrderCreated:
    """A group of due order items was turned into an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    owner_type = String(required=True)
    owner_id = String(required=True)
    currency = String(required=True)
    total = Float(required=True)
    item_count = Integer(required=True)
    created_at = DateTime(required=True)


@billing.event(part_of="Order")
class OrderPaymentStarted:
    """The gateway accepted a payment for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_id = String(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    attempt_number = Integer(required=True)
    started_at = DateTime(required=True)


@billing.event(part_of="Order")
class PaymentPaid:
    """The first payment for an order was confirmed paid by the gateway."""

    __version__ = 1

    payment_id = String(required=True)
    order_id = Identifier(required=True)
    order_number = String(required=True)
    owner_type = String(required=True)
    owner_id = String(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    paid_at = DateTime(required=True)


@billing.event(part_of="Order")
class PaymentFailed:
    """The gateway reported the order's payment as failed."""

    __version__ = 1

    payment_id = String(required=True)
    order_id = Identifier(required=True)
    order_number = String(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    gateway_status = String(required=True)
    failed_at = DateTime(required=True)
