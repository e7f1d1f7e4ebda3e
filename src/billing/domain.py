"""Billing bounded context — order aggregation and payment reconciliation.

Groups due order items into orders per owner and currency, hands each order
to the payment gateway, and reconciles the gateway's asynchronous payment
webhooks back onto the orders.
"""

from protean.domain import Domain

from billing.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

billing = Domain(name="billing")
