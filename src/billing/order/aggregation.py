"""Billing run — groups due order items and assembles one order per group."""

from collections.abc import Iterable
from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain

from billing.cashier import Cashier, get_cashier
from billing.order.assembly import submit_order

logger = structlog.get_logger(__name__)


def group(items: Iterable) -> dict[tuple[str, str, str], list]:
    """Partition items by (owner type, owner id, currency), keeping their order."""
    groups: dict[tuple[str, str, str], list] = {}
    for item in items:
        key = (item.owner_type, str(item.owner_id), item.currency)
        groups.setdefault(key, []).append(item)
    return groups


class OrderItemAggregator:
    def __init__(self, cashier: Cashier | None = None) -> None:
        self.cashier = cashier or get_cashier()

    def due_items(self, now: datetime | None = None) -> list:
        return self.cashier.order_item_store().should_process(as_of=now, limit=self.cashier.batch_size)

    def run(self, now: datetime | None = None) -> list:
        """Assemble an order for every (owner, currency) group of due items.

        Each group is its own unit of work. A GatewayError stops the run: orders
        assembled before it stay, the failing group's items remain pending.
        """
        now = now or datetime.now(UTC)
        groups = group(self.due_items(now))
        if not groups:
            logger.info("billing_run_idle", as_of=now.isoformat())
            return []

        order_repo = current_domain.repository_for(self.cashier.order_model)
        orders = []
        for (owner_type, owner_id, currency), items in groups.items():
            order_id = submit_order([item.id for item in items])
            orders.append(order_repo.get(order_id))
            logger.info(
                "billing_run_group_assembled",
                owner_type=owner_type,
                owner_id=owner_id,
                currency=currency,
                order_id=order_id,
            )

        logger.info("billing_run_completed", as_of=now.isoformat(), order_count=len(orders))
        return orders
