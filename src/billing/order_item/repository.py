"""Repository for the OrderItem aggregate."""

from datetime import UTC, datetime

from billing.domain import billing
from billing.order_item.order_item import OrderItem, OrderItemStatus


@billing.repository(part_of=OrderItem)
class OrderItemRepository:
    def should_process(self, as_of: datetime | None = None, limit: int = 100) -> list[OrderItem]:
        """Pending items whose process_at has passed, oldest first, at most ``limit`` of them."""
        as_of = as_of or datetime.now(UTC)
        # Due items sort before everything still waiting, so they fall inside the limit
        pending = (
            self._dao.query.filter(status=OrderItemStatus.PENDING.value)
            .order_by("process_at")
            .limit(limit)
            .all()
            .items
        )
        return [item for item in pending if item.is_due(as_of)]

    def for_order(self, order_id: str) -> list[OrderItem]:
        return self._dao.query.filter(order_id=str(order_id)).all().items
