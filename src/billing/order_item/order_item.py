"""OrderItem aggregate (CQRS) — a single billable charge against an owner.

Items are scheduled by application code and wait in the Pending state until
their process_at moment has passed. The billing run then claims them into an
Order, after which they are Processed and never change again.

State Machine:
    PENDING → PROCESSED (terminal)
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String

from billing.domain import billing
from billing.order_item.events import OrderItemProcessed, OrderItemScheduled


class OrderItemStatus(Enum):
    PENDING = "Pending"
    PROCESSED = "Processed"


def as_aware(moment: datetime) -> datetime:
    # Naive schedule times are taken to be UTC
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)


@billing.aggregate
class OrderItem:
    owner_type = String(required=True, max_length=255)
    owner_id = String(required=True, max_length=255)
    currency = String(required=True, max_length=3)
    amount = Float(required=True)
    description = String(required=True, max_length=500)
    status = String(
        choices=OrderItemStatus,
        default=OrderItemStatus.PENDING.value,
    )
    process_at = DateTime(required=True)
    order_id = Identifier()
    processed_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def schedule(
        cls,
        owner_type: str,
        owner_id: str,
        currency: str,
        amount: float,
        description: str,
        process_at: datetime | None = None,
    ):
        """Schedule a charge. Without process_at the item is due immediately."""
        now = datetime.now(UTC)
        item = cls(
            owner_type=owner_type,
            owner_id=str(owner_id),
            currency=currency.upper(),
            amount=amount,
            description=description,
            status=OrderItemStatus.PENDING.value,
            process_at=as_aware(process_at) if process_at else now,
            created_at=now,
            updated_at=now,
        )
        item.raise_(
            OrderItemScheduled(
                order_item_id=str(item.id),
                owner_type=item.owner_type,
                owner_id=item.owner_id,
                currency=item.currency,
                amount=item.amount,
                description=item.description,
                process_at=item.process_at,
            )
        )
        return item

    def owner_key(self) -> tuple[str, str]:
        return (self.owner_type, str(self.owner_id))

    def is_pending(self) -> bool:
        return self.status == OrderItemStatus.PENDING.value

    def is_due(self, as_of: datetime) -> bool:
        return as_aware(self.process_at) <= as_aware(as_of)

    def mark_processed(self, order_id: str) -> None:
        """Bind the item to an order. Items are claimed exactly once."""
        if not self.is_pending():
            raise ValidationError({"status": [f"Order item {self.id} was already processed"]})

        now = datetime.now(UTC)
        self.status = OrderItemStatus.PROCESSED.value
        self.order_id = order_id
        self.processed_at = now
        self.updated_at = now
        self.raise_(
            OrderItemProcessed(
                order_item_id=str(self.id),
                order_id=order_id,
                processed_at=now,
            )
        )
