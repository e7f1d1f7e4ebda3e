"""Order aggregate (CQRS) — a batch of order items billed in one payment.

An order is created from order items that share one owner and one currency.
It snapshots each item as an OrderLine, carries the total, and tracks the
payment the gateway is processing for it.

State Machine (payment_status):
    UNPAID → PAID (terminal)
    UNPAID → FAILED → UNPAID (new payment attempt)
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from moneyed import Money
from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from billing.domain import billing
from billing.errors import InvariantViolation, MixedOwnerOrCurrency
from billing.order.events import (
    OrderCreated,
    OrderPaymentStarted,
    PaymentFailed,
    PaymentPaid,
)


class OrderPaymentStatus(Enum):
    UNPAID = "Unpaid"
    PAID = "Paid"
    FAILED = "Failed"


_VALID_TRANSITIONS = {
    OrderPaymentStatus.UNPAID: {OrderPaymentStatus.PAID, OrderPaymentStatus.FAILED},
    OrderPaymentStatus.FAILED: {OrderPaymentStatus.UNPAID},  # retry
    OrderPaymentStatus.PAID: set(),  # Terminal
}


def sum_amounts(amounts) -> float:
    """Sum monetary floats without binary rounding drift."""
    return float(sum((Decimal(str(amount)) for amount in amounts), Decimal("0")))


@billing.entity(part_of="Order")
class OrderLine:
    """Snapshot of an order item at the moment the order claimed it."""

    order_item_id = Identifier(required=True)
    description = String(required=True, max_length=500)
    amount = Float(required=True)


@billing.aggregate
class Order:
    number = String(required=True, max_length=50, unique=True)
    owner_type = String(required=True, max_length=255)
    owner_id = String(required=True, max_length=255)
    currency = String(required=True, max_length=3)
    total = Float(required=True)
    lines = HasMany(OrderLine)
    payment_status = String(
        choices=OrderPaymentStatus,
        default=OrderPaymentStatus.UNPAID.value,
    )
    payment_id = String(max_length=255)
    payment_attempts = Integer(default=0)
    paid_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_equal_sum_of_lines(self):
        if self.lines and abs(sum_amounts(line.amount for line in self.lines) - self.total) > 1e-9:
            raise ValidationError({"total": ["Order total must equal the sum of its lines"]})

    @invariant.post
    def paid_order_must_reference_payment(self):
        if self.payment_status == OrderPaymentStatus.PAID.value and not self.payment_id:
            raise ValidationError({"payment_id": ["A paid order must reference its payment"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create_from_items(cls, items: Sequence, number: str):
        """Create an unpaid order from items sharing one owner and one currency."""
        if not items:
            raise InvariantViolation({"items": ["An order needs at least one order item"]})

        first = items[0]
        for item in items[1:]:
            if item.owner_key() != first.owner_key() or item.currency != first.currency:
                raise MixedOwnerOrCurrency(
                    {"items": ["All order items of an order must share one owner and one currency"]}
                )

        now = datetime.now(UTC)
        order = cls(
            number=number,
            owner_type=first.owner_type,
            owner_id=str(first.owner_id),
            currency=first.currency,
            total=sum_amounts(item.amount for item in items),
            payment_status=OrderPaymentStatus.UNPAID.value,
            payment_attempts=0,
            created_at=now,
            updated_at=now,
        )
        with atomic_change(order):
            for item in items:
                order.add_lines(
                    OrderLine(
                        order_item_id=str(item.id),
                        description=item.description,
                        amount=item.amount,
                    )
                )

        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=order.number,
                owner_type=order.owner_type,
                owner_id=order.owner_id,
                currency=order.currency,
                total=order.total,
                item_count=len(items),
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: OrderPaymentStatus) -> None:
        current = OrderPaymentStatus(self.payment_status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError(
                {"payment_status": [f"Cannot transition from {current.value} to {target_status.value}"]}
            )

    def is_paid(self) -> bool:
        return self.payment_status == OrderPaymentStatus.PAID.value

    def is_failed(self) -> bool:
        return self.payment_status == OrderPaymentStatus.FAILED.value

    def total_money(self) -> Money:
        return Money(Decimal(str(self.total)), self.currency.upper())

    def can_start_payment(self) -> bool:
        if self.is_failed():
            return True
        return self.payment_status == OrderPaymentStatus.UNPAID.value and not self.payment_id

    # -------------------------------------------------------------------
    # Payment lifecycle
    # -------------------------------------------------------------------
    def start_payment(self, payment_id: str) -> None:
        """Record the payment the gateway created for this order."""
        if not self.can_start_payment():
            raise ValidationError(
                {"payment_id": [f"Order {self.number} already has an active or completed payment"]}
            )
        if self.is_failed():
            self._assert_can_transition(OrderPaymentStatus.UNPAID)

        now = datetime.now(UTC)
        self.payment_status = OrderPaymentStatus.UNPAID.value
        self.payment_id = payment_id
        self.payment_attempts = (self.payment_attempts or 0) + 1
        self.updated_at = now
        self.raise_(
            OrderPaymentStarted(
                order_id=str(self.id),
                order_number=self.number,
                payment_id=payment_id,
                amount=self.total,
                currency=self.currency,
                attempt_number=self.payment_attempts,
                started_at=now,
            )
        )

    def mark_paid(self, payment_id: str, paid_at: datetime | None = None) -> None:
        """Finalize the order after the gateway confirmed its payment."""
        self._assert_can_transition(OrderPaymentStatus.PAID)
        if payment_id != self.payment_id:
            raise ValidationError({"payment_id": [f"Payment {payment_id} does not belong to order {self.number}"]})

        paid_at = paid_at or datetime.now(UTC)
        self.payment_status = OrderPaymentStatus.PAID.value
        self.paid_at = paid_at
        self.updated_at = paid_at
        self.raise_(
            PaymentPaid(
                payment_id=payment_id,
                order_id=str(self.id),
                order_number=self.number,
                owner_type=self.owner_type,
                owner_id=self.owner_id,
                amount=self.total,
                currency=self.currency,
                paid_at=paid_at,
            )
        )

    def record_payment_failure(self, payment_id: str, gateway_status: str) -> None:
        """Record that the gateway gave up on the order's payment."""
        self._assert_can_transition(OrderPaymentStatus.FAILED)
        if payment_id != self.payment_id:
            raise ValidationError({"payment_id": [f"Payment {payment_id} does not belong to order {self.number}"]})

        now = datetime.now(UTC)
        self.payment_status = OrderPaymentStatus.FAILED.value
        self.updated_at = now
        self.raise_(
            PaymentFailed(
                payment_id=payment_id,
                order_id=str(self.id),
                order_number=self.number,
                amount=self.total,
                currency=self.currency,
                gateway_status=gateway_status,
                failed_at=now,
            )
        )
