"""Repository for the Order aggregate."""

from billing.domain import billing
from billing.order.order import Order


@billing.repository(part_of=Order)
class OrderRepository:
    def count(self) -> int:
        """Number of orders ever created."""
        return self._dao.query.all().total

    def find_by_payment_id(self, payment_id: str) -> Order | None:
        """The order whose current payment is ``payment_id``, if any."""
        orders = self._dao.query.filter(payment_id=payment_id).all().items
        return orders[0] if orders else None
