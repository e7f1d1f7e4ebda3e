"""Order numbers of the form ``<year>-<group1>-<group2>``.

The sequence is ``offset + number of existing orders + 1``, left padded to
eight digits. The last four digits form the second group and everything
before them the first, so offsets beyond eight digits widen the first group.
"""

from datetime import UTC, datetime

from billing.cashier import Cashier, get_cashier
from billing.order.ports import OrderStore


class OrderNumberGenerator:
    def __init__(self, cashier: Cashier | None = None, store: OrderStore | None = None) -> None:
        self._cashier = cashier
        self._store = store

    @property
    def cashier(self) -> Cashier:
        return self._cashier or get_cashier()

    @property
    def store(self) -> OrderStore:
        return self._store or self.cashier.order_store()

    def generate(self, now: datetime | None = None) -> str:
        now = now or datetime.now(UTC)
        sequence = str(self.cashier.order_number_offset + self.store.count() + 1).zfill(8)
        return f"{now.year}-{sequence[:-4]}-{sequence[-4:]}"
