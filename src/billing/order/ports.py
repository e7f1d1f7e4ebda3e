"""Capabilities the billing flow needs from the pluggable Order and OrderItem models.

The Cashier checks the repositories of the registered models against these
protocols, so a replacement model only has to provide a repository with the
same query methods (and, for orders, the ``create_from_items`` factory).
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class OrderStore(Protocol):
    def count(self) -> int: ...

    def find_by_payment_id(self, payment_id: str) -> Any | None: ...

    def add(self, order: Any) -> Any: ...

    def get(self, identifier: Any) -> Any: ...


@runtime_checkable
class OrderItemStore(Protocol):
    def should_process(self, as_of: datetime | None = None, limit: int = 100) -> Sequence[Any]: ...

    def add(self, item: Any) -> Any: ...

    def get(self, identifier: Any) -> Any: ...
