"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement, so
the billing flow can run against the FakeGateway (dev/test) or the Mollie
HTTP API without changing any domain or application code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class GatewayPaymentStatus(Enum):
    OPEN = "open"
    PENDING = "pending"
    AUTHORIZED = "authorized"
    PAID = "paid"
    FAILED = "failed"
    CANCELED = "canceled"
    EXPIRED = "expired"


_FAILED_STATUSES = {
    GatewayPaymentStatus.FAILED.value,
    GatewayPaymentStatus.CANCELED.value,
    GatewayPaymentStatus.EXPIRED.value,
}


@dataclass(frozen=True)
class GatewayPayment:
    """Snapshot of a payment as the gateway reports it."""

    id: str
    status: str
    amount: Decimal
    currency: str
    metadata: dict = field(default_factory=dict)

    def is_paid(self) -> bool:
        return self.status == GatewayPaymentStatus.PAID.value

    def is_failed(self) -> bool:
        return self.status in _FAILED_STATUSES

    def is_open(self) -> bool:
        return not (self.is_paid() or self.is_failed())


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_payment(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        metadata: dict,
        webhook_url: str | None = None,
    ) -> GatewayPayment:
        """Create a payment at the gateway. Raises GatewayError on failure."""
        ...

    @abstractmethod
    def get_payment(self, payment_id: str) -> GatewayPayment:
        """Fetch the authoritative payment resource. Raises GatewayError on failure."""
        ...
