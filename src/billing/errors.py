"""Billing errors.

Invariant violations subclass Protean's ValidationError so they surface the
same way as every other domain rule. Configuration and gateway problems are
plain exceptions raised straight to the caller.
"""

from protean.exceptions import ValidationError


class BillingError(Exception):
    """Base class for billing errors that are not domain validation failures."""


class ConfigurationError(BillingError):
    """The billing configuration cannot satisfy the requested operation."""


class UnsupportedCurrency(ConfigurationError):
    """No currency symbol is known for the currency code."""

    def __init__(self, currency: str) -> None:
        super().__init__(f"Unable to guess symbol for currency '{currency}'. Please explicitly specify it.")
        self.currency = currency


class GatewayError(BillingError):
    """The payment gateway could not be reached or rejected the request."""

    def __init__(self, message: str, status_code: int | None = None, retryable: bool = True) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class InvariantViolation(ValidationError):
    """A billing invariant was broken by the caller."""


class MixedOwnerOrCurrency(InvariantViolation):
    """Items passed to order creation do not share one owner and one currency."""
