"""BDD tests for the order payment lifecycle."""

from pytest_bdd import scenarios

scenarios("features/order_payment.feature")
