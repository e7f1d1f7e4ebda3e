"""Shared BDD fixtures and step definitions for the Billing domain."""

import pytest
from billing.errors import GatewayError
from billing.gateway.port import GatewayPaymentStatus
from billing.order.aggregation import OrderItemAggregator
from billing.order.order import Order
from billing.order.retry import RetryOrderPayment
from billing.order_item.order_item import OrderItem, OrderItemStatus
from billing.order_item.scheduling import ScheduleOrderItem
from billing.payment.webhook import reconciler
from billing.projections.payment_activity import PaymentActivity
from protean import current_domain
from pytest_bdd import given, parsers, then, when


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def run():
    """Outcome of the billing run: created orders or the raised error."""
    return {"orders": [], "exc": None}


def _order(run):
    return current_domain.repository_for(Order).get(run["orders"][0].id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a due order item of {amount:f} {currency} for owner "{owner_id}"'))
def _due_item(amount, currency, owner_id):
    current_domain.process(
        ScheduleOrderItem(
            owner_type="user",
            owner_id=owner_id,
            currency=currency,
            amount=amount,
            description=f"Charge {amount} {currency}",
        ),
        asynchronous=False,
    )


@given("the gateway is unavailable")
def _gateway_down(gateway):
    gateway.configure(should_succeed=False, failure_reason="Service unavailable")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the billing run executes")
def _billing_run(run):
    try:
        run["orders"] = OrderItemAggregator().run()
    except GatewayError as exc:
        run["exc"] = exc


@when(parsers.cfparse('the gateway reports the payment as "{status}"'))
def _gateway_status(gateway, run, status):
    gateway.set_status(_order(run).payment_id, GatewayPaymentStatus(status))


@when("the payment webhook is delivered")
def _deliver_webhook(run):
    reconciler.handle(_order(run).payment_id)


@when("the order payment is retried")
def _retry(run):
    current_domain.process(RetryOrderPayment(order_id=str(run["orders"][0].id)), asynchronous=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("{count:d} orders are created"))
def _orders_created(run, count):
    assert len(run["orders"]) == count


@then(parsers.cfparse('the {currency} order of owner "{owner_id}" totals {total:f}'))
def _order_total(run, currency, owner_id, total):
    (order,) = [o for o in run["orders"] if o.currency == currency and o.owner_id == owner_id]
    assert order.total == pytest.approx(total)


@then("every order item is processed")
def _items_processed():
    items = current_domain.repository_for(OrderItem)._dao.query.all().items
    assert items and all(item.status == OrderItemStatus.PROCESSED.value for item in items)


@then("every order item is pending")
def _items_pending():
    items = current_domain.repository_for(OrderItem)._dao.query.all().items
    assert items and all(item.status == OrderItemStatus.PENDING.value for item in items)


@then(parsers.cfparse('the order payment status is "{status}"'))
def _payment_status(run, status):
    assert _order(run).payment_status == status


@then(parsers.cfparse("the order has {count:d} payment attempts"))
def _payment_attempts(run, count):
    assert _order(run).payment_attempts == count


@then(parsers.re(r"(?P<count>\d+) paid payments? (is|are) recorded"), converters={"count": int})
def _paid_recorded(count):
    entries = current_domain.repository_for(PaymentActivity)._dao.query.filter(kind="Paid").all().items
    assert len(entries) == count


@then("the billing run fails with a gateway error")
def _run_failed(run):
    assert isinstance(run["exc"], GatewayError)


@then("no orders exist")
def _no_orders():
    assert current_domain.repository_for(Order)._dao.query.all().items == []
