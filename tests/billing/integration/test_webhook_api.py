"""Integration tests for the first payment webhook endpoint."""

import httpx
import pytest
from billing.api import create_app
from billing.gateway import set_gateway
from billing.gateway.fake_adapter import FakeGateway
from billing.gateway.mollie_adapter import MollieGateway
from billing.order.aggregation import OrderItemAggregator
from billing.order.order import Order, OrderPaymentStatus
from billing.order_item.scheduling import ScheduleOrderItem
from fastapi.testclient import TestClient
from protean import current_domain

WEBHOOK = "/webhooks/mollie/first-payment"


@pytest.fixture()
def client(cashier):
    return TestClient(create_app(cashier))


def _billed_order():
    current_domain.process(
        ScheduleOrderItem(
            owner_type="user",
            owner_id="42",
            currency="EUR",
            amount=19.0,
            description="Starter plan",
        ),
        asynchronous=False,
    )
    (order,) = OrderItemAggregator().run()
    return order


def _status(order):
    return current_domain.repository_for(Order).get(order.id).payment_status


class TestFirstPaymentWebhook:
    def test_paid_payment(self, client, gateway):
        order = _billed_order()
        gateway.mark_paid(order.payment_id)

        response = client.post(WEBHOOK, data={"id": order.payment_id})

        assert response.status_code == 200
        assert response.content == b""
        assert _status(order) == OrderPaymentStatus.PAID.value

    def test_repeated_delivery_answers_200(self, client, gateway):
        order = _billed_order()
        gateway.mark_paid(order.payment_id)

        first = client.post(WEBHOOK, data={"id": order.payment_id})
        second = client.post(WEBHOOK, data={"id": order.payment_id})

        assert first.status_code == second.status_code == 200
        assert _status(order) == OrderPaymentStatus.PAID.value

    def test_failed_payment(self, client, gateway):
        order = _billed_order()
        gateway.mark_failed(order.payment_id)

        response = client.post(WEBHOOK, data={"id": order.payment_id})

        assert response.status_code == 200
        assert _status(order) == OrderPaymentStatus.FAILED.value

    def test_unknown_payment_answers_200(self, client, gateway):
        response = client.post(WEBHOOK, data={"id": "tr_unknown"})
        assert response.status_code == 200
        assert response.content == b""

    def test_gateway_error_answers_200(self, client, gateway):
        order = _billed_order()
        gateway.configure(should_succeed=False)

        response = client.post(WEBHOOK, data={"id": order.payment_id})

        assert response.status_code == 200
        assert _status(order) == OrderPaymentStatus.UNPAID.value

    def test_gateway_error_surfaces_in_debug(self, client, gateway, cashier):
        cashier.debug = True
        order = _billed_order()
        gateway.configure(should_succeed=False)

        response = client.post(WEBHOOK, data={"id": order.payment_id})

        assert response.status_code == 502

    def test_path_follows_configured_url(self, cashier, gateway):
        cashier.first_payment_webhook_url = "https://billing.example.com/hooks/first"
        client = TestClient(create_app(cashier))

        assert client.post("/hooks/first", data={"id": "tr_unknown"}).status_code == 200
        assert client.post(WEBHOOK, data={"id": "tr_unknown"}).status_code == 404


class _BrokenGateway(FakeGateway):
    def get_payment(self, payment_id):
        raise RuntimeError("lookup exploded")


def _mollie_answering(body):
    return MollieGateway(
        api_key="test_abc",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text=body)),
    )


class TestWebhookAcknowledgement:
    def test_missing_id_answers_200(self, client, gateway):
        response = client.post(WEBHOOK, data={})

        assert response.status_code == 200
        assert response.content == b""
        assert gateway.calls == []

    def test_overlong_id_answers_200(self, client, gateway):
        response = client.post(WEBHOOK, data={"id": "tr_" + "x" * 300})

        assert response.status_code == 200
        assert response.content == b""

    def test_unreadable_gateway_body_answers_200(self, client):
        set_gateway(_mollie_answering("<html>maintenance</html>"))

        response = client.post(WEBHOOK, data={"id": "tr_WDqYK6vllg"})

        assert response.status_code == 200

    def test_unreadable_gateway_body_is_502_in_debug(self, client, cashier):
        cashier.debug = True
        set_gateway(_mollie_answering("<html>maintenance</html>"))

        response = client.post(WEBHOOK, data={"id": "tr_WDqYK6vllg"})

        assert response.status_code == 502

    def test_unexpected_error_answers_200(self, client):
        set_gateway(_BrokenGateway())
        order = _billed_order()

        response = client.post(WEBHOOK, data={"id": order.payment_id})

        assert response.status_code == 200
        assert _status(order) == OrderPaymentStatus.UNPAID.value
