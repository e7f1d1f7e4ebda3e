"""Application tests for order assembly."""

import json
from decimal import Decimal

import pytest
from billing.errors import GatewayError, InvariantViolation, MixedOwnerOrCurrency
from billing.order.assembly import AssembleOrder, OrderAssembler, submit_order
from billing.order.order import Order
from billing.order_item.order_item import OrderItem, OrderItemStatus
from billing.order_item.scheduling import ScheduleOrderItem
from protean import current_domain


def _schedule(owner_id="1", currency="EUR", amount=10.0):
    return current_domain.process(
        ScheduleOrderItem(
            owner_type="user",
            owner_id=owner_id,
            currency=currency,
            amount=amount,
            description="Usage",
        ),
        asynchronous=False,
    )


def _orders():
    return current_domain.repository_for(Order)._dao.query.all().items


def _item(item_id):
    return current_domain.repository_for(OrderItem).get(item_id)


class TestAssembleOrder:
    def test_persists_order_and_claims_items(self):
        item_ids = [_schedule(amount=4.0), _schedule(amount=6.0)]

        order_id = submit_order(item_ids)

        order = current_domain.repository_for(Order).get(order_id)
        assert order.total == pytest.approx(10.0)
        assert len(order.lines) == 2
        for item_id in item_ids:
            item = _item(item_id)
            assert item.status == OrderItemStatus.PROCESSED.value
            assert str(item.order_id) == order_id

    def test_payment_carries_order_metadata(self, gateway):
        order_id = submit_order([_schedule(amount=12.5)])

        order = current_domain.repository_for(Order).get(order_id)
        payment = gateway.payments[order.payment_id]
        assert payment.amount == Decimal("12.50")
        assert payment.currency == "EUR"
        assert payment.metadata == {
            "order_id": order_id,
            "order_number": order.number,
            "owner_type": "user",
            "owner_id": "1",
        }
        assert gateway.calls[0]["description"] == f"Order {order.number}"

    def test_command_takes_json_item_ids(self):
        item_id = _schedule()
        order_id = current_domain.process(AssembleOrder(order_item_ids=json.dumps([item_id])), asynchronous=False)
        assert current_domain.repository_for(Order).get(order_id).payment_attempts == 1

    def test_processed_items_rejected(self):
        item_id = _schedule()
        submit_order([item_id])

        with pytest.raises(InvariantViolation):
            submit_order([item_id])
        assert len(_orders()) == 1

    def test_mixed_items_rejected_before_payment(self, gateway):
        item_ids = [_schedule(owner_id="1"), _schedule(owner_id="2")]

        with pytest.raises(MixedOwnerOrCurrency):
            submit_order(item_ids)

        assert gateway.calls == []
        assert _orders() == []

    def test_gateway_failure_persists_nothing(self, gateway):
        item_ids = [_schedule(), _schedule()]
        gateway.configure(should_succeed=False, failure_reason="Connection timed out")

        with pytest.raises(GatewayError, match="Connection timed out"):
            submit_order(item_ids)

        assert _orders() == []
        for item_id in item_ids:
            item = _item(item_id)
            assert item.status == OrderItemStatus.PENDING.value
            assert item.order_id is None


class TestOrderAssembler:
    def test_empty_items_rejected(self):
        with pytest.raises(InvariantViolation):
            OrderAssembler().create_from_items([])

    def test_create_from_items_does_not_persist(self, gateway):
        item = _item(_schedule())

        order = OrderAssembler().create_from_items([item])

        assert not item.is_pending()
        assert str(item.order_id) == str(order.id)
        assert _orders() == []
        assert gateway.calls == []

    def test_process_payment_attaches_payment(self, gateway):
        assembler = OrderAssembler()
        order = assembler.create_from_items([_item(_schedule())])

        assembler.process_payment(order)

        assert order.payment_id in gateway.payments

    def test_process_payment_refuses_active_payment(self):
        assembler = OrderAssembler()
        order = assembler.process_payment(assembler.create_from_items([_item(_schedule())]))

        with pytest.raises(InvariantViolation):
            assembler.process_payment(order)

    def test_uses_injected_collaborators(self, cashier):
        from billing.gateway.fake_adapter import FakeGateway

        own_gateway = FakeGateway()
        assembler = OrderAssembler(cashier=cashier, gateway=own_gateway)
        assembler.process_payment(assembler.create_from_items([_item(_schedule())]))

        assert len(own_gateway.calls) == 1
