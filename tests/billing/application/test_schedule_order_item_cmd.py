"""Application tests for scheduling order items."""

from datetime import UTC, datetime

from billing.order_item.order_item import OrderItem, OrderItemStatus
from billing.order_item.scheduling import ScheduleOrderItem
from protean import current_domain


def _schedule(**overrides):
    defaults = {
        "owner_type": "user",
        "owner_id": "42",
        "currency": "EUR",
        "amount": 9.99,
        "description": "Seat license",
    }
    defaults.update(overrides)
    return current_domain.process(ScheduleOrderItem(**defaults), asynchronous=False)


class TestScheduleOrderItem:
    def test_persists_pending_item(self):
        item_id = _schedule()
        item = current_domain.repository_for(OrderItem).get(item_id)
        assert item.status == OrderItemStatus.PENDING.value
        assert item.amount == 9.99

    def test_persists_process_at(self):
        process_at = datetime(2030, 6, 1, tzinfo=UTC)
        item_id = _schedule(process_at=process_at)
        item = current_domain.repository_for(OrderItem).get(item_id)
        assert item.process_at == process_at

    def test_future_item_is_not_due(self):
        _schedule(process_at=datetime(2030, 6, 1, tzinfo=UTC))
        due = current_domain.repository_for(OrderItem).should_process(as_of=datetime(2030, 5, 31, tzinfo=UTC))
        assert due == []

    def test_should_process_respects_limit(self):
        for _ in range(3):
            _schedule()
        due = current_domain.repository_for(OrderItem).should_process(limit=2)
        assert len(due) == 2

    def test_future_items_do_not_crowd_out_due_ones(self):
        _schedule(process_at=datetime(2031, 1, 1, tzinfo=UTC))
        _schedule(process_at=datetime(2031, 2, 1, tzinfo=UTC))
        due_id = _schedule(process_at=datetime(2026, 1, 1, tzinfo=UTC))

        due = current_domain.repository_for(OrderItem).should_process(
            as_of=datetime(2026, 6, 1, tzinfo=UTC), limit=1
        )

        assert [str(item.id) for item in due] == [str(due_id)]

    def test_should_process_accepts_naive_reference_time(self):
        _schedule(process_at=datetime(2026, 1, 1, tzinfo=UTC))
        due = current_domain.repository_for(OrderItem).should_process(as_of=datetime(2026, 1, 2))
        assert len(due) == 1
