import pytest

from conftest import make_product, stock
from stockwatch.core.events import (
    STOCK_LEVEL_CHANGED,
    STOCK_UPDATED,
    EventBus,
    NotificationLog
)
from stockwatch.core.monitor import StockMonitor


def test_handlers_run_in_registration_order():
    bus = EventBus()
    calls = []
    bus.subscribe(STOCK_UPDATED, lambda event: calls.append("first"))
    bus.subscribe(STOCK_UPDATED, lambda event: calls.append("second"))

    assert bus.publish(STOCK_UPDATED, None) == 2
    assert calls == ["first", "second"]


def test_publish_without_listeners():
    assert EventBus().publish(STOCK_LEVEL_CHANGED, object()) == 0


def test_unknown_channel_is_rejected():
    with pytest.raises(ValueError):
        EventBus().subscribe("branchChanged", print)


def test_unsubscribe_is_idempotent():
    bus = EventBus()
    subscription = bus.subscribe(STOCK_UPDATED, print)

    assert subscription.active is True
    assert subscription.unsubscribe() is True
    assert subscription.unsubscribe() is False
    assert subscription.active is False
    assert bus.handler_count(STOCK_UPDATED) == 0


def test_handler_may_unsubscribe_during_dispatch():
    bus = EventBus()
    calls = []
    subscriptions = {}

    def once(event):
        calls.append("once")
        subscriptions["once"].unsubscribe()

    subscriptions["once"] = bus.subscribe(STOCK_UPDATED, once)
    bus.subscribe(STOCK_UPDATED, lambda event: calls.append("always"))

    bus.publish(STOCK_UPDATED, None)
    bus.publish(STOCK_UPDATED, None)

    assert calls == ["once", "always", "always"]


def test_clear_removes_all_handlers():
    bus = EventBus()
    bus.subscribe(STOCK_UPDATED, print)
    bus.subscribe(STOCK_LEVEL_CHANGED, print)
    bus.clear()
    assert bus.handler_count(STOCK_UPDATED) == 0
    assert bus.handler_count(STOCK_LEVEL_CHANGED) == 0


class TestNotificationLog:
    def test_keeps_newest_events(self):
        monitor = StockMonitor()
        log = NotificationLog(max_size=2)
        log.attach(monitor)

        for product_id in (1, 2, 3):
            monitor.ingest(make_product(product_id, stocks=[stock(0, 5)]))

        assert len(log) == 2
        assert [e.product_id for e in log.recent()] == [2, 3]
        assert [e.product_id for e in log.recent(1)] == [3]
        assert log.recent(0) == []

    def test_detach_and_reattach(self):
        first, second = StockMonitor(), StockMonitor()
        log = NotificationLog()
        log.attach(first)
        log.attach(second)

        first.ingest(make_product(1))
        second.ingest(make_product(2))
        assert [e.product_id for e in log.recent()] == [2]

        log.detach()
        second.ingest(make_product(3))
        assert len(log) == 1

    def test_clear(self):
        monitor = StockMonitor()
        log = NotificationLog()
        log.attach(monitor)
        monitor.ingest(make_product(1))
        log.clear()
        assert len(log) == 0
