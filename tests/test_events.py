from datetime import datetime

from fintrack.events import (
    Event, EventBus,
    TRANSACTIONS_UPDATED, SAVINGS_GOALS_UPDATED, STORAGE_WARNING,
)


def test_event_creation():
    event = Event(
        name=TRANSACTIONS_UPDATED,
        ts=datetime.now().isoformat(),
        payload={"transaction": "t1"}
    )
    assert event.name == "transactionsUpdated"
    assert event.payload["transaction"] == "t1"


def test_event_bus_subscribe_and_publish():
    bus = EventBus()
    results_collected = []

    def handler(event: Event, payload: dict) -> dict:
        results_collected.append(payload)
        return {"processed": True}

    bus.subscribe(TRANSACTIONS_UPDATED, handler)
    results = bus.publish(TRANSACTIONS_UPDATED, {"amount": 50})

    assert results == [{"processed": True}]
    assert results_collected == [{"amount": 50}]


def test_publish_without_subscribers_returns_empty():
    assert EventBus().publish(SAVINGS_GOALS_UPDATED, {}) == []


def test_handlers_run_in_subscription_order():
    bus = EventBus()
    order = []
    bus.subscribe(SAVINGS_GOALS_UPDATED, lambda e, p: order.append(1))
    bus.subscribe(SAVINGS_GOALS_UPDATED, lambda e, p: order.append(2))
    bus.publish(SAVINGS_GOALS_UPDATED, {})
    assert order == [1, 2]


def test_unsubscribe_and_returned_cancel():
    bus = EventBus()
    calls = []

    def handler(event: Event, payload: dict) -> None:
        calls.append(payload)

    cancel = bus.subscribe(TRANSACTIONS_UPDATED, handler)
    bus.publish(TRANSACTIONS_UPDATED, {"n": 1})
    cancel()
    bus.publish(TRANSACTIONS_UPDATED, {"n": 2})
    assert calls == [{"n": 1}]
    assert bus.publish(TRANSACTIONS_UPDATED, {"n": 3}) == []
    bus.unsubscribe(TRANSACTIONS_UPDATED, handler)


def test_different_event_types_are_isolated():
    bus = EventBus()
    seen = []
    for name in (TRANSACTIONS_UPDATED, SAVINGS_GOALS_UPDATED, STORAGE_WARNING):
        bus.subscribe(name, lambda e, p: seen.append(e.name))

    bus.publish(SAVINGS_GOALS_UPDATED, {})
    assert seen == [SAVINGS_GOALS_UPDATED]
