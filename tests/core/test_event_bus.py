"""
Event Bus Tests

To run these tests:
    pytest tests/core/test_event_bus.py -v
"""

import pytest

from core.event_bus import EventBus


@pytest.mark.unit
class TestEventBus:

    def test_publish_reaches_subscribers_in_order(self):
        bus = EventBus()
        calls = []
        bus.subscribe("evt", lambda data: calls.append(("first", data)))
        bus.subscribe("evt", lambda data: calls.append(("second", data)))

        delivered = bus.publish("evt", 42)

        assert delivered == 2
        assert calls == [("first", 42), ("second", 42)]

    def test_publish_without_subscribers(self):
        assert EventBus().publish("nobody") == 0

    def test_unsubscribe_function(self):
        bus = EventBus()
        calls = []
        unsubscribe = bus.subscribe("evt", calls.append)

        unsubscribe()
        bus.publish("evt", 1)

        assert calls == []
        assert bus.subscriber_count("evt") == 0

    def test_unsubscribe_unknown_callback(self):
        assert EventBus().unsubscribe("evt", print) is False

    def test_failing_subscriber_does_not_block_others(self):
        bus = EventBus()
        calls = []

        def broken(data):
            raise RuntimeError("boom")

        bus.subscribe("evt", broken)
        bus.subscribe("evt", calls.append)

        assert bus.publish("evt", "x") == 1
        assert calls == ["x"]

    def test_subscriber_may_unsubscribe_during_publish(self):
        bus = EventBus()
        calls = []
        holder = {}

        def once(data):
            calls.append(data)
            holder["unsubscribe"]()

        holder["unsubscribe"] = bus.subscribe("evt", once)
        bus.publish("evt", 1)
        bus.publish("evt", 2)

        assert calls == [1]

    def test_clear(self):
        bus = EventBus()
        bus.subscribe("a", print)
        bus.subscribe("b", print)
        bus.clear()
        assert bus.subscriber_count("a") == 0
        assert bus.subscriber_count("b") == 0
