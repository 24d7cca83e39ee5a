"""Unit tests for :mod:`codelens.events`."""

from __future__ import annotations

import gc
from dataclasses import dataclass

from codelens.events import DocumentUnloaded, Event, EventBus


@dataclass(slots=True)
class SampleEvent(Event):
    message: str


class _Subscriber:
    def __init__(self) -> None:
        self.received: list[SampleEvent] = []

    def on_event(self, event: SampleEvent) -> None:
        self.received.append(event)


class TestEventBus:
    def test_publish_reaches_subscribers_in_order(self) -> None:
        bus: EventBus[Event] = EventBus()
        order: list[str] = []
        bus.subscribe(SampleEvent, lambda event: order.append("first"))
        bus.subscribe(SampleEvent, lambda event: order.append("second"))

        bus.publish(SampleEvent(message="hi"))

        assert order == ["first", "second"]

    def test_publish_is_scoped_to_event_type(self) -> None:
        bus: EventBus[Event] = EventBus()
        received: list[Event] = []
        bus.subscribe(SampleEvent, received.append)

        bus.publish(DocumentUnloaded(document="doc"))

        assert received == []

    def test_unsubscribe_bound_method(self) -> None:
        bus: EventBus[Event] = EventBus()
        subscriber = _Subscriber()
        bus.subscribe(SampleEvent, subscriber.on_event)
        bus.unsubscribe(SampleEvent, subscriber.on_event)

        bus.publish(SampleEvent(message="ignored"))

        assert subscriber.received == []
        assert bus.handler_count(SampleEvent) == 0

    def test_unsubscribe_unknown_handler_is_ignored(self) -> None:
        bus: EventBus[Event] = EventBus()
        bus.unsubscribe(SampleEvent, lambda event: None)
        assert bus.handler_count() == 0

    def test_collected_subscriber_is_dropped(self) -> None:
        bus: EventBus[Event] = EventBus()
        subscriber = _Subscriber()
        bus.subscribe(SampleEvent, subscriber.on_event)
        del subscriber
        gc.collect()

        bus.publish(SampleEvent(message="x"))

        assert bus.handler_count(SampleEvent) == 0

    def test_failing_handler_does_not_stop_others(self) -> None:
        bus: EventBus[Event] = EventBus()
        received: list[str] = []

        def boom(event: SampleEvent) -> None:
            raise RuntimeError("boom")

        bus.subscribe(SampleEvent, boom)
        bus.subscribe(SampleEvent, lambda event: received.append(event.message))

        bus.publish(SampleEvent(message="still delivered"))

        assert received == ["still delivered"]

    def test_handler_may_unsubscribe_during_publish(self) -> None:
        bus: EventBus[Event] = EventBus()
        calls: list[str] = []

        def once(event: SampleEvent) -> None:
            calls.append("once")
            bus.unsubscribe(SampleEvent, once)

        bus.subscribe(SampleEvent, once)
        bus.subscribe(SampleEvent, lambda event: calls.append("always"))

        bus.publish(SampleEvent(message="a"))
        bus.publish(SampleEvent(message="b"))

        assert calls == ["once", "always", "always"]
