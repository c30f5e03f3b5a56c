#tests/test_monitoring_event_bus.py
"""
Tests for monitoring.bus.EventBus

Covers:
- publish/subscribe in order
- unsubscribe (including unknown subscribers)
- command handlers
- a failing subscriber does not stop delivery
- concurrent publishers
"""

from __future__ import annotations

import threading
from typing import List

from monitoring.bus import EventBus
from monitoring.events import ControlCommand, ControlCommandType, EventType, MonitoringEvent


def make_event(n: int, msg: str = "msg") -> MonitoringEvent:
    return MonitoringEvent(
        ts=float(n),
        module="test",
        event_type=EventType.STATUS,
        message=msg,
        payload={"n": n},
    )


def test_subscribers_receive_events_in_publish_order():
    bus = EventBus()
    first: List[int] = []
    second: List[int] = []
    bus.subscribe(lambda e: first.append(e.payload["n"]))
    bus.subscribe(lambda e: second.append(e.payload["n"]))

    for n in range(5):
        bus.publish(make_event(n))

    assert first == [0, 1, 2, 3, 4]
    assert second == first
    assert bus.subscriber_count == 2


def test_unsubscribe_stops_delivery_and_tolerates_unknown():
    bus = EventBus()
    received: List[MonitoringEvent] = []
    bus.subscribe(received.append)

    bus.unsubscribe(received.append)
    bus.unsubscribe(lambda e: None)
    bus.publish(make_event(1))

    assert received == []


def test_failing_subscriber_is_skipped(caplog):
    bus = EventBus()
    received: List[MonitoringEvent] = []

    def broken(evt: MonitoringEvent) -> None:
        raise RuntimeError("boom")

    bus.subscribe(broken)
    bus.subscribe(received.append)

    bus.publish(make_event(1, "still delivered"))

    assert [e.message for e in received] == ["still delivered"]
    assert any("failed" in rec.getMessage() for rec in caplog.records)


def test_command_handlers_are_separate_from_subscribers():
    bus = EventBus()
    events: List[MonitoringEvent] = []
    commands: List[ControlCommand] = []
    bus.subscribe(events.append)
    bus.subscribe_commands(commands.append)

    bus.publish_command(ControlCommand.run_command("build wall", sender="alex"))

    assert events == []
    assert commands[0].cmd == ControlCommandType.RUN_COMMAND
    assert commands[0].args == {"text": "build wall", "sender": "alex"}

    bus.clear()
    bus.publish_command(ControlCommand.pause())
    assert len(commands) == 1


def test_subscriber_may_publish_from_callback():
    bus = EventBus()
    seen: List[str] = []

    def echo(evt: MonitoringEvent) -> None:
        seen.append(evt.message)
        if evt.message == "ping":
            bus.publish(make_event(2, "pong"))

    bus.subscribe(echo)
    bus.publish(make_event(1, "ping"))

    assert seen == ["ping", "pong"]


def test_concurrent_publishers_deliver_everything():
    bus = EventBus()
    count = 100
    received: List[MonitoringEvent] = []
    lock = threading.Lock()

    def subscriber(evt: MonitoringEvent) -> None:
        with lock:
            received.append(evt)

    bus.subscribe(subscriber)

    def publisher(start: int) -> None:
        for i in range(start, start + count):
            bus.publish(make_event(i))

    threads = [threading.Thread(target=publisher, args=(s,)) for s in (0, 1000, 2000)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(received) == 3 * count
