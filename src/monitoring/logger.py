# JSON logger subscribing to EventBus
"""
Structured event logging.

Provides:
- JsonFileLogger: subscribes to an EventBus and appends MonitoringEvents as JSONL.
- log_event: convenience helper for publishing MonitoringEvents via the EventBus.

Usage:

    bus = EventBus()
    events = JsonFileLogger(Path("logs/agent/events.jsonl"), bus)

    log_event(
        bus=bus,
        module="states.build",
        event_type=EventType.STATUS,
        message="Building a wall",
        payload={"anchor": [3, 64, 0]},
    )
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Set

from .bus import EventBus
from .events import EventType, MonitoringEvent


log = logging.getLogger(__name__)


# ============================================================
# JSONL File Logger
# ============================================================

class JsonFileLogger:
    """
    JSON-lines logger for MonitoringEvent instances.

    - One JSON object per line, UTF-8, flushed per event.
    - Parent directory is created on demand.
    - `event_types` restricts which events are written (default: all).
    """

    def __init__(
        self,
        path: Path,
        bus: EventBus,
        *,
        event_types: Optional[Iterable[EventType]] = None,
    ) -> None:
        self._path = path
        self._bus = bus
        self._filter: Optional[Set[EventType]] = set(event_types) if event_types is not None else None
        path.parent.mkdir(parents=True, exist_ok=True)
        self._file = path.open("a", encoding="utf-8")
        bus.subscribe(self._on_event)

    @property
    def path(self) -> Path:
        return self._path

    def _on_event(self, event: MonitoringEvent) -> None:
        if self._filter is not None and event.event_type not in self._filter:
            return
        line = json.dumps(event.to_dict(), ensure_ascii=False, default=str)
        try:
            self._file.write(line + "\n")
            self._file.flush()
        except (OSError, ValueError):
            # Disk full or handle already closed: drop the line, keep running.
            log.warning("JsonFileLogger could not write to %s", self._path)

    def close(self) -> None:
        """Unsubscribe and close the file handle. Safe to call twice."""
        self._bus.unsubscribe(self._on_event)
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "JsonFileLogger":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ============================================================
# Convenience helper for emitting events
# ============================================================

def log_event(
    bus: EventBus,
    module: str,
    event_type: EventType,
    message: str,
    payload: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> MonitoringEvent:
    """
    Create and publish a MonitoringEvent; returns the published event.

    Parameters
    ----------
    bus:
        EventBus instance to publish the event to.
    module:
        Dotted name of the emitting module ("agent.controller", "states.craft").
    event_type:
        EventType member describing what kind of event this is.
    message:
        Short human-readable description.
    payload:
        Structured JSON-safe data attached to this event.
    correlation_id:
        Optional ID linking related events (per plan, per goal).
    """
    event = MonitoringEvent(
        ts=time.time(),
        module=module,
        event_type=event_type,
        message=message,
        payload=payload or {},
        correlation_id=correlation_id,
    )
    bus.publish(event)
    return event
