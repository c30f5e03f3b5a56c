# EventBus for monitoring events and control commands
"""
Event bus for agent monitoring.

Provides a minimal, thread-safe, in-process pub/sub mechanism:

- Subscribers receive MonitoringEvent objects.
- Command handlers receive ControlCommand objects.
- Used by:
    - StatusReporter (every state / executor status line)
    - ConsoleStatusView
    - JsonFileLogger
    - AgentController (control surface)
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, List

from .events import MonitoringEvent, ControlCommand


log = logging.getLogger(__name__)


# ============================================================
# Type aliases
# ============================================================

SubscriberFn = Callable[[MonitoringEvent], None]
CommandHandlerFn = Callable[[ControlCommand], None]


# ============================================================
# Event Bus
# ============================================================

class EventBus:
    """
    Simple in-process event bus for monitoring events and control commands.

    - Thread-safe: subscriber lists are protected by a Lock.
    - Each publish iterates over a snapshot of subscribers, so handlers
      may subscribe/unsubscribe or publish from inside a callback.
    - A failing subscriber is logged and skipped; it never stops delivery
      to the others.
    """

    def __init__(self) -> None:
        self._subscribers: List[SubscriberFn] = []
        self._cmd_handlers: List[CommandHandlerFn] = []
        # Single lock guarding both lists
        self._lock = Lock()

    # --------------------------------------------------------
    # Subscription API: Monitoring Events
    # --------------------------------------------------------

    def subscribe(self, fn: SubscriberFn) -> None:
        with self._lock:
            self._subscribers.append(fn)

    def unsubscribe(self, fn: SubscriberFn) -> None:
        """Safe to call even if `fn` is not present."""
        with self._lock:
            if fn in self._subscribers:
                self._subscribers.remove(fn)

    # --------------------------------------------------------
    # Subscription API: Control Commands
    # --------------------------------------------------------

    def subscribe_commands(self, fn: CommandHandlerFn) -> None:
        with self._lock:
            self._cmd_handlers.append(fn)

    def unsubscribe_commands(self, fn: CommandHandlerFn) -> None:
        """Safe to call even if `fn` is not present."""
        with self._lock:
            if fn in self._cmd_handlers:
                self._cmd_handlers.remove(fn)

    # --------------------------------------------------------
    # Publish API
    # --------------------------------------------------------

    def publish(self, event: MonitoringEvent) -> None:
        """Publish a MonitoringEvent to all subscribers."""
        with self._lock:
            subscribers = list(self._subscribers)

        for fn in subscribers:
            try:
                fn(event)
            except Exception:
                log.exception("EventBus subscriber %r failed on %s", fn, event.event_type.name)

    def publish_command(self, cmd: ControlCommand) -> None:
        """Publish a ControlCommand to all registered command handlers."""
        with self._lock:
            handlers = list(self._cmd_handlers)

        for fn in handlers:
            try:
                fn(cmd)
            except Exception:
                log.exception("EventBus command handler %r failed on %s", fn, cmd.cmd.name)

    # --------------------------------------------------------
    # Utility
    # --------------------------------------------------------

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def clear(self) -> None:
        """Clear all subscribers and handlers. Mostly useful for tests."""
        with self._lock:
            self._subscribers.clear()
            self._cmd_handlers.clear()
