# src/monitoring/status.py
"""
Human-readable status reporting.

StatusReporter is the one place the agent "talks":

- note():    log at INFO + publish an event (no chat)
- say():     note() + one chat line
- failure(): log at WARNING + publish an event + one chat line

Terminal failures (step dropped, plan stuck, goal unreachable) go through
failure(); transient retries are logged at DEBUG by their callers and
never reach this class.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .bus import EventBus
from .events import EventType
from .logger import log_event


log = logging.getLogger(__name__)

ChatFn = Callable[[str], None]


class StatusReporter:
    def __init__(
        self,
        bus: Optional[EventBus] = None,
        *,
        chat: Optional[ChatFn] = None,
        module: str = "agent",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._bus = bus
        self._chat = chat
        self._module = module
        self._log = logger or log

    def child(self, module: str) -> "StatusReporter":
        """Same sinks, different source module name."""
        return StatusReporter(
            self._bus,
            chat=self._chat,
            module=module,
            logger=logging.getLogger(module),
        )

    @property
    def module(self) -> str:
        return self._module

    # ------------------------------------------------------------------
    # Reporting API
    # ------------------------------------------------------------------

    def note(self, event_type: EventType, message: str, **payload: Any) -> None:
        self._log.info("%s", message)
        self._publish(event_type, message, payload)

    def say(self, event_type: EventType, message: str, **payload: Any) -> None:
        self.note(event_type, message, **payload)
        self._send_chat(message)

    def failure(self, event_type: EventType, message: str, **payload: Any) -> None:
        self._log.warning("%s", message)
        self._publish(event_type, message, payload)
        self._send_chat(message)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _publish(self, event_type: EventType, message: str, payload: dict) -> None:
        if self._bus is None:
            return
        log_event(
            bus=self._bus,
            module=self._module,
            event_type=event_type,
            message=message,
            payload=payload,
            correlation_id=payload.get("plan") if isinstance(payload.get("plan"), str) else None,
        )

    def _send_chat(self, message: str) -> None:
        if self._chat is not None:
            self._chat(message)
