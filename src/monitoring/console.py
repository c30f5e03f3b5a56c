# src/monitoring/console.py
"""
Terminal status view.

A small `rich` view that subscribes to the monitoring EventBus and
renders what the agent is doing right now:

- State:
    - active state and last transition reason
    - current goal (last GOAL_POSTED line)

- Plan:
    - name, step count, succeeded / dropped
    - percent complete from PLAN_PROGRESS / PLAN_COMPLETED

- Recent lines:
    - the last few status / failure messages the agent said

Used by cli.simulate; works equally against a live bot.
"""

from __future__ import annotations

import time
from collections import deque
from typing import Any, Deque, Dict, Optional, Tuple

from rich.console import Console, Group
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .bus import EventBus
from .events import EventType, MonitoringEvent


FAILURE_EVENTS = {EventType.STEP_DROPPED, EventType.PLAN_STUCK, EventType.GOAL_UNREACHABLE}


class ConsoleStatusView:
    """
    Live status view bound to an EventBus.

    Event handling only updates `_state`; rendering happens on demand via
    `render()`, `print_once()` or `live()`.
    """

    def __init__(self, bus: EventBus, *, console: Optional[Console] = None, history: int = 8) -> None:
        self._bus = bus
        self._console = console if console is not None else Console()

        self._state: Dict[str, Any] = {
            "state": "idle",
            "reason": "",
            "tick": 0,
            "goal": "",
            "plan": None,
            "plan_total": 0,
            "succeeded": 0,
            "dropped": 0,
            "percent": None,
            "last_failure": None,
            "crafted": 0,
        }
        self._lines: Deque[Tuple[EventType, str]] = deque(maxlen=history)

        self._bus.subscribe(self._on_event)

    @property
    def state(self) -> Dict[str, Any]:
        return dict(self._state)

    @property
    def lines(self) -> list:
        return [message for _, message in self._lines]

    def close(self) -> None:
        self._bus.unsubscribe(self._on_event)

    # --------------------------------------------------------
    # Event handler
    # --------------------------------------------------------

    def _on_event(self, event: MonitoringEvent) -> None:
        et = event.event_type
        payload = event.payload

        if et == EventType.STATE_CHANGED:
            self._state["state"] = payload.get("new", self._state["state"])
            self._state["reason"] = payload.get("reason", "")
            self._state["tick"] = payload.get("tick", self._state["tick"])

        elif et == EventType.PLAN_CREATED:
            plan = payload.get("plan") or {}
            self._state["plan"] = plan.get("name")
            self._state["plan_total"] = plan.get("initial", 0)
            self._state["succeeded"] = 0
            self._state["dropped"] = 0
            self._state["percent"] = 0 if plan.get("initial") else 100

        elif et in (EventType.PLAN_PROGRESS, EventType.PLAN_COMPLETED, EventType.PLAN_STUCK):
            self._state["succeeded"] = payload.get("succeeded", self._state["succeeded"])
            self._state["dropped"] = payload.get("dropped", self._state["dropped"])
            total = payload.get("total") or self._state["plan_total"]
            if total:
                done = self._state["succeeded"] + self._state["dropped"]
                self._state["percent"] = int(100 * done / total)
            elif et == EventType.PLAN_COMPLETED:
                self._state["percent"] = 100

        elif et == EventType.GOAL_POSTED:
            self._state["goal"] = event.message

        elif et == EventType.GOAL_COMPLETED:
            self._state["goal"] = ""

        elif et == EventType.CRAFTED:
            self._state["crafted"] += int(payload.get("count", 0))

        if et in FAILURE_EVENTS:
            self._state["last_failure"] = event.message

        if et in (EventType.STATUS, EventType.GOAL_POSTED, EventType.GOAL_COMPLETED,
                  EventType.PLAN_PROGRESS, EventType.CRAFTED) or et in FAILURE_EVENTS:
            self._lines.append((et, event.message))

    # --------------------------------------------------------
    # Rendering
    # --------------------------------------------------------

    def _render_state_panel(self) -> Panel:
        txt = Text()
        txt.append("State: ", style="bold")
        txt.append(f"{self._state['state']}")
        if self._state["reason"]:
            txt.append(f"  ({self._state['reason']} @ tick {self._state['tick']})", style="dim")
        txt.append("\nGoal: ", style="bold")
        txt.append(self._state["goal"] or "<none>")
        return Panel(txt, title="Agent", border_style="cyan")

    def _render_plan_panel(self) -> Panel:
        table = Table.grid()
        table.add_column(justify="left")

        plan = self._state["plan"]
        if plan is None:
            table.add_row("[dim]No plan yet[/dim]")
        else:
            pct = self._state["percent"]
            table.add_row(f"[bold]Plan:[/bold] {plan}")
            table.add_row(f"[bold]Steps:[/bold] {self._state['plan_total']}")
            table.add_row(
                f"[bold]Done:[/bold] {self._state['succeeded']}  "
                f"[bold]Dropped:[/bold] {self._state['dropped']}  "
                f"[bold]Progress:[/bold] {pct if pct is not None else '-'}%"
            )
        if self._state["crafted"]:
            table.add_row(f"[bold]Items crafted:[/bold] {self._state['crafted']}")

        failure = self._state["last_failure"]
        if failure:
            table.add_row("")
            table.add_row(f"[bold red]Last failure:[/bold red] {failure}")
        return Panel(table, title="Plan", border_style="yellow")

    def _render_lines_panel(self) -> Panel:
        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column("message")
        if not self._lines:
            table.add_row("[dim]<quiet>[/dim]")
        for et, message in self._lines:
            style = "red" if et in FAILURE_EVENTS else ""
            table.add_row(Text(message, style=style))
        return Panel(table, title="Recent", border_style="magenta")

    def render(self) -> Group:
        return Group(self._render_state_panel(), self._render_plan_panel(), self._render_lines_panel())

    def _build_layout(self) -> Layout:
        layout = Layout()
        layout.split(
            Layout(name="top", size=4),
            Layout(name="middle", ratio=1),
        )
        layout["top"].update(self._render_state_panel())
        layout["middle"].split_row(
            Layout(name="plan"),
            Layout(name="recent"),
        )
        layout["plan"].update(self._render_plan_panel())
        layout["recent"].update(self._render_lines_panel())
        return layout

    def print_once(self) -> None:
        self._console.print(self.render())

    def live(self, refresh_per_second: float = 4.0) -> Live:
        """Live context; call `refresh(live)` after each tick."""
        return Live(self._build_layout(), console=self._console, refresh_per_second=refresh_per_second)

    def refresh(self, live: Live) -> None:
        live.update(self._build_layout())

    def follow(self, refresh_per_second: float = 4.0) -> None:
        """Block and redraw forever; run the agent in another thread."""
        delay = 1.0 / max(refresh_per_second, 0.1)
        with self.live(refresh_per_second) as live:
            while True:
                self.refresh(live)
                time.sleep(delay)
