# WorldAgent interface definition
# src/world/interface.py

from __future__ import annotations

from concurrent.futures import Future
from typing import List, Optional, Protocol

from .types import ActionResult, BlockInfo, EntityInfo, InventoryItem, Position, Vitals


class WorldAgent(Protocol):
    """Abstract interface for the agent body inside the block world.

    This is the game-client layer the orchestration core drives:
    - queries are synchronous and side-effect free
    - actions are fallible and resolve after an unknown number of ticks,
      so they return a Future that completes with an ActionResult

    Pathfinding, digging physics and packet handling live behind this
    interface. Callers never block on the returned futures; they poll them
    once per tick.
    """

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def position(self) -> Position:
        """Current (floored) agent position."""
        ...

    def query_block(self, pos: Position) -> Optional[BlockInfo]:
        """Return the block at `pos`, or None when the chunk is not loaded."""
        ...

    def query_inventory(self) -> List[InventoryItem]:
        """Return every non-empty inventory slot."""
        ...

    def find_nearest_of_kind(
        self, kind: str, max_distance: float, count: int = 1
    ) -> List[Position]:
        """Positions of the nearest blocks of `kind`, closest first. May be empty."""
        ...

    def nearby_entities(self, radius: float) -> List[EntityInfo]:
        """Entities within `radius` of the agent."""
        ...

    def vitals(self) -> Vitals:
        ...

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def move_near(self, pos: Position, tolerance: float) -> "Future[ActionResult]":
        """Resolves on arrival within `tolerance`; fails on no path or timeout."""
        ...

    def break_block(self, pos: Position) -> "Future[ActionResult]":
        ...

    def place_block(
        self, ref_pos: Position, face: Position, item: str
    ) -> "Future[ActionResult]":
        """Place `item` against the `face` of the block at `ref_pos`."""
        ...

    def craft(
        self, recipe_id: str, count: int, station_pos: Optional[Position] = None
    ) -> "Future[ActionResult]":
        """Run `recipe_id` `count` times, optionally at a placed station."""
        ...

    def attack(self, entity_id: str) -> "Future[ActionResult]":
        ...

    def use_item(self, item: str) -> "Future[ActionResult]":
        ...

    def trade(self, entity_id: str, want: str, count: int) -> "Future[ActionResult]":
        ...

    def chat(self, message: str) -> None:
        """Send a human-readable status line to the game chat."""
        ...
