# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# queues.py
# -----------------------------------------------------------------------------
# Purpose:
#   Minimal frame-driven primitives: Env (fixed-step clock driving actors),
#   TimedTrigger (condition-gated countdown), VisitorQueue (the line at the
#   counter) and DepartureQueue (FIFO of patrons walking out).
#
# Design notes:
#   - Everything advances on Env's fixed dt; there is no event heap and no
#     threads. Actors are ticked in registration order.
#   - VisitorQueue is a plain list, front = index 0 = nearest the counter.
#     Chain-following looks up the predecessor by index.
#   - DepartureQueue only ever inspects its head.
#
# Usage:
#   from barsim.queues import Env, TimedTrigger, VisitorQueue, DepartureQueue
# -----------------------------------------------------------------------------

from __future__ import annotations
from collections import deque
from typing import Any, Callable, Deque, Iterator, List, Optional

class Env:
    """Simulation environment holding the clock and the ticked actors.

    Attributes
    ----------
    t : float
        Simulation time (seconds).
    dt : float
        Fixed frame length (seconds).
    actors : list
        Objects with a ``tick(dt, now)`` method, ticked in order every frame.
    """
    def __init__(self, dt: float = 0.05):
        if dt <= 0:
            raise ValueError("Frame length dt must be positive")
        self.t: float = 0.0
        self.dt = dt
        self.frames: int = 0
        self.actors: List[Any] = []

    def add(self, actor: Any):
        self.actors.append(actor)

    def step(self):
        for actor in self.actors:
            actor.tick(self.dt, self.t)
        self.t += self.dt
        self.frames += 1

    def run_until(self, T_end: float, stop: Optional[Callable[[], bool]] = None):
        while self.t < T_end:
            self.step()
            if stop is not None and stop():
                break

class TimedTrigger:
    """Countdown that fires an action once it has expired and a condition holds.

    The countdown never goes below zero: while the condition is false the
    trigger simply waits at zero. When it fires, the action's return value is
    the next interval.
    """
    def __init__(self, initial_delay: float, condition: Callable[[], bool], action: Callable[[], float]):
        self.remaining = max(0.0, float(initial_delay))
        self.condition = condition
        self.action = action
        self.fired: int = 0

    def tick(self, dt: float) -> bool:
        if self.remaining > 0.0:
            self.remaining = max(0.0, self.remaining - dt)
        if self.remaining > 0.0 or not self.condition():
            return False
        self.remaining = max(0.0, float(self.action()))
        self.fired += 1
        return True

class VisitorQueue:
    """Patrons in arrival order; removals never reorder the rest."""
    def __init__(self):
        self._items: List[Any] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def __contains__(self, item: Any) -> bool:
        return item in self._items

    def __getitem__(self, idx: int) -> Any:
        return self._items[idx]

    def append(self, item: Any):
        self._items.append(item)

    def front(self) -> Optional[Any]:
        return self._items[0] if self._items else None

    def ahead_of(self, idx: int) -> Optional[Any]:
        """The patron immediately closer to the counter, or None for the front."""
        return self._items[idx - 1] if idx > 0 else None

    def remove(self, item: Any) -> bool:
        try:
            self._items.remove(item)
        except ValueError:
            return False
        return True

class DepartureQueue:
    """FIFO of leaving patrons. Only the head may leave the scene."""
    def __init__(self):
        self._items: Deque[Any] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def enqueue(self, item: Any):
        self._items.append(item)

    def peek(self) -> Optional[Any]:
        return self._items[0] if self._items else None

    def drain(self, has_left: Callable[[Any], bool]) -> List[Any]:
        """Pop heads while has_left(head) holds; stop at the first that has not."""
        gone = []
        while self._items and has_left(self._items[0]):
            gone.append(self._items.popleft())
        return gone
