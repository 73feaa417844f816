# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# patron.py
# -----------------------------------------------------------------------------
# Purpose:
#   Characters walking around the bar: Patron (orders, waits, is served,
#   pays, leaves) and Sponsor (walks up, offers a contract, leaves).
#
# Design notes:
#   - Movement and lifecycle are two separate one-hot enums. Motion is what
#     the renderer animates (IDLE/MOVING); PatronState is the order lifecycle
#     QUEUED -> WAITING -> SERVED|EXHAUSTED -> LEAVING.
#   - Lifecycle guards raise InvalidStateError: they catch coordinator bugs,
#     they are not user input validation.
#   - A ContractOffer resolves at most once; later resolutions are ignored.
#
# Usage:
#   from barsim.patron import Patron, Sponsor, Motion, PatronState
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
import random
from enum import Enum
from typing import Callable, Optional
from .entities import Order, Recipe, Scorer, Vec2, distance, move_towards
from .errors import InvalidStateError
from .policies import BASE_PATIENCE, patience_budget, tip
from .scoring import LOW, Mood, count_rule, mood

logger = logging.getLogger("Patron")

class Motion(Enum):
    IDLE = "Idle"
    MOVING = "Moving"

class PatronState(Enum):
    QUEUED = "Queued"
    WAITING = "Waiting"
    SERVED = "Served"
    EXHAUSTED = "Exhausted"
    LEAVING = "Leaving"

class Character:
    """Something that walks toward a destination at a fixed speed."""
    def __init__(self, key: str, position: Vec2, width: float = 0.5, speed: float = 4.0):
        self.key = key
        self.position = position
        self.width = width          # half-width; queue spacing is measured from it
        self.speed = speed
        self.motion = Motion.IDLE
        self.destination: Optional[Vec2] = None
        self.min_distance = 0.0

    def _normalize(self, dst: Vec2, offset: float) -> Vec2:
        # characters only walk horizontally; keep our own height
        return Vec2(dst.x + offset, self.position.y)

    def is_near(self, dst: Vec2, offset: float, min_distance: float) -> bool:
        return distance(self.position, self._normalize(dst, offset)) <= min_distance

    def move_to(self, dst: Vec2, offset: float, min_distance: float):
        target = self._normalize(dst, offset)
        if target == self.destination or self.is_near(dst, offset, min_distance):
            return
        self.destination = target
        self.min_distance = min_distance
        self.motion = Motion.MOVING

    def step_motion(self, dt: float):
        if self.motion is not Motion.MOVING or self.destination is None:
            return
        if distance(self.position, self.destination) > self.min_distance:
            self.position = move_towards(self.position, self.destination, self.speed * dt)
            return
        self.motion = Motion.IDLE
        self.destination = None
        self.min_distance = 0.0

    def step(self, dt: float):
        self.step_motion(dt)

class Patron(Character):
    def __init__(self, key: str, position: Vec2,
                 order_builder: Callable[[], Order],
                 scorer: Scorer = count_rule,
                 width: float = 0.5, speed: float = 4.0,
                 base_patience: float = BASE_PATIENCE):
        super().__init__(key, position, width=width, speed=speed)
        self.order_builder = order_builder
        self.scorer = scorer
        self.base_patience = base_patience
        self.state = PatronState.QUEUED
        self.order: Optional[Order] = None
        self.satisfaction = 0
        self.served_count = 0
        self.patience = 0.0
        self.waited = 0.0
        self.paid = 0

    def __repr__(self) -> str:
        return f"Patron({self.key}, {self.state.value}, x={self.position.x:.1f})"

    @property
    def has_order(self) -> bool:
        return self.order is not None

    @property
    def is_waiting(self) -> bool:
        return self.state is PatronState.WAITING

    @property
    def is_exhausted(self) -> bool:
        return self.state is PatronState.EXHAUSTED

    @property
    def is_leaving(self) -> bool:
        return self.state is PatronState.LEAVING

    @property
    def patience_left(self) -> float:
        if not self.is_waiting:
            return 0.0
        return max(0.0, self.patience - self.waited)

    @property
    def mood(self) -> Mood:
        """Waiting patrons show their remaining patience; others their satisfaction."""
        if self.is_waiting and self.patience > 0:
            return mood(100.0 - self.waited / self.patience * 100.0)
        return mood(self.satisfaction)

    def ask_order(self) -> Order:
        if self.order is not None:
            raise InvalidStateError(f"{self.key} has already ordered")
        self.order = self.order_builder()
        logger.debug(f"{self.key} orders {[str(r) for r in self.order.recipes]}")
        return self.order

    def begin_wait(self, difficulty: float):
        if self.state is PatronState.WAITING:
            raise InvalidStateError(f"{self.key} is already waiting")
        if self.state is not PatronState.QUEUED:
            raise InvalidStateError(f"{self.key} cannot start waiting while {self.state.value}")
        self.patience = patience_budget(difficulty, self.base_patience)
        self.waited = 0.0
        self.state = PatronState.WAITING

    def serve(self, actual: Recipe) -> int:
        if self.state is not PatronState.WAITING:
            raise InvalidStateError(f"{self.key} is not waiting to be served")
        recipe, s = self.order.match(actual, self.scorer)
        self.served_count += 1
        self.satisfaction = self.order.satisfaction
        logger.debug(f"{self.key} served {actual} for {recipe.key}: score {s}")
        if self.served_count >= len(self.order.recipes):
            self.state = PatronState.SERVED
        return self.satisfaction

    def is_satisfied(self) -> bool:
        return self.satisfaction > LOW

    def pay(self, rng: random.Random) -> int:
        if not self.is_satisfied():
            return 0
        self.paid = self.order.price + tip(self.satisfaction, rng)
        return self.paid

    def leave_to(self, dst: Vec2):
        self.state = PatronState.LEAVING
        self.move_to(dst, 0.0, 0.0)

    def step_wait(self, dt: float):
        if self.state is not PatronState.WAITING:
            return
        self.waited += dt
        if self.waited < self.patience:
            return
        self.state = PatronState.EXHAUSTED
        logger.info(f"{self.key} ran out of patience after {self.waited:.1f}s")

    def step(self, dt: float):
        self.step_wait(dt)
        self.step_motion(dt)

class ContractDecision(Enum):
    ACCEPTED = "accepted"
    REFUSED = "refused"

class ContractOffer:
    """A sponsor's offer: the first of accept / refuse / timeout wins."""
    def __init__(self, window: float):
        self.window = window
        self.remaining = window
        self.decision: Optional[ContractDecision] = None

    @property
    def resolved(self) -> bool:
        return self.decision is not None

    def resolve(self, decision: ContractDecision) -> bool:
        if self.decision is not None:
            return False
        self.decision = decision
        return True

    def expire(self, dt: float) -> bool:
        """Count the window down; True once it has run out."""
        self.remaining = max(0.0, self.remaining - dt)
        return self.remaining <= 0.0

class SponsorPhase(Enum):
    APPROACHING = "Approaching"
    OFFERING = "Offering"
    LEAVING = "Leaving"

class Sponsor(Character):
    def __init__(self, key: str, position: Vec2, width: float = 0.5, speed: float = 4.0,
                 offer_window: float = 5.0):
        super().__init__(key, position, width=width, speed=speed)
        self.phase = SponsorPhase.APPROACHING
        self.offer = ContractOffer(offer_window)

    def __repr__(self) -> str:
        return f"Sponsor({self.key}, {self.phase.value})"

    @property
    def is_leaving(self) -> bool:
        return self.phase is SponsorPhase.LEAVING

    def ask_contract(self):
        if self.phase is not SponsorPhase.APPROACHING:
            raise InvalidStateError(f"{self.key} cannot offer a contract while {self.phase.value}")
        self.phase = SponsorPhase.OFFERING
        logger.info(f"{self.key} offers a contract ({self.offer.window:.0f}s to answer)")

    def leave_to(self, dst: Vec2):
        self.phase = SponsorPhase.LEAVING
        self.move_to(dst, 0.0, 0.0)
