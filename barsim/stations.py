# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# stations.py
# -----------------------------------------------------------------------------
# Purpose:
#   Simulated staff standing in for the player: the Bartender mixes whatever
#   the active vessel's owner ordered and slides it down the counter, and the
#   SponsorDesk answers sponsor contract offers.
#
# Design notes:
#   - Both are actors ticked by Env before the coordinator, so a delivery made
#     this frame is seen by the coordinator in the same frame.
#   - The Bartender watches coordinator.active_vessel. If the vessel changes
#     or disappears (patron left, ran out of patience) the job is dropped.
#   - Sloppiness is configurable: a per-unit chance of grabbing the wrong
#     bottle and a per-pour chance of tipping the vessel (which drains it).
#
# Usage:
#   bartender = make_bartender(cfg, coordinator, rng)
#   desk = make_sponsor_desk(cfg, coordinator, rng)
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
import random
from typing import Dict, List, Optional, Tuple
from .entities import Consumable, Recipe
from .patron import SponsorPhase

logger = logging.getLogger("Bartender")
desk_logger = logging.getLogger("SponsorDesk")

UPRIGHT_ANGLE = 0.0
SPILL_ANGLE = 135.0

def pour_plan(recipe: Recipe) -> List[Consumable]:
    """One entry per unit to pour, in recipe order."""
    plan: List[Consumable] = []
    for unit, n in recipe.units:
        plan.extend([unit] * n)
    return plan

class Bartender:
    def __init__(self, coordinator, rng: random.Random, pour_interval: float = 0.4,
                 mistake_rate: float = 0.05, spill_rate: float = 0.02, slide_seconds: float = 0.5):
        self.coordinator = coordinator
        self.rng = rng
        self.pour_interval = pour_interval
        self.mistake_rate = mistake_rate
        self.spill_rate = spill_rate
        self.slide_seconds = slide_seconds
        self.vessel = None
        self.patron = None
        self.plan: List[Consumable] = []
        self.timer = 0.0
        self.angle = UPRIGHT_ANGLE
        self.drinks_mixed = 0
        self.mistakes = 0
        self.spills = 0
        self.abandoned = 0

    @property
    def busy(self) -> bool:
        return self.vessel is not None

    def _start(self, vessel, patron):
        target = patron.order.next_recipe()
        self.vessel = vessel
        self.patron = patron
        self.plan = pour_plan(target)
        self.timer = self.pour_interval
        logger.debug(f"Mixing {target} for {patron.key}")

    def _drop(self):
        self.vessel = None
        self.patron = None
        self.plan = []
        self.angle = UPRIGHT_ANGLE

    def _grab(self, unit: Consumable) -> Consumable:
        if self.rng.random() >= self.mistake_rate:
            return unit
        self.mistakes += 1
        others = [u for u in Consumable if u is not unit]
        return others[self.rng.randrange(len(others))]

    def tick(self, dt: float, now: float):
        vessel = self.coordinator.active_vessel
        owner = self.coordinator.vessel_owner
        if self.vessel is not None and (vessel is not self.vessel or owner is not self.patron):
            logger.debug(f"Abandoning drink for {self.patron.key}")
            self.abandoned += 1
            self._drop()
        if vessel is None or owner is None or not owner.is_waiting:
            return
        if self.vessel is None:
            self._start(vessel, owner)

        self.vessel.tick(self.angle)
        self.angle = UPRIGHT_ANGLE
        self.timer -= dt
        if self.timer > 0.0:
            return

        if self.plan:
            self.vessel.pour(self._grab(self.plan.pop(0)))
            if self.rng.random() < self.spill_rate:
                self.spills += 1
                self.angle = SPILL_ANGLE
                logger.debug("Tipped the vessel over")
            self.timer = self.pour_interval if self.plan else self.slide_seconds
            return

        # slide finished: the vessel reaches the patron
        vessel, patron = self.vessel, self.patron
        self._drop()
        self.drinks_mixed += 1
        self.coordinator.receive_order(patron, vessel)

class SponsorDesk:
    """Answers contract offers after a reaction delay, or ignores them."""
    def __init__(self, coordinator, rng: random.Random, answer_rate: float = 0.8,
                 accept_probability: float = 0.7, decision_delay: float = 2.0):
        self.coordinator = coordinator
        self.rng = rng
        self.answer_rate = answer_rate
        self.accept_probability = accept_probability
        self.decision_delay = decision_delay
        # sponsor -> (seconds until answer, accept?) ; None = let it time out
        self.pending: Dict[object, Optional[Tuple[float, bool]]] = {}

    def tick(self, dt: float, now: float):
        offering = [s for s in self.coordinator.sponsors if s.phase is SponsorPhase.OFFERING]
        for sponsor in list(self.pending):
            if sponsor not in offering:
                del self.pending[sponsor]
        for sponsor in offering:
            if sponsor not in self.pending:
                self.pending[sponsor] = self._plan_answer(sponsor)
            plan = self.pending[sponsor]
            if plan is None:
                continue
            left, accept = plan
            left -= dt
            if left > 0.0:
                self.pending[sponsor] = (left, accept)
                continue
            del self.pending[sponsor]
            if accept:
                self.coordinator.accept_contract(sponsor)
            else:
                self.coordinator.refuse_contract(sponsor)

    def _plan_answer(self, sponsor) -> Optional[Tuple[float, bool]]:
        if self.rng.random() >= self.answer_rate:
            desk_logger.debug(f"Ignoring {sponsor.key}")
            return None
        accept = self.rng.random() < self.accept_probability
        return self.decision_delay, accept

def make_bartender(cfg: dict, coordinator, rng: random.Random) -> Bartender:
    bc = cfg.get("bartender", {})
    return Bartender(
        coordinator,
        rng,
        pour_interval=float(bc.get("pour_interval", 0.4)),
        mistake_rate=float(bc.get("mistake_rate", 0.05)),
        spill_rate=float(bc.get("spill_rate", 0.02)),
        slide_seconds=float(bc.get("slide_seconds", 0.5)),
    )

def make_sponsor_desk(cfg: dict, coordinator, rng: random.Random) -> SponsorDesk:
    dc = cfg.get("sponsor_desk", {})
    return SponsorDesk(
        coordinator,
        rng,
        answer_rate=float(dc.get("answer_rate", 0.8)),
        accept_probability=float(dc.get("accept_probability", 0.7)),
        decision_delay=float(dc.get("decision_delay", 2.0)),
    )
