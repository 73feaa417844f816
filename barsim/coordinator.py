# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# coordinator.py
# -----------------------------------------------------------------------------
# Purpose:
#   The visitor flow coordinator. Owns the line at the counter, the line of
#   patrons walking out, the spawn gates, the single vessel in flight, and
#   the sponsor offer flow. Reports outcomes to the ledger (Metrics).
#
# Design notes:
#   - One tick per frame: queue choreography, departures, sponsors, spawn
#     gates, then every character steps its own movement and wait timer.
#   - The queue is walked back to front; each patron follows the one ahead
#     of it, the front patron walks to the counter. Nobody overtakes.
#   - Departures are strictly FIFO: only the head is ever checked.
#   - Sponsor waits (approach, answer window) are phases counted down inside
#     the tick. The offer resolves once; whichever of accept / refuse /
#     timeout comes first wins and the others are no-ops.
#
# Usage:
#   coord = FlowCoordinator(cfg, metrics, clock, registry, order_builder, scorer, rng)
#   env.add(coord)
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
import random
from typing import Callable, List, Optional
from .arrivals import CharacterRegistry, spawn_customer, spawn_sponsor
from .entities import Order, Scorer, Vec2
from .errors import InvalidStateError
from .patron import ContractDecision, Patron, Sponsor, SponsorPhase
from .policies import pick_character_key
from .queues import DepartureQueue, TimedTrigger, VisitorQueue
from .vessel import MixingVessel, make_vessel

logger = logging.getLogger("Coordinator")

MIN_DISTANCE = 2.0          # queue spacing / "arrived" radius
MAX_DISTANCE = 3.0          # how close to the counter a patron must be to order
REPUTATION_THRESHOLD = 10   # sponsors only visit a bar with reputation above this

class FlowCoordinator:
    def __init__(self, cfg: dict, metrics, clock, registry: CharacterRegistry,
                 order_builder: Callable[[], Order], scorer: Scorer,
                 rng: Optional[random.Random] = None,
                 vessel_factory: Optional[Callable[[], MixingVessel]] = None):
        self.cfg = cfg
        self.M = metrics
        self.clock = clock
        self.registry = registry
        self.order_builder = order_builder
        self.scorer = scorer
        self.rng = rng or random.Random()
        self.vessel_factory = vessel_factory or (lambda: make_vessel(cfg))

        layout = cfg.get("layout", {})
        self.counter = Vec2(*layout.get("counter", (12.0, 0.0)))
        self.spawn = Vec2(*layout.get("spawn", (0.0, 0.0)))
        self.difficulty = float(cfg.get("sim", {}).get("difficulty", 1.0))

        qc = cfg.get("queue", {})
        self.customer_limit = int(qc.get("customer_limit", 3))
        spawn_cfg = cfg.get("spawn", {})
        self.spawn_range = tuple(spawn_cfg.get("interval_range", (2.0, 5.0)))
        sc = cfg.get("sponsor", {})
        self.reputation_threshold = int(sc.get("reputation_threshold", REPUTATION_THRESHOLD))
        self.sponsor_interval = float(sc.get("interval", 100.0))
        self.sponsor_lift = float(sc.get("spawn_lift", 5.0))
        self.offer_window = float(sc.get("offer_window", 5.0))

        self.queue = VisitorQueue()
        self.departures = DepartureQueue()
        self.sponsors: List[Sponsor] = []
        self.active_vessel: Optional[MixingVessel] = None
        self.vessel_owner: Optional[Patron] = None
        self.now = 0.0

        self.customer_spawn = TimedTrigger(
            float(spawn_cfg.get("initial_delay", 0.0)),
            self._spawn_customer_condition,
            self._spawn_customer,
        )
        self.sponsor_spawn = TimedTrigger(
            float(sc.get("initial_delay", 1.0)),
            self._spawn_sponsor_condition,
            self._spawn_sponsor,
        )

    # ------------------------------------------------------------------ tick

    def tick(self, dt: float, now: float):
        self.now = now
        self._update_queue()
        self._update_leaving()
        self._update_sponsors(dt)
        self.customer_spawn.tick(dt)
        self.sponsor_spawn.tick(dt)
        for patron in self.queue:
            patron.step(dt)
        for patron in self.departures:
            patron.step(dt)
        for sponsor in list(self.sponsors):
            sponsor.step(dt)

    @property
    def is_idle(self) -> bool:
        return not self.queue and not self.departures and not self.sponsors

    def _update_queue(self):
        for idx in range(len(self.queue) - 1, -1, -1):
            patron = self.queue[idx]
            leader = self.queue.ahead_of(idx)
            if leader is None:
                patron.move_to(self.counter, -patron.width, MIN_DISTANCE)
            else:
                patron.move_to(leader.position, -patron.width, MIN_DISTANCE)

            if patron.is_exhausted:
                self.M.increment_failure(patron, self.now)
                self.leave(patron)
                continue

            if not patron.has_order and patron.is_near(self.counter, -patron.width, MAX_DISTANCE):
                self._ask_order(patron)

    def _update_leaving(self):
        for patron in self.departures.drain(lambda p: p.is_near(self.spawn, 0.0, MIN_DISTANCE)):
            logger.debug(f"{patron.key} left the bar")

    # ------------------------------------------------------------ patrons

    def _ask_order(self, patron: Patron):
        if self.active_vessel is not None:
            raise InvalidStateError("A vessel is already in flight")
        patron.ask_order()
        patron.begin_wait(self.difficulty)
        self.active_vessel = self.vessel_factory()
        self.vessel_owner = patron
        logger.info(f"{patron.key} ordered {', '.join(r.key for r in patron.order.recipes)} "
                    f"(${patron.order.price}, patience {patron.patience:.1f}s)")

    def receive_order(self, patron: Patron, vessel: MixingVessel) -> Optional[int]:
        """
        A delivered vessel touched a patron.

        Returns the cash paid once the patron's order is complete, or None
        while the patron still waits for further drinks.
        """
        if vessel is not self.active_vessel or patron is not self.vessel_owner:
            raise InvalidStateError("Vessel was not handed to this patron")
        actual = vessel.to_recipe()
        vessel.reset()
        patron.serve(actual)
        if patron.is_waiting:
            logger.debug(f"{patron.key} got {patron.served_count}/{len(patron.order.recipes)} drinks")
            return None

        cash = 0
        if patron.is_satisfied():
            cash = patron.pay(self.rng)
            self.M.increment_success(patron, cash, self.now)
        else:
            self.M.increment_failure(patron, self.now)
        self.leave(patron)
        return cash

    def leave(self, patron: Patron):
        if patron not in self.queue:
            raise InvalidStateError(f"{patron.key} couldn't be found in the visitor queue")
        if patron.is_satisfied():
            logger.info(f"{patron.key} leaves happy (satisfaction {patron.satisfaction}, paid ${patron.paid})")
        else:
            logger.info(f"{patron.key} leaves unhappy (satisfaction {patron.satisfaction})")
        self.queue.remove(patron)
        self.departures.enqueue(patron)
        patron.leave_to(self.spawn)
        if self.vessel_owner is patron:
            self.active_vessel.reset()
            self.active_vessel = None
            self.vessel_owner = None

    # ------------------------------------------------------------ sponsors

    def _update_sponsors(self, dt: float):
        for sponsor in list(self.sponsors):
            if sponsor.phase is SponsorPhase.APPROACHING:
                sponsor.move_to(self.counter, -sponsor.width, MIN_DISTANCE)
                if sponsor.is_near(self.counter, -sponsor.width, MIN_DISTANCE):
                    sponsor.ask_contract()
            elif sponsor.phase is SponsorPhase.OFFERING:
                if sponsor.offer.expire(dt):
                    self._resolve_contract(sponsor, ContractDecision.REFUSED)
            elif sponsor.is_near(self.spawn, 0.0, MIN_DISTANCE):
                self.sponsors.remove(sponsor)
                logger.debug(f"{sponsor.key} left the bar")

    def accept_contract(self, sponsor: Sponsor):
        self._resolve_contract(sponsor, ContractDecision.ACCEPTED)

    def refuse_contract(self, sponsor: Sponsor):
        self._resolve_contract(sponsor, ContractDecision.REFUSED)

    def _resolve_contract(self, sponsor: Sponsor, decision: ContractDecision):
        if sponsor.offer.resolve(decision):
            logger.info(f"{sponsor.key} contract {decision.value}")
            self.M.record_contract(sponsor, decision.value, self.now)
        self._leave_sponsor(sponsor)

    def _leave_sponsor(self, sponsor: Sponsor):
        if sponsor.is_leaving:
            return
        sponsor.leave_to(self.spawn)

    # ------------------------------------------------------------ spawning

    def _spawn_customer_condition(self) -> bool:
        return self.clock.is_open and len(self.queue) <= self.customer_limit

    def _spawn_customer(self) -> float:
        key = pick_character_key(self.registry.customer_keys(), self.rng, self.registry.weights())
        patron = spawn_customer(self.registry, key, self.spawn, self.order_builder, self.scorer)
        self.queue.append(patron)
        self.M.note_spawn(key, len(self.queue))
        logger.debug(f"{key} walks in (queue {len(self.queue)})")
        return self.rng.uniform(*self.spawn_range)

    def _spawn_sponsor_condition(self) -> bool:
        return self.M.reputation > self.reputation_threshold

    def _spawn_sponsor(self) -> float:
        sponsor = spawn_sponsor(self.registry, self.spawn.offset(dy=self.sponsor_lift), self.offer_window)
        self.sponsors.append(sponsor)
        self.M.note_sponsor()
        logger.info(f"{sponsor.key} walks in (reputation {self.M.reputation})")
        return self.sponsor_interval
