import random

import pytest

from barsim.arrivals import CharacterRegistry, spawn_customer
from barsim.coordinator import FlowCoordinator
from barsim.entities import Consumable, Order, Vec2
from barsim.errors import InvalidStateError, MissingCharacterError
from barsim.metrics import Metrics
from barsim.patron import ContractDecision, Patron, SponsorPhase
from barsim.scoring import count_rule
from barsim.vessel import MixingVessel

DT = 0.05

def build(cfg, clock, builder, limit=0):
    cfg["queue"] = {"customer_limit": limit}
    cfg["characters"] = {"regular": {"patience": 10.0}, "sponsor": {"speed": 3.0}}
    M = Metrics(cfg)
    coord = FlowCoordinator(cfg, M, clock, CharacterRegistry.from_config(cfg),
                            builder, count_rule, rng=random.Random(3))
    return coord, M

def run(coord, until, frames=2000):
    for i in range(frames):
        coord.tick(DT, i * DT)
        if until():
            return
    raise AssertionError("condition never reached")

def mix(vessel, recipe):
    for unit, n in recipe.units:
        for _ in range(n):
            vessel.pour(unit)

class TestSpawnGate:
    def test_no_spawn_while_queue_over_limit(self, cfg, clock, single_order):
        coord, M = build(cfg, clock, single_order, limit=3)
        for _ in range(4):
            coord.queue.append(spawn_customer(coord.registry, "regular", Vec2(0.0, 0.0),
                                              single_order, count_rule))
        coord.tick(DT, 0.0)
        assert len(coord.queue) == 4
        assert sum(M.spawned.values()) == 0
        coord.queue.remove(coord.queue[3])
        coord.tick(DT, DT)
        assert len(coord.queue) == 4
        assert M.spawned["regular"] == 1

    def test_no_spawn_while_closed(self, cfg, clock, single_order):
        clock.is_open = False
        coord, M = build(cfg, clock, single_order, limit=3)
        for i in range(100):
            coord.tick(DT, i * DT)
        assert len(coord.queue) == 0
        assert coord.is_idle

class TestServing:
    def test_end_to_end_satisfied_patron_pays(self, cfg, clock, single_order, gin_tonic):
        coord, M = build(cfg, clock, single_order)
        run(coord, lambda: coord.active_vessel is not None)
        patron = coord.vessel_owner
        assert patron.is_waiting
        assert patron.patience == pytest.approx(10.0)
        assert patron.order.price == 5

        mix(coord.active_vessel, gin_tonic)
        cash = coord.receive_order(patron, coord.active_vessel)
        assert cash >= 5
        assert patron.is_satisfied()
        assert patron.is_leaving
        assert M.successes == 1
        assert M.cash == cash
        assert coord.active_vessel is None
        assert patron not in coord.queue
        assert patron in list(coord.departures)

        run(coord, lambda: patron not in list(coord.departures))

    def test_wrong_drink_is_a_failure(self, cfg, clock, single_order):
        coord, M = build(cfg, clock, single_order)
        run(coord, lambda: coord.active_vessel is not None)
        patron = coord.vessel_owner
        coord.active_vessel.pour(Consumable.WHISKEY)
        assert coord.receive_order(patron, coord.active_vessel) == 0
        assert M.failures == 1
        assert M.cash == 0
        assert patron.is_leaving

    def test_foreign_vessel_rejected(self, cfg, clock, single_order):
        coord, M = build(cfg, clock, single_order)
        run(coord, lambda: coord.active_vessel is not None)
        with pytest.raises(InvalidStateError):
            coord.receive_order(coord.vessel_owner, MixingVessel())

    def test_leave_unknown_patron(self, cfg, clock, single_order):
        coord, M = build(cfg, clock, single_order)
        stranger = spawn_customer(coord.registry, "regular", Vec2(0.0, 0.0), single_order, count_rule)
        with pytest.raises(InvalidStateError):
            coord.leave(stranger)

    def test_exhausted_patron_counts_as_failure(self, cfg, clock, single_order):
        coord, M = build(cfg, clock, single_order)
        run(coord, lambda: coord.active_vessel is not None)
        patron = coord.vessel_owner
        run(coord, lambda: patron.is_leaving)
        assert M.failures == 1
        assert M.exhausted == 1
        assert M.successes == 0
        assert coord.active_vessel is None

    def test_second_vessel_rejected(self, cfg, clock, single_order):
        coord, M = build(cfg, clock, single_order)
        run(coord, lambda: coord.active_vessel is not None)
        # a second patron standing right at the counter wants to order too
        intruder = spawn_customer(coord.registry, "regular", Vec2(11.5, 0.0), single_order, count_rule)
        coord.queue.append(intruder)
        with pytest.raises(InvalidStateError):
            coord.tick(DT, 100.0)

    def test_multi_recipe_order_keeps_vessel(self, cfg, clock, gin_tonic):
        coord, M = build(cfg, clock, lambda: Order([gin_tonic, gin_tonic]))
        run(coord, lambda: coord.active_vessel is not None)
        patron, vessel = coord.vessel_owner, coord.active_vessel

        mix(vessel, gin_tonic)
        assert coord.receive_order(patron, vessel) is None
        assert coord.active_vessel is vessel
        assert vessel.is_empty()
        assert patron.is_waiting
        assert M.successes == 0

        mix(vessel, gin_tonic)
        assert coord.receive_order(patron, vessel) >= 10
        assert M.successes == 1
        assert coord.active_vessel is None

class TestChoreography:
    COUNTER = Vec2(12.0, 0.0)

    def _patron(self, builder, x, speed):
        return Patron("regular", Vec2(x, 0.0), order_builder=builder, scorer=count_rule, speed=speed)

    def test_follower_never_overtakes_and_fills_the_gap(self, cfg, clock, single_order):
        coord, M = build(cfg, clock, single_order)
        leader = self._patron(single_order, 3.0, speed=1.0)
        follower = self._patron(single_order, 0.0, speed=9.0)
        coord.queue.append(leader)
        coord.queue.append(follower)

        for i in range(2000):
            coord.tick(DT, i * DT)
            if leader not in coord.queue:
                break
            assert follower.position.x < leader.position.x
            assert not follower.has_order
            assert coord.vessel_owner in (None, leader)
        assert leader.is_leaving
        assert M.exhausted == 1

        run(coord, lambda: coord.vessel_owner is follower)
        assert follower.is_waiting
        assert follower.is_near(self.COUNTER, -follower.width, 3.0)
        assert coord.queue.front() is follower

    def test_departures_leave_in_arrival_order(self, cfg, clock, single_order):
        clock.is_open = False
        coord, M = build(cfg, clock, single_order)
        slow = self._patron(single_order, 10.0, speed=1.0)
        fast = self._patron(single_order, 1.0, speed=9.0)
        coord.queue.append(slow)
        coord.queue.append(fast)
        coord.leave(slow)
        coord.leave(fast)

        for i in range(5):
            coord.tick(DT, i * DT)
        # fast is already at the door but slow is still the head
        assert fast.is_near(Vec2(0.0, 0.0), 0.0, 2.0)
        assert list(coord.departures) == [slow, fast]

        run(coord, lambda: len(coord.departures) == 0)
        assert slow.position.x <= 2.0

class TestSponsors:
    def _offering(self, cfg, clock, single_order):
        clock.is_open = False
        coord, M = build(cfg, clock, single_order)
        M.reputation = 11
        run(coord, lambda: bool(coord.sponsors))
        sponsor = coord.sponsors[0]
        assert sponsor.position == Vec2(0.0, 5.0)
        run(coord, lambda: sponsor.phase is SponsorPhase.OFFERING)
        return coord, M, sponsor

    def test_no_sponsor_below_reputation(self, cfg, clock, single_order):
        clock.is_open = False
        coord, M = build(cfg, clock, single_order)
        M.reputation = 10
        for i in range(200):
            coord.tick(DT, i * DT)
        assert coord.sponsors == []
        assert M.sponsors == 0

    def test_accept_then_refuse_is_noop(self, cfg, clock, single_order):
        coord, M, sponsor = self._offering(cfg, clock, single_order)
        coord.accept_contract(sponsor)
        coord.refuse_contract(sponsor)
        assert sponsor.offer.decision is ContractDecision.ACCEPTED
        assert sponsor.is_leaving
        assert M.contracts == {"accepted": 1}
        assert M.cash == 20
        assert M.reputation == 13
        run(coord, lambda: not coord.sponsors)
        assert M.sponsors == 1

    def test_offer_times_out_as_refusal(self, cfg, clock, single_order):
        coord, M, sponsor = self._offering(cfg, clock, single_order)
        run(coord, lambda: sponsor.offer.resolved, frames=200)
        assert sponsor.offer.decision is ContractDecision.REFUSED
        assert sponsor.is_leaving
        coord.accept_contract(sponsor)
        assert M.contracts == {"refused": 1}
        assert M.cash == 0

    def test_resolution_during_approach_sends_sponsor_home(self, cfg, clock, single_order):
        clock.is_open = False
        coord, M = build(cfg, clock, single_order)
        M.reputation = 11
        run(coord, lambda: bool(coord.sponsors))
        sponsor = coord.sponsors[0]
        coord.refuse_contract(sponsor)
        assert sponsor.is_leaving
        run(coord, lambda: not coord.sponsors)
        assert M.contracts == {"refused": 1}

class TestRegistry:
    def test_missing_key(self, cfg, single_order):
        registry = CharacterRegistry.from_config(cfg)
        with pytest.raises(MissingCharacterError):
            registry.get("ghost")
        with pytest.raises(MissingCharacterError):
            spawn_customer(registry, "ghost", Vec2(0.0, 0.0), single_order, count_rule)

    def test_sponsor_excluded_from_customers(self, cfg):
        registry = CharacterRegistry.from_config(cfg)
        assert "sponsor" not in registry.customer_keys()
        assert set(registry.customer_keys()) == {"regular", "student", "businessman"}
        assert registry.weights() is None

    def test_spawning_sponsor_requires_registration(self, cfg, clock, single_order):
        clock.is_open = False
        coord, M = build(cfg, clock, single_order)
        del coord.registry.specs["sponsor"]
        M.reputation = 11
        with pytest.raises(MissingCharacterError):
            for i in range(100):
                coord.tick(DT, i * DT)
