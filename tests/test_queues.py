import pytest

from barsim.queues import DepartureQueue, Env, TimedTrigger, VisitorQueue

class Counter:
    def __init__(self, interval=2.0):
        self.calls = 0
        self.interval = interval

    def __call__(self):
        self.calls += 1
        return self.interval

class TestTimedTrigger:
    def test_fires_immediately_with_zero_delay(self):
        action = Counter(2.0)
        trig = TimedTrigger(0.0, lambda: True, action)
        assert trig.tick(0.1) is True
        assert action.calls == 1
        assert trig.remaining == pytest.approx(2.0)

    def test_rearms_with_action_result(self):
        action = Counter(2.0)
        trig = TimedTrigger(0.0, lambda: True, action)
        trig.tick(0.1)
        assert trig.tick(1.0) is False
        assert trig.tick(1.0) is True
        assert action.calls == 2

    def test_countdown_pins_at_zero_while_condition_false(self):
        gate = {"open": False}
        action = Counter()
        trig = TimedTrigger(1.0, lambda: gate["open"], action)
        for _ in range(50):
            assert trig.tick(0.5) is False
        assert trig.remaining == 0.0
        assert action.calls == 0
        gate["open"] = True
        assert trig.tick(0.01) is True
        assert action.calls == 1

    def test_no_side_effect_before_expiry(self):
        calls = []
        trig = TimedTrigger(3.0, lambda: calls.append("cond") or True, Counter())
        trig.tick(1.0)
        trig.tick(1.0)
        assert calls == []
        assert trig.fired == 0

    def test_negative_interval_clamped(self):
        trig = TimedTrigger(0.0, lambda: True, lambda: -5.0)
        trig.tick(0.1)
        assert trig.remaining == 0.0

    def test_instances_are_independent(self):
        a_action, b_action = Counter(1.0), Counter(10.0)
        a = TimedTrigger(0.0, lambda: True, a_action)
        b = TimedTrigger(5.0, lambda: True, b_action)
        for _ in range(4):
            a.tick(1.0)
            b.tick(1.0)
        assert a_action.calls == 4
        assert b_action.calls == 0

class TestEnv:
    def test_rejects_non_positive_dt(self):
        with pytest.raises(ValueError):
            Env(0.0)

    def test_ticks_actors_in_order(self):
        seen = []

        class Actor:
            def __init__(self, name):
                self.name = name

            def tick(self, dt, now):
                seen.append((self.name, now))

        env = Env(0.5)
        env.add(Actor("a"))
        env.add(Actor("b"))
        env.step()
        env.step()
        assert seen == [("a", 0.0), ("b", 0.0), ("a", 0.5), ("b", 0.5)]
        assert env.frames == 2

    def test_run_until_stops_early(self):
        env = Env(1.0)
        env.run_until(100.0, stop=lambda: env.t >= 3.0)
        assert env.t == 3.0

class TestVisitorQueue:
    def test_ahead_of(self):
        q = VisitorQueue()
        for name in "abc":
            q.append(name)
        assert q.ahead_of(0) is None
        assert q.ahead_of(2) == "b"
        assert q.front() == "a"

    def test_remove_keeps_order(self):
        q = VisitorQueue()
        for name in "abcd":
            q.append(name)
        assert q.remove("b") is True
        assert list(q) == ["a", "c", "d"]
        assert q.remove("z") is False

class TestDepartureQueue:
    def test_only_head_is_checked(self):
        q = DepartureQueue()
        for name in "abc":
            q.enqueue(name)
        # b and c are already out, but a still blocks them
        assert q.drain(lambda p: p in {"b", "c"}) == []
        assert len(q) == 3

    def test_drain_pops_consecutive_heads(self):
        q = DepartureQueue()
        for name in "abc":
            q.enqueue(name)
        assert q.drain(lambda p: p in {"a", "c"}) == ["a"]
        assert q.peek() == "b"
        assert q.drain(lambda p: True) == ["b", "c"]
        assert len(q) == 0
