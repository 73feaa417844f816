import pytest

from barsim.entities import Order, Recipe
from barsim.scoring import (HIGH, LOW, Mood, balance_rule, count_rule, exact_rule,
                            make_scorer, mood, score)

A = Recipe.of("a", {"gin": 2})
B = Recipe.of("b", {"gin": 1, "soda": 1})

class TestRules:
    def test_count_rule(self):
        assert count_rule(A, A) == 100
        assert count_rule(A, B) == 50

    def test_count_rule_penalizes_overpour(self):
        big = Recipe.of("big", {"gin": 4})
        assert count_rule(A, big) == 50

    def test_balance_rule_ignores_volume(self):
        double = Recipe.of("x", {"gin": 2, "tonic": 2})
        single = Recipe.of("y", {"gin": 1, "tonic": 1})
        assert balance_rule(double, single) == 100

    def test_exact_rule(self):
        assert exact_rule(A, A) == 100
        assert exact_rule(A, B) == -100

    def test_empty_drink(self):
        empty = Recipe.of("empty", {})
        assert count_rule(A, empty) == 0

class TestScore:
    def test_default_is_count_rule(self):
        assert score(A, B) == 50

    def test_weighted_average_truncates(self):
        assert score(A, B, [count_rule, exact_rule], [1.0, 1.0]) == -25
        assert score(A, B, [count_rule, exact_rule], [3.0, 1.0]) == 12

    def test_weights_must_match_rules(self):
        with pytest.raises(ValueError):
            score(A, B, [count_rule], [1.0, 2.0])

    def test_make_scorer_rejects_unknown_rule(self, cfg):
        cfg["scoring"] = {"rules": ["vibes"]}
        with pytest.raises(ValueError):
            make_scorer(cfg)

    def test_make_scorer_from_config(self, cfg):
        scorer = make_scorer(cfg)
        assert scorer(A, A) == 100
        assert scorer(A, B) == 50

class TestMood:
    @pytest.mark.parametrize("value,expected", [
        (-100, Mood.ANGRY),
        (LOW, Mood.ANGRY),
        (LOW + 1, Mood.CONTENT),
        (HIGH, Mood.CONTENT),
        (HIGH + 1, Mood.DELIGHTED),
    ])
    def test_tiers(self, value, expected):
        assert mood(value) is expected

class TestOrder:
    def test_empty_order_rejected(self):
        with pytest.raises(ValueError):
            Order([])

    def test_greedy_best_match(self, gin_tonic):
        vodka = Recipe.of("vodka_soda", {"vodka": 2, "soda": 3}, price=4)
        order = Order([gin_tonic, vodka])
        assert order.price == 9
        recipe, s = order.match(Recipe.of("delivered", {"vodka": 2, "soda": 3}), count_rule)
        assert recipe is vodka
        assert s == 100
        assert order.pending == [gin_tonic]
        assert not order.complete

    def test_ties_go_to_earliest(self):
        first = Recipe.of("first", {"gin": 1})
        second = Recipe.of("second", {"gin": 1})
        order = Order([first, second])
        recipe, _ = order.match(Recipe.of("delivered", {"gin": 1}), count_rule)
        assert recipe is first

    def test_satisfaction_is_average(self):
        order = Order([A, A])
        order.match(A, count_rule)
        order.match(B, count_rule)
        assert order.satisfaction == 75
        assert order.complete

class TestRecipe:
    def test_of_drops_empty_units(self):
        r = Recipe.of("r", {"gin": 2, "tonic": 0})
        assert r.counts() == {r.units[0][0]: 2}
        assert r.total_units() == 2

    def test_suggest_price(self, gin_tonic):
        assert gin_tonic.cost() == pytest.approx(2.2)
        assert gin_tonic.suggest_price(3.0) == 7
        assert Recipe.of("lime", {"lime": 1}).suggest_price(1.0) == 1
