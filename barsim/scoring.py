# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# scoring.py
# -----------------------------------------------------------------------------
# Purpose:
#   Compare an expected Recipe with the drink actually delivered and turn the
#   comparison into a satisfaction score (0..100, <= 0 for a wrong drink).
#
# Design notes:
#   - Each rule is a pure function (expected, actual) -> int. The score is the
#     weighted average of the configured rules, truncated to int.
#   - Mood tiers are what the presentation layer colours patrons with; the
#     same tiers are used for the remaining-patience gauge.
#
# Usage:
#   from barsim.scoring import score, make_scorer, mood, LOW, HIGH
# -----------------------------------------------------------------------------

from __future__ import annotations
from enum import Enum
from typing import Callable, Dict, Optional, Sequence
from .entities import Recipe

LOW = 50    # satisfied strictly above this
HIGH = 80   # tips possible strictly above this

Rule = Callable[[Recipe, Recipe], int]

class Mood(str, Enum):
    ANGRY = "angry"
    CONTENT = "content"
    DELIGHTED = "delighted"

def mood(value: float) -> Mood:
    if value <= LOW:
        return Mood.ANGRY
    if value > HIGH:
        return Mood.DELIGHTED
    return Mood.CONTENT

def count_rule(expected: Recipe, actual: Recipe) -> int:
    """Share of units poured as ordered, against the larger of the two drinks.

    >>> a = Recipe.of("a", {"gin": 2})
    >>> b = Recipe.of("b", {"gin": 1, "soda": 1})
    >>> count_rule(a, a), count_rule(a, b)
    (100, 50)
    """
    e, a = expected.counts(), actual.counts()
    denom = max(expected.total_units(), actual.total_units())
    if denom == 0:
        return 100
    matched = sum(min(n, a.get(u, 0)) for u, n in e.items())
    return int(100 * matched / denom)

def balance_rule(expected: Recipe, actual: Recipe) -> int:
    """Proportion similarity: right ratios score well even at the wrong volume."""
    e_total, a_total = expected.total_units(), actual.total_units()
    if e_total == 0 or a_total == 0:
        return 100 if e_total == a_total else 0
    e, a = expected.counts(), actual.counts()
    units = set(e) | set(a)
    drift = sum(abs(e.get(u, 0) / e_total - a.get(u, 0) / a_total) for u in units)
    return int(100 - 50 * drift)

def exact_rule(expected: Recipe, actual: Recipe) -> int:
    return 100 if expected.counts() == actual.counts() else -100

RULES: Dict[str, Rule] = {
    "count": count_rule,
    "balance": balance_rule,
    "exact": exact_rule,
}

def score(expected: Recipe, actual: Recipe,
          rules: Optional[Sequence[Rule]] = None,
          weights: Optional[Sequence[float]] = None) -> int:
    rules = list(rules) if rules else [count_rule]
    weights = list(weights) if weights else [1.0] * len(rules)
    if len(weights) != len(rules):
        raise ValueError("One weight per scoring rule is required")
    total_w = sum(weights)
    if total_w <= 0:
        raise ValueError("Scoring weights must sum to a positive value")
    return int(sum(w * rule(expected, actual) for rule, w in zip(rules, weights)) / total_w)

def make_scorer(cfg: dict) -> Callable[[Recipe, Recipe], int]:
    """Build the scorer from the ``scoring`` config section (rules + optional weights)."""
    sc = cfg.get("scoring", {})
    names = sc.get("rules", ["count"])
    unknown = [n for n in names if n not in RULES]
    if unknown:
        raise ValueError(f"Unknown scoring rule(s): {unknown}")
    rules = [RULES[n] for n in names]
    weights = sc.get("weights")

    def _scorer(expected: Recipe, actual: Recipe) -> int:
        return score(expected, actual, rules, weights)
    return _scorer
