# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# entities.py
# -----------------------------------------------------------------------------
# Purpose:
#   Entity definitions for the bar simulation: Consumable, Recipe, Order and
#   the small 2D geometry used for walking patrons around the room.
#
# Design notes:
#   - Recipes are immutable compositions (consumable -> count) with a price.
#     The "actual" drink handed to a patron is a Recipe built from the vessel.
#   - Orders hold one or more Recipes and are consumed one delivery at a time
#     by greedy best match; the scorer is injected so Order stays pure data.
#
# Usage:
#   from barsim.entities import Consumable, Recipe, Order, Vec2
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, NamedTuple, Optional, Tuple

class Consumable(str, Enum):
    GIN = "gin"
    VODKA = "vodka"
    RUM = "rum"
    TEQUILA = "tequila"
    WHISKEY = "whiskey"
    TONIC = "tonic"
    SODA = "soda"
    COLA = "cola"
    LIME = "lime"
    SYRUP = "syrup"

# Purchase price of one poured unit, in dollars
UNIT_PRICES: Dict[Consumable, float] = {
    Consumable.GIN: 0.8,
    Consumable.VODKA: 0.7,
    Consumable.RUM: 0.7,
    Consumable.TEQUILA: 0.9,
    Consumable.WHISKEY: 1.0,
    Consumable.TONIC: 0.2,
    Consumable.SODA: 0.1,
    Consumable.COLA: 0.2,
    Consumable.LIME: 0.1,
    Consumable.SYRUP: 0.1,
}

def unit_price(unit: Consumable) -> float:
    return UNIT_PRICES[unit]

@dataclass(frozen=True)
class Recipe:
    key: str
    units: Tuple[Tuple[Consumable, int], ...]   # sorted (consumable, count) pairs, counts > 0
    price: int = 0

    @classmethod
    def of(cls, key: str, units: Mapping, price: int = 0) -> "Recipe":
        """Build a Recipe from a mapping whose keys are Consumables or their names."""
        pairs = []
        for unit, count in units.items():
            count = int(count)
            if count <= 0:
                continue
            pairs.append((Consumable(unit), count))
        pairs.sort(key=lambda kv: kv[0].value)
        return cls(key, tuple(pairs), int(price))

    def counts(self) -> Dict[Consumable, int]:
        return dict(self.units)

    def count(self, unit: Consumable) -> int:
        for u, n in self.units:
            if u is unit:
                return n
        return 0

    def total_units(self) -> int:
        return sum(n for _, n in self.units)

    def cost(self) -> float:
        """Ingredient cost of one drink at unit prices."""
        return sum(unit_price(u) * n for u, n in self.units)

    def suggest_price(self, markup: float = 3.0) -> int:
        """Round a marked-up ingredient cost to whole dollars (never below $1)."""
        return max(1, int(math.ceil(self.cost() * markup)))

    def __str__(self) -> str:
        body = ", ".join(f"{u.value}:{n}" for u, n in self.units)
        return f"{self.key}{{{body}}}"

Scorer = Callable[[Recipe, Recipe], int]

@dataclass
class Order:
    recipes: List[Recipe]
    pending: List[Recipe] = field(default_factory=list)
    scores: List[int] = field(default_factory=list)

    def __post_init__(self):
        if not self.recipes:
            raise ValueError("An order needs at least one recipe")
        if not self.pending:
            self.pending = list(self.recipes)

    @property
    def price(self) -> int:
        return sum(r.price for r in self.recipes)

    @property
    def complete(self) -> bool:
        return not self.pending

    @property
    def satisfaction(self) -> int:
        """Average of the per-recipe scores recorded so far (0 before any delivery)."""
        if not self.scores:
            return 0
        return int(sum(self.scores) / len(self.scores))

    def next_recipe(self) -> Optional[Recipe]:
        return self.pending[0] if self.pending else None

    def match(self, actual: Recipe, scorer: Scorer) -> Tuple[Recipe, int]:
        """
        Match a delivered drink against the pending recipes.

        The pending recipe with the highest score wins (earliest on ties); it
        is removed from further consideration and its score is recorded.
        """
        if not self.pending:
            raise ValueError("Order has no pending recipe")
        best_idx, best_score = 0, None
        for idx, expected in enumerate(self.pending):
            s = scorer(expected, actual)
            if best_score is None or s > best_score:
                best_idx, best_score = idx, s
        recipe = self.pending.pop(best_idx)
        self.scores.append(best_score)
        return recipe, best_score

class Vec2(NamedTuple):
    x: float
    y: float

    def offset(self, dx: float = 0.0, dy: float = 0.0) -> "Vec2":
        return Vec2(self.x + dx, self.y + dy)

def distance(a: Vec2, b: Vec2) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)

def move_towards(current: Vec2, target: Vec2, max_delta: float) -> Vec2:
    """Step from current toward target by at most max_delta, landing exactly on target."""
    d = distance(current, target)
    if d <= max_delta or d == 0.0:
        return Vec2(target.x, target.y)
    k = max_delta / d
    return Vec2(current.x + (target.x - current.x) * k, current.y + (target.y - current.y) * k)
