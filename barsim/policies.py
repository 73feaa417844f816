# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# policies.py
# -----------------------------------------------------------------------------
# Purpose:
#   Pure decision policies: which character walks in next, how long a patron
#   will wait, and whether a happy patron leaves a tip.
#
# Design notes:
#   - Keep pure functions to ease testing (inputs + rng -> decision).
#   - Character selection is uniform unless weights are configured.
#
# Usage:
#   from barsim.policies import pick_character_key, patience_budget, tip
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from typing import Mapping, Optional, Sequence
from .scoring import HIGH

BASE_PATIENCE = 10.0   # seconds at difficulty 1

def pick_character_key(keys: Sequence[str], rng: random.Random,
                       weights: Optional[Mapping[str, float]] = None) -> str:
    """Uniform pick among keys, or weighted when a weight map is given (missing keys weigh 1)."""
    if not keys:
        raise ValueError("No customer characters are registered")
    if not weights:
        return keys[rng.randrange(len(keys))]
    w = [float(weights.get(k, 1.0)) for k in keys]
    return rng.choices(list(keys), weights=w, k=1)[0]

def patience_budget(difficulty: float, base: float = BASE_PATIENCE) -> float:
    if difficulty <= 0:
        raise ValueError("Difficulty must be positive")
    return base / difficulty

def tip(satisfaction: int, rng: random.Random, chance: float = 0.25) -> int:
    """1..4 dollars for a delighted patron, one time in four by default."""
    if satisfaction <= HIGH:
        return 0
    if rng.random() >= chance:
        return 0
    return rng.randint(1, 4)
