"""
experiments/scenarios.py

Holds scenario definitions (config overrides) to sweep during experiments.
Add crowd levels, difficulty settings, and staff behaviour here.
"""

from __future__ import annotations

BASELINE = {
    "name": "baseline",
    "overrides": {},  # override config keys here per scenario
}

RUSH_HOUR = {
    "name": "rush_hour",
    "overrides": {
        "queue": {"customer_limit": 5},
        "spawn": {"interval_range": [1.0, 2.5]},
        "orders": {"size_weights": {1: 0.6, 2: 0.4}},
    },
}

HARD_DIFFICULTY = {
    "name": "hard_difficulty",
    "overrides": {
        "sim": {"difficulty": 2.0},
    },
}

SLOPPY_BARTENDER = {
    "name": "sloppy_bartender",
    "overrides": {
        "bartender": {
            "pour_interval": 0.6,
            "mistake_rate": 0.25,
            "spill_rate": 0.1,
        },
    },
}

SCENARIOS = [BASELINE, RUSH_HOUR, HARD_DIFFICULTY, SLOPPY_BARTENDER]

def by_name(name: str) -> dict:
    for sc in SCENARIOS:
        if sc["name"] == name:
            return sc
    raise KeyError(f"Unknown scenario: {name}")
