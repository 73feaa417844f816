# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# simulation.py
# -----------------------------------------------------------------------------
# Purpose:
#   Simulate a single replication ("one night"): build the clock, staff and
#   flow coordinator, run the frame loop until closing, and return metrics.
#
# Design notes:
#   - One seeded random.Random is shared by every component, so a seed fully
#     determines a night.
#   - The night ends at sim.max_seconds, or earlier once the bar has closed
#     and the last patron has walked out.
#
# Usage:
#   from barsim.simulation import run_one_night
#   results = run_one_night(cfg)
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
import random
from typing import Dict
from .arrivals import CharacterRegistry, make_order_builder
from .clock import make_clock
from .coordinator import FlowCoordinator
from .metrics import Metrics
from .queues import Env
from .scoring import make_scorer
from .stations import make_bartender, make_sponsor_desk

logger = logging.getLogger("Simulation")

def build_night(cfg: Dict):
    """Wire every component for one night; returns (env, clock, coordinator, metrics)."""
    sim = cfg.get("sim", {})
    rng = random.Random(sim.get("seed", 0))
    M = Metrics(cfg)
    clock = make_clock(cfg)
    coord = FlowCoordinator(
        cfg,
        M,
        clock,
        CharacterRegistry.from_config(cfg),
        make_order_builder(cfg, rng),
        make_scorer(cfg),
        rng=rng,
    )
    env = Env(float(sim.get("dt", 0.05)))
    env.add(clock)
    env.add(make_bartender(cfg, coord, rng))
    env.add(make_sponsor_desk(cfg, coord, rng))
    env.add(coord)
    return env, clock, coord, M

def run_one_night(cfg: Dict) -> Dict:
    env, clock, coord, M = build_night(cfg)
    T_end = float(cfg.get("sim", {}).get("max_seconds", 600.0))
    env.run_until(T_end, stop=lambda: clock.has_closed and coord.is_idle)
    if not clock.has_opened:
        logger.warning(f"Bar never opened before the night ended at {clock.label}")
    logger.info(f"Night over at {clock.label} after {env.t:.1f}s ({env.frames} frames)")

    out = M.summary()
    out["opened"] = clock.has_opened
    out["closing_time"] = clock.label
    out["seconds"] = env.t
    return out
