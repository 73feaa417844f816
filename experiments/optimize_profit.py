"""
experiments/optimize_profit.py

Coordinate-ascent style search over bar decisions (how long a line we let
form, how fast the bartender pours, how prices are scaled) on a coarse grid.
Instead of an exhaustive Cartesian grid, this walks one decision dimension at
a time while holding the others fixed.
Run from the repository root with ``python -m experiments.optimize_profit``.
"""

from __future__ import annotations
import copy, logging, math
from typing import Dict, List, Tuple

from barsim.simulation import run_one_night
from experiments.run_experiments import apply_overrides, load_cfg, seeded
from experiments.scenarios import SCENARIOS

# Decision variables: (config section, key) -> (lo, hi, step)
INT_CHOICES = {
    ("queue", "customer_limit"): (1, 6, 1),
}
FLOAT_CHOICES = {
    ("bartender", "pour_interval"): (0.3, 0.7, 0.1),
    ("economy", "price_scale"): (0.8, 1.4, 0.2),
}
# How many coordinate-ascent passes to perform per scenario.
COORDINATE_PASSES = 2
# Replications averaged per candidate.
SEARCH_ITERATIONS = 3
SEARCH_START_SEED = 3
# Empty list means every scenario.
SELECTED_SCENARIOS: List[str] = ["baseline"]

def float_grid(bounds: Tuple[float, float], step: float) -> List[float]:
    """
    Expand a closed interval [lo, hi] into evenly spaced values using the
    provided step. Example: (0.8, 1.2) with step 0.2 -> [0.8, 1.0, 1.2].
    """
    lo, hi = bounds
    vals: List[float] = []
    if step <= 0:
        step = 0.1
    cur = lo
    while cur <= hi + 1e-9:
        vals.append(round(cur, 4))
        cur += step
    if vals and vals[-1] < hi - 1e-9:
        vals.append(round(hi, 4))
    return vals

def int_grid(bounds: Tuple[int, int], step: int) -> List[int]:
    """Generate integer grid values within [lo, hi] inclusive with stride=step."""
    lo, hi = bounds
    stride = max(1, int(step))
    vals = list(range(int(lo), int(hi) + 1, stride))
    if vals and vals[-1] != hi:
        vals.append(hi)
    return vals

def evaluate(cfg: Dict, iterations: int, start_seed: int) -> float:
    """Average closing cash over seeds start_seed..start_seed+iterations-1."""
    iterations = max(1, iterations)
    cash = [float(run_one_night(seeded(cfg, start_seed + i)).get("cash", -math.inf))
            for i in range(iterations)]
    return sum(cash) / len(cash)

def _candidates() -> List[Tuple[Tuple[str, str], List]]:
    dims: List[Tuple[Tuple[str, str], List]] = []
    for path, (lo, hi, step) in INT_CHOICES.items():
        dims.append((path, int_grid((lo, hi), step)))
    for path, (lo, hi, step) in FLOAT_CHOICES.items():
        dims.append((path, float_grid((lo, hi), step)))
    return dims

def coord_ascent(base_cfg: Dict, passes: int, iterations: int, start_seed: int) -> Tuple[float, Dict]:
    """
    For each dimension, sweep its grid while holding the others fixed and keep
    the value with the best average cash.
    """
    current = copy.deepcopy(base_cfg)
    best = evaluate(current, iterations, start_seed)
    for _ in range(max(1, passes)):
        improved = False
        for (section, key), grid in _candidates():
            for val in grid:
                if current.get(section, {}).get(key) == val:
                    continue
                cand = apply_overrides(current, {section: {key: val}})
                score = evaluate(cand, iterations, start_seed)
                if score > best:
                    best, current, improved = score, cand, True
        if not improved:
            break
    return best, current

def decision_overrides(cfg: Dict) -> Dict:
    """The searched decision values of cfg as a scenario override block."""
    out: Dict[str, Dict] = {}
    for (section, key), _ in _candidates():
        if key in cfg.get(section, {}):
            out.setdefault(section, {})[key] = cfg[section][key]
    return out

def search(passes: int = COORDINATE_PASSES, iterations: int = SEARCH_ITERATIONS,
           start_seed: int = SEARCH_START_SEED, scenario_names: List[str] = SELECTED_SCENARIOS):
    """
    Run coordinate-ascent search for selected scenarios and print the best
    cash plus a copy/paste scenario override block.
    """
    base = load_cfg()
    sc_index = {sc["name"]: sc for sc in SCENARIOS}
    targets = scenario_names or [sc["name"] for sc in SCENARIOS]
    for sc_name in targets:
        sc = sc_index.get(sc_name)
        if sc is None:
            print(f"[warn] scenario '{sc_name}' not found; skipping.")
            continue
        print(f"\n=== Searching scenario: {sc['name']} ===")
        base_cfg = apply_overrides(base, sc["overrides"])
        best, best_cfg = coord_ascent(base_cfg, passes, iterations, start_seed)
        print(f"  Best avg cash/night (over {iterations} seeds): ${best:,.2f}")
        print(f"  {sc['name'].upper()}_OPTIMIZED overrides: {decision_overrides(best_cfg)}")

if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING, format="%(name)s: %(message)s")
    search()
