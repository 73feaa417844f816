"""
experiments/run_experiments.py

Experiment harness that loads the baseline config, applies scenario overrides,
runs multiple nightly replications, and reports KPIs with confidence intervals.
Run from the repository root with ``python -m experiments.run_experiments``.
"""

from __future__ import annotations
import copy, logging, math, os
from statistics import mean, stdev
from typing import Callable, Dict, List, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import yaml
from scipy.stats import t

from barsim.simulation import run_one_night
from experiments.scenarios import SCENARIOS

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
OUT_DIR = os.path.join(ROOT, "experiments", "output")

def load_cfg(path: str | None = None) -> Dict:
    with open(path or os.path.join(ROOT, "config", "baseline.yaml"), "r") as f:
        return yaml.safe_load(f)

def apply_overrides(cfg: Dict, overrides: Dict) -> Dict:
    """Apply scenario overrides (recursive merge) on top of the base config."""
    new = copy.deepcopy(cfg)

    def _merge(dst: Dict, src: Dict):
        for key, val in src.items():
            if isinstance(val, dict) and isinstance(dst.get(key), dict):
                _merge(dst[key], val)
            else:
                dst[key] = copy.deepcopy(val)

    _merge(new, overrides)
    return new

def t_critical(confidence_level: float, df: int) -> float:
    level = min(max(confidence_level, 0.0), 0.999999)
    alpha = 1.0 - level
    return float(t.ppf(1 - alpha / 2.0, df))

def mean_ci(values: List[float], confidence_level: float) -> Tuple[float, float]:
    """Return (mean, half-width) using a t-distribution critical value."""
    if not values:
        return 0.0, 0.0
    mu = mean(values)
    n = len(values)
    if n < 2:
        return mu, 0.0
    half = t_critical(confidence_level, n - 1) * (stdev(values) / math.sqrt(n))
    return mu, half

def series(results: List[Dict], extractor: Callable[[Dict], float]) -> List[float]:
    """Collect a numeric series from each replication result."""
    return [float(extractor(res)) for res in results]

def seeded(cfg: Dict, seed: int) -> Dict:
    run_cfg = copy.deepcopy(cfg)
    run_cfg.setdefault("sim", {})["seed"] = seed
    return run_cfg

def run_replications(cfg: Dict, replications: int, base_seed: int) -> List[Dict]:
    # Advance the seed per replication so replications remain iid.
    return [run_one_night(seeded(cfg, base_seed + rep)) for rep in range(replications)]

def cash_at(points: List[Dict[str, float]], when: float, start_cash: float = 0.0) -> float:
    """Cash is a step function of time: the last recorded value at or before `when`."""
    cash = start_cash
    for pt in points:
        if pt["time_seconds"] > when:
            break
        cash = pt["cash"]
    return cash

def aggregate_cash(results: List[Dict], horizon: float, interval: float,
                   start_cash: float = 0.0) -> List[Tuple[float, float]]:
    """Mean cash across replications on a fixed time grid."""
    if not results:
        return []
    if interval <= 0:
        interval = 20.0
    grid = [i * interval for i in range(int(math.ceil(horizon / interval)) + 1)]
    return [(g, mean(cash_at(res.get("time_series", []), g, start_cash) for res in results)) for g in grid]

def plot_cash_curves(curves: Dict[str, List[Tuple[float, float]]], out_dir: str = OUT_DIR):
    """Persist a PNG with the mean cash-over-time curve of every scenario."""
    if not curves:
        return None
    plt.figure(figsize=(9, 5))
    for name, pts in curves.items():
        if not pts:
            continue
        plt.plot([p[0] for p in pts], [p[1] for p in pts], linewidth=1.5, label=name)
    plt.xlabel("Time (seconds)")
    plt.ylabel("Cash ($)")
    plt.title("Cash over the night across scenarios")
    plt.grid(True, linestyle="--", alpha=0.4)
    plt.legend()
    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, "cash_over_time.png")
    plt.tight_layout()
    plt.savefig(out_path, dpi=160)
    plt.close()
    return out_path

def run_crn(cfg: Dict, sc_a: Dict, sc_b: Dict, replications: int, base_seed: int,
            confidence: float, comparisons: int = 1) -> Tuple[float, float]:
    """
    Run a common-random-number comparison between two scenarios, using the same
    seed per replication, and report paired cash differences with a
    Bonferroni-adjusted CI of the mean. Returns (mean diff, half-width).
    """
    cfg_a = apply_overrides(cfg, sc_a["overrides"])
    cfg_b = apply_overrides(cfg, sc_b["overrides"])
    results = []
    for rep in range(replications):
        seed = base_seed + rep
        res_a = run_one_night(seeded(cfg_a, seed))
        res_b = run_one_night(seeded(cfg_b, seed))
        results.append((seed, res_a.get("cash", 0.0), res_b.get("cash", 0.0)))
    diffs = [b - a for (_, a, b) in results]
    mean_diff = mean(diffs)
    sd_diff = stdev(diffs) if len(diffs) > 1 else 0.0
    # Bonferroni: each of the C comparisons gets alpha / C
    level = 1.0 - (1.0 - confidence) / max(1, comparisons)
    half = t_critical(level, len(diffs) - 1) * sd_diff / math.sqrt(len(diffs)) if len(diffs) > 1 else 0.0
    print(f"CRN paired cash comparison ({sc_b['name']} - {sc_a['name']}):")
    print("  Replication | Seed | Cash A | Cash B | Difference")
    for idx, (seed, c1, c2) in enumerate(results, start=1):
        print(f"    {idx:2d}        | {seed:4d} | ${c1:,.2f} | ${c2:,.2f} | ${c2 - c1:,.2f}")
    print(f"  Mean difference: ${mean_diff:,.2f}")
    print(f"  Std dev of differences: {sd_diff:,.2f}")
    print(f"  {confidence*100:.1f}% CI of mean diff: ${mean_diff - half:,.2f} to ${mean_diff + half:,.2f}")
    return mean_diff, half

def crn_pairs(exp_cfg: Dict) -> List[List[str]]:
    """Normalize experiments.crn_compare to a list of [name_a, name_b] pairs."""
    pairs = exp_cfg.get("crn_compare") or []
    if pairs and all(isinstance(p, str) for p in pairs):
        pairs = [pairs]
    return [list(p) for p in pairs]

def main():
    """Entry point: drive all scenarios, replications, and report KPIs."""
    logging.basicConfig(level=logging.WARNING, format="%(name)s: %(message)s")
    cfg = load_cfg()
    exp_cfg = cfg.get("experiments", {})
    replications = max(1, int(exp_cfg.get("replications", 1)))
    confidence = float(exp_cfg.get("confidence_level", 0.95))
    interval = float(exp_cfg.get("time_series_interval_seconds", 20.0))
    level_pct = confidence * 100.0
    default_seed = cfg.get("sim", {}).get("seed", 0)

    curves: Dict[str, List[Tuple[float, float]]] = {}
    for sc in SCENARIOS:
        sc_cfg = apply_overrides(cfg, sc["overrides"])
        seed = sc_cfg.get("sim", {}).get("seed", default_seed)
        results = run_replications(sc_cfg, replications, seed)
        horizon = max(res.get("seconds", 0.0) for res in results)
        start_cash = float(sc_cfg.get("economy", {}).get("starting_cash", 0.0))
        curves[sc["name"]] = aggregate_cash(results, horizon, interval, start_cash)

        cash = mean_ci(series(results, lambda r: r.get("cash", 0.0)), confidence)
        revenue = mean_ci(series(results, lambda r: r.get("revenue", 0.0)), confidence)
        tips = mean_ci(series(results, lambda r: r.get("tips", 0.0)), confidence)
        success = mean_ci(series(results, lambda r: r.get("success_rate", 0.0) * 100.0), confidence)
        satisfaction = mean_ci(series(results, lambda r: r.get("avg_satisfaction", 0.0)), confidence)
        wait = mean_ci(series(results, lambda r: r.get("avg_wait_seconds", 0.0)), confidence)
        exhausted = mean_ci(series(results, lambda r: r.get("exhausted", 0)), confidence)
        reputation = mean_ci(series(results, lambda r: r.get("reputation", 0)), confidence)
        contracts = mean_ci(series(results, lambda r: r.get("contracts", {}).get("accepted", 0)), confidence)

        print(f"Scenario: {sc['name']} (replications={replications}, {level_pct:.1f}% CI, seeds {seed}-{seed + replications - 1})")
        print(f"  Cash/night: ${cash[0]:,.2f} ± ${cash[1]:,.2f}")
        print(f"  Revenue/night: ${revenue[0]:,.2f} ± ${revenue[1]:,.2f}")
        print(f"  Tips/night: ${tips[0]:,.2f} ± ${tips[1]:,.2f}")
        print(f"  Success rate: {success[0]:.1f}% ± {success[1]:.1f}%")
        print(f"  Avg satisfaction: {satisfaction[0]:.1f} ± {satisfaction[1]:.1f}")
        print(f"  Avg wait at counter: {wait[0]:.2f} ± {wait[1]:.2f} s")
        print(f"  Ran out of patience/night: {exhausted[0]:.2f} ± {exhausted[1]:.2f}")
        print(f"  Closing reputation: {reputation[0]:.1f} ± {reputation[1]:.1f}")
        print(f"  Contracts accepted/night: {contracts[0]:.2f} ± {contracts[1]:.2f}")
        print("-")

    pairs = crn_pairs(exp_cfg)
    sc_index = {s["name"]: s for s in SCENARIOS}
    for pair in pairs:
        if len(pair) != 2:
            print(f"[warn] skipping CRN entry (needs 2 names): {pair}")
            continue
        sc_a, sc_b = sc_index.get(pair[0]), sc_index.get(pair[1])
        if sc_a and sc_b:
            print(f"\nCRN comparison: {sc_a['name']} vs {sc_b['name']} (replications={replications}, seeds shared)")
            run_crn(cfg, sc_a, sc_b, replications, default_seed, confidence, len(pairs))
        else:
            print(f"[warn] CRN pair not found: {pair}")

    plot_path = plot_cash_curves(curves)
    if plot_path:
        print(f"\nCash-over-time plot saved to: {plot_path}")

if __name__ == "__main__":
    main()
