# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# metrics.py
# -----------------------------------------------------------------------------
# Purpose:
#   The bar's ledger: cash and reputation (which the flow coordinator reads to
#   gate sponsor visits) plus KPIs for a night: served, satisfied, failed,
#   exhausted, revenue, tips, waits, contracts.
#
# Design notes:
#   - Keep side-effect methods (increment_*/note_*/record_*) for
#     instrumentation from the coordinator.
#   - Summaries return JSON-serializable dicts for easy tabulation.
#   - A cash/reputation point is appended to the time series on every
#     resolution so experiments can plot the night.
#
# Usage:
#   M = Metrics(cfg); M.increment_success(patron, cash, t); M.summary()
# -----------------------------------------------------------------------------

from __future__ import annotations
from collections import defaultdict
from typing import Dict, Any

class Metrics:
    def __init__(self, cfg: dict):
        self.cfg = cfg
        econ = cfg.get("economy", {})
        self.cash = float(econ.get("starting_cash", 0.0))
        self.reputation = int(econ.get("starting_reputation", 0))
        self.success_reputation = int(econ.get("success_reputation", 1))
        self.failure_reputation = int(econ.get("failure_reputation", 1))
        self.contract_fee = float(econ.get("contract_fee", 20.0))
        self.contract_reputation = int(econ.get("contract_reputation", 2))
        self.revenue_total = 0.0
        self.tips_total = 0.0
        self.spawned = defaultdict(int)          # arrivals per character key
        self.successes = 0
        self.failures = 0
        self.exhausted = 0
        self.satisfaction_samples: list[int] = []
        self.wait_samples: list[float] = []
        self.contracts = defaultdict(int)        # accepted / refused
        self.sponsors = 0
        self.peak_queue = 0
        self.time_series: list[Dict[str, float]] = []

    def note_spawn(self, key: str, queue_len: int):
        self.spawned[key] += 1
        self.peak_queue = max(self.peak_queue, queue_len)

    def note_sponsor(self):
        self.sponsors += 1

    def increment_success(self, patron, cash: int, t: float):
        self.successes += 1
        self.cash += cash
        base = patron.order.price if patron.order is not None else 0
        self.revenue_total += cash
        self.tips_total += max(0, cash - base)
        self.reputation += self.success_reputation
        self._note_patron(patron)
        self._record_time_series(t)

    def increment_failure(self, patron, t: float):
        self.failures += 1
        if patron.is_exhausted:
            self.exhausted += 1
        self.reputation = max(0, self.reputation - self.failure_reputation)
        self._note_patron(patron)
        self._record_time_series(t)

    def record_contract(self, sponsor, decision: str, t: float):
        self.contracts[decision] += 1
        if decision == "accepted":
            self.cash += self.contract_fee
            self.reputation += self.contract_reputation
        self._record_time_series(t)

    def _note_patron(self, patron):
        # exhausted patrons never got a drink and carry no satisfaction sample
        if patron.served_count > 0:
            self.satisfaction_samples.append(patron.satisfaction)
        self.wait_samples.append(patron.waited)

    def _record_time_series(self, t: float):
        self.time_series.append({
            "time_seconds": t,
            "cash": self.cash,
            "reputation": float(self.reputation),
            "customers_total": float(self.successes + self.failures),
        })

    def summary(self) -> Dict[str, Any]:
        resolved = self.successes + self.failures
        avg_sat = (sum(self.satisfaction_samples) / len(self.satisfaction_samples)
                   if self.satisfaction_samples else 0.0)
        avg_wait = sum(self.wait_samples) / len(self.wait_samples) if self.wait_samples else 0.0
        return {
            "customers_spawned": sum(self.spawned.values()),
            "spawned_by_character": dict(self.spawned),
            "customers_resolved": resolved,
            "satisfied": self.successes,
            "unsatisfied": self.failures,
            "exhausted": self.exhausted,
            "success_rate": self.successes / resolved if resolved else 0.0,
            "avg_satisfaction": avg_sat,
            "avg_wait_seconds": avg_wait,
            "revenue": self.revenue_total,
            "tips": self.tips_total,
            "cash": self.cash,
            "reputation": self.reputation,
            "sponsors": self.sponsors,
            "contracts": dict(self.contracts),
            "peak_queue": self.peak_queue,
            "time_series": list(self.time_series),
        }
