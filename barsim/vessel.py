# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# vessel.py
# -----------------------------------------------------------------------------
# Purpose:
#   The glass a drink is mixed in: counts poured units per consumable, tracks
#   a fill level in fixed steps, and drains while tilted.
#
# Design notes:
#   - Fill level is kept as an integer number of steps so repeated pours and
#     drains never accumulate float error; `level` converts back.
#   - A drain step removes one of *every* present consumable but lowers the
#     level by a single step. Counts never go negative.
#   - Overflow is not an error: pouring into a full vessel is rejected.
#
# Usage:
#   from barsim.vessel import MixingVessel, make_vessel, is_tilted
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
import logging
from types import MappingProxyType
from typing import Dict, Mapping
from .entities import Consumable, Recipe

logger = logging.getLogger("Vessel")

FLOW_MIN_ANGLE = 80.0
FLOW_MAX_ANGLE = 280.0

def is_tilted(angle: float) -> bool:
    """True when the vessel is turned far enough to pour out (open range)."""
    a = angle % 360.0
    return FLOW_MIN_ANGLE < a < FLOW_MAX_ANGLE

class MixingVessel:
    def __init__(self, capacity: float = 1.0, step: float = 0.1):
        if step <= 0 or capacity <= 0:
            raise ValueError("Vessel capacity and step must be positive")
        self.capacity = capacity
        self.step = step
        self._max_steps = int(math.ceil(capacity / step - 1e-9))
        self._steps = 0
        self._units: Dict[Consumable, int] = {}

    @property
    def level(self) -> float:
        return self._steps * self.step

    def is_full(self) -> bool:
        return self._steps >= self._max_steps

    def is_empty(self) -> bool:
        return self._steps <= 0

    def contents(self) -> Mapping[Consumable, int]:
        return MappingProxyType(dict(self._units))

    def pour(self, unit: Consumable) -> bool:
        if self.is_full():
            logger.debug(f"Vessel full, {unit.value} spilled over")
            return False
        self._units[unit] = self._units.get(unit, 0) + 1
        self._steps += 1
        return True

    def drain_tick(self) -> bool:
        if self.is_empty():
            return False
        for unit in list(self._units):
            left = self._units[unit] - 1
            if left > 0:
                self._units[unit] = left
            else:
                del self._units[unit]
        self._steps -= 1
        return True

    def tick(self, angle: float) -> bool:
        """Drain one step if the caller reports a pouring orientation."""
        if is_tilted(angle) and not self.is_empty():
            return self.drain_tick()
        return False

    def reset(self):
        self._units = {}
        self._steps = 0

    def to_recipe(self, key: str = "delivered") -> Recipe:
        return Recipe.of(key, self._units, price=0)

def make_vessel(cfg: dict) -> MixingVessel:
    vc = cfg.get("vessel", {})
    return MixingVessel(capacity=float(vc.get("capacity", 1.0)), step=float(vc.get("step", 0.1)))
