# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# clock.py
# -----------------------------------------------------------------------------
# Purpose:
#   In-game time of day. Opening hours run slowly (that is when the game is
#   played); closed hours are fast-forwarded. Supplies the "bar is open" flag
#   that gates customer spawning.
#
# Design notes:
#   - Time is stored as a fraction of days since the start of the run.
#   - Opening hours may wrap midnight (e.g. 18 -> 2).
#
# Usage:
#   clock = make_clock(cfg); env.add(clock); clock.is_open
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
import math

logger = logging.getLogger("Clock")

class GameClock:
    def __init__(self, start_hour: float = 17.0, open_hour: int = 18, close_hour: int = 2,
                 seconds_per_day_open: float = 600.0, seconds_per_day_closed: float = 120.0):
        self.open_hour = open_hour
        self.close_hour = close_hour
        self.seconds_per_day_open = seconds_per_day_open
        self.seconds_per_day_closed = seconds_per_day_closed
        self.time = start_hour / 24.0
        # a run that starts inside opening hours counts as opened
        self.has_opened = self.is_open
        self.has_closed = False

    @property
    def day(self) -> int:
        return int(math.floor(self.time))

    @property
    def hours(self) -> int:
        return int(math.floor(self.time % 1.0 * 24.0))

    @property
    def minutes(self) -> int:
        return int(math.floor(self.time % 1.0 * 24.0 % 1.0 * 60.0))

    @property
    def label(self) -> str:
        return f"{self.hours:02d}:{self.minutes:02d}"

    @property
    def is_open(self) -> bool:
        h = self.hours
        if self.open_hour <= self.close_hour:
            return self.open_hour <= h < self.close_hour
        return h >= self.open_hour or h < self.close_hour

    def tick(self, dt: float, now: float):
        was_open = self.is_open
        rate = self.seconds_per_day_open if was_open else self.seconds_per_day_closed
        self.time += dt / rate
        if self.is_open and not was_open:
            self.has_opened = True
            logger.info(f"Bar opens at {self.label}")
        elif was_open and not self.is_open:
            self.has_closed = True
            logger.info(f"Bar closes at {self.label}")

def make_clock(cfg: dict) -> GameClock:
    cc = cfg.get("clock", {})
    return GameClock(
        start_hour=float(cc.get("start_hour", 17.0)),
        open_hour=int(cc.get("open_hour", 18)),
        close_hour=int(cc.get("close_hour", 2)),
        seconds_per_day_open=float(cc.get("seconds_per_day_open", 600.0)),
        seconds_per_day_closed=float(cc.get("seconds_per_day_closed", 120.0)),
    )
