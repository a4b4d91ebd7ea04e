"""Tick timing helpers."""

from __future__ import annotations

import time


class TimeManager:
    """Manage the battle's fixed simulation step and optional pacing."""

    def __init__(self, tick_rate: float = 10.0) -> None:
        if tick_rate <= 0:
            raise ValueError("tick_rate must be positive")
        self.tick_rate: float = tick_rate
        self.tick_counter: int = 0
        self._last_tick: float = time.perf_counter()

    @property
    def dt(self) -> float:
        """Seconds of simulation time covered by one tick."""

        return 1.0 / self.tick_rate

    @property
    def elapsed(self) -> float:
        return self.tick_counter * self.dt

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------
    def advance(self) -> float:
        """Count one simulated tick without sleeping and return ``dt``."""

        self.tick_counter += 1
        return self.dt

    def sleep_until_next_tick(self) -> None:
        """Block until the next tick should occur."""

        target = self._last_tick + self.dt
        now = time.perf_counter()
        remaining = target - now
        if remaining > 0:
            time.sleep(remaining)
            self._last_tick = target
        else:
            # We're behind schedule; start from current time
            self._last_tick = now
        self.tick_counter += 1


__all__ = ["TimeManager"]
