"""Per-actor cooldown tracking for abilities."""

from __future__ import annotations

from typing import Dict

from ...core.components.status_effects import EPSILON


class CooldownTracker:
    """Track remaining cooldown seconds for one actor's abilities."""

    def __init__(self) -> None:
        # Mapping of ability name -> remaining seconds. Exposed directly as the
        # actor's ``cooldown_timers`` view; ability modules may read it.
        self.timers: Dict[str, float] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def start(self, ability: str, seconds: float) -> None:
        """Start a cooldown for ``ability``, overwriting any running timer."""

        if seconds <= 0:
            self.timers.pop(ability, None)
            return
        self.timers[ability] = float(seconds)

    def is_ready(self, ability: str) -> bool:
        """Return ``True`` if ``ability`` is not on cooldown."""

        return self.timers.get(ability, 0.0) <= 0

    def remaining(self, ability: str) -> float:
        return max(0.0, self.timers.get(ability, 0.0))

    def tick(self, dt: float) -> None:
        """Advance all cooldown timers by ``dt`` seconds."""

        finished = []
        for name, left in self.timers.items():
            left -= dt
            if left <= EPSILON:
                finished.append(name)
            else:
                self.timers[name] = left
        for name in finished:
            self.timers.pop(name, None)

    def clear(self, ability: str | None = None) -> None:
        """Reset one ability, or every ability when ``ability`` is ``None``."""

        if ability is None:
            self.timers.clear()
        else:
            self.timers.pop(ability, None)


__all__ = ["CooldownTracker"]
