"""Named, capped, non-negative counters owned by an actor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class Resource:
    """Track one custom resource such as Fury or Ichor Reserves."""

    name: str
    value: float
    cap: float


class ResourcePool:
    """Per-actor resource counters; every write clamps to ``[0, cap]``."""

    def __init__(self, default_cap: float = 999.0) -> None:
        self.default_cap = default_cap
        self._resources: Dict[str, Resource] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def add(self, name: str, amount: float, cap: Optional[float] = None) -> float:
        """Add ``amount`` to ``name`` and return the new value.

        ``cap`` is the ceiling for this write and becomes the resource's cap
        going forward. When omitted, the previous cap (or ``default_cap``)
        applies.
        """

        res = self._resources.get(name)
        if cap is None:
            cap = res.cap if res is not None else self.default_cap
        cap = max(0.0, float(cap))
        current = res.value if res is not None else 0.0
        value = min(cap, max(0.0, current + amount))
        if res is None:
            self._resources[name] = Resource(name=name, value=value, cap=cap)
        else:
            res.value = value
            res.cap = cap
        return value

    def consume(self, name: str, amount: float) -> float:
        """Remove up to ``amount`` from ``name`` and return what was taken."""

        res = self._resources.get(name)
        if res is None or amount <= 0:
            return 0.0
        taken = min(res.value, float(amount))
        res.value -= taken
        return taken

    def get(self, name: str) -> float:
        res = self._resources.get(name)
        return res.value if res is not None else 0.0

    def cap_of(self, name: str) -> float:
        res = self._resources.get(name)
        return res.cap if res is not None else self.default_cap

    def reset(self, name: str) -> None:
        """Drop ``name`` so it reads as 0 again."""

        self._resources.pop(name, None)

    def snapshot(self) -> Dict[str, float]:
        return {name: res.value for name, res in self._resources.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._resources


__all__ = ["Resource", "ResourcePool"]
