"""Timed status effects attached to an actor."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional

# Durations at or below this are treated as expired (float drift from dt steps).
EPSILON = 1e-9


class StackPolicy(Enum):
    """What happens when an effect with the same kind and source is reapplied."""

    REFRESH_DURATION = "refresh-duration"
    ADD_STACK = "add-stack"
    REPLACE = "replace"


# One policy per status kind. ``buff_*``/``debuff_*`` kinds stack, everything
# not listed refreshes.
STATUS_POLICIES: Dict[str, StackPolicy] = {
    "shield": StackPolicy.REPLACE,
    "stance": StackPolicy.REPLACE,
    "form": StackPolicy.REPLACE,
    "channel": StackPolicy.REPLACE,
    "vulnerability": StackPolicy.ADD_STACK,
    "reduced_healing": StackPolicy.ADD_STACK,
}

_STACKING_PREFIXES = ("buff_", "debuff_")


def parse_policies(raw: Mapping[str, str]) -> Dict[str, StackPolicy]:
    """Convert ``{kind: "add-stack"}`` style config into policy enums."""

    parsed: Dict[str, StackPolicy] = {}
    for kind, name in raw.items():
        try:
            parsed[str(kind)] = StackPolicy(str(name))
        except ValueError:
            raise ValueError(f"Unknown collision policy '{name}' for status '{kind}'") from None
    return parsed


def policy_for(kind: str, overrides: Mapping[str, StackPolicy] | None = None) -> StackPolicy:
    """Return the collision policy declared for ``kind``."""

    if overrides and kind in overrides:
        return overrides[kind]
    if kind in STATUS_POLICIES:
        return STATUS_POLICIES[kind]
    if kind.startswith(_STACKING_PREFIXES):
        return StackPolicy.ADD_STACK
    return StackPolicy.REFRESH_DURATION


@dataclass
class StatusEffect:
    """A single active effect. ``duration`` of ``math.inf`` never expires."""

    kind: str
    source_name: str = ""
    duration: float = math.inf
    magnitude: float = 0.0
    stack_count: int = 1
    stack_limit: int = 1
    name: str = ""
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def durable(self) -> bool:
        return math.isinf(self.duration)

    @property
    def total_magnitude(self) -> float:
        return self.magnitude * self.stack_count


def _stronger(current: float, new: float) -> float:
    return new if abs(new) >= abs(current) else current


class StatusEffectStore:
    """Ordered collection of active effects with per-kind collision policies."""

    def __init__(self, policies: Mapping[str, StackPolicy] | None = None) -> None:
        self._effects: List[StatusEffect] = []
        self._policies: Dict[str, StackPolicy] = dict(policies or {})

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def policy_for(self, kind: str) -> StackPolicy:
        return policy_for(kind, self._policies)

    def apply(self, effect: StatusEffect) -> StatusEffect:
        """Insert ``effect`` or merge it into the matching active effect.

        Returns the stored effect instance.
        """

        limit = max(1, int(effect.stack_limit))
        incoming = replace(
            effect,
            stack_limit=limit,
            stack_count=min(limit, max(1, int(effect.stack_count))),
            params=dict(effect.params),
        )

        index = self._index_of(incoming.kind, incoming.source_name)
        if index is None:
            self._effects.append(incoming)
            return incoming

        existing = self._effects[index]
        policy = self.policy_for(incoming.kind)
        if policy is StackPolicy.REPLACE:
            # Keeps the original insertion position.
            self._effects[index] = incoming
            return incoming

        existing.duration = max(existing.duration, incoming.duration)
        existing.magnitude = _stronger(existing.magnitude, incoming.magnitude)
        existing.params.update(incoming.params)
        if incoming.name:
            existing.name = incoming.name
        if policy is StackPolicy.ADD_STACK:
            existing.stack_limit = limit
            existing.stack_count = min(limit, existing.stack_count + incoming.stack_count)
        return existing

    def tick(self, dt: float) -> List[StatusEffect]:
        """Advance finite durations by ``dt`` and return the effects that expired."""

        expired: List[StatusEffect] = []
        remaining: List[StatusEffect] = []
        for effect in self._effects:
            if not effect.durable:
                effect.duration -= dt
                if effect.duration <= EPSILON:
                    effect.duration = 0.0
                    expired.append(effect)
                    continue
            remaining.append(effect)
        self._effects = remaining
        return expired

    def query(self, kind: str) -> List[StatusEffect]:
        """Return all active effects of ``kind`` in insertion order."""

        return [e for e in self._effects if e.kind == kind]

    def get(self, kind: str, source_name: str = "") -> Optional[StatusEffect]:
        index = self._index_of(kind, source_name)
        return None if index is None else self._effects[index]

    def has(self, kind: str, source_name: str | None = None) -> bool:
        if source_name is None:
            return any(e.kind == kind for e in self._effects)
        return self._index_of(kind, source_name) is not None

    def remove(self, kind: str, source_name: str | None = None) -> List[StatusEffect]:
        """Explicitly remove effects of ``kind`` (optionally from one source)."""

        removed = [
            e
            for e in self._effects
            if e.kind == kind and (source_name is None or e.source_name == source_name)
        ]
        if removed:
            gone = {id(e) for e in removed}
            self._effects = [e for e in self._effects if id(e) not in gone]
        return removed

    def magnitude_total(self, kind: str) -> float:
        return sum(e.total_magnitude for e in self._effects if e.kind == kind)

    def clear(self) -> None:
        self._effects.clear()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _index_of(self, kind: str, source_name: str) -> Optional[int]:
        for idx, effect in enumerate(self._effects):
            if effect.kind == kind and effect.source_name == source_name:
                return idx
        return None

    def __iter__(self) -> Iterator[StatusEffect]:
        return iter(list(self._effects))

    def __len__(self) -> int:
        return len(self._effects)


__all__ = [
    "EPSILON",
    "StackPolicy",
    "STATUS_POLICIES",
    "StatusEffect",
    "StatusEffectStore",
    "parse_policies",
    "policy_for",
]
