"""Raw damage and critical hit helpers."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from ...core.components.modifiers import Stat

if TYPE_CHECKING:
    from ...abilities.descriptor import AbilityDescriptor
    from ...core.actor import Actor

MAX_CRIT_CHANCE = 0.5


def compute_damage(actor: "Actor", descriptor: "AbilityDescriptor", multiplier: float = 1.0) -> float:
    """Return ``base + stat * scale`` for one hit before mitigation."""

    stat = actor.effective_stat(descriptor.scale_stat)
    raw = descriptor.base_damage + stat * descriptor.scale_pct
    return max(0.0, raw * multiplier)


def crit_chance(actor: "Actor") -> float:
    """Luck is read as percent points of crit chance."""

    luck = actor.effective_stat(Stat.LUCK)
    return min(MAX_CRIT_CHANCE, max(0.0, luck / 100.0))


def roll_crit(rng: random.Random, actor: "Actor") -> bool:
    # Always draw so the RNG stream does not depend on stats.
    return rng.random() < crit_chance(actor)


__all__ = ["compute_damage", "crit_chance", "roll_crit", "MAX_CRIT_CHANCE"]
