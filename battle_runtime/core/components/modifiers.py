"""Stat keys and the base enum for per-character passive modifiers."""

from __future__ import annotations

from enum import Enum


class Stat(Enum):
    """Enumerate the stats read by stat aggregation."""

    ATK = "atk"
    MAGIC_ATK = "magic_atk"
    DEF = "def"
    MAGIC_DEF = "magic_def"
    SPEED = "speed"
    LUCK = "luck"
    # exposed for the host engine's hit roll
    EVASION = "evasion"
    TENACITY = "tenacity"
    DAMAGE_REDUCTION = "damage_reduction"
    VULNERABILITY = "vulnerability"
    HEALING_RECEIVED = "healing_received"

    @classmethod
    def parse(cls, name: str) -> "Stat":
        """Return the stat named ``name`` (accepts ``magicAtk`` style too)."""

        key = "".join("_" + c.lower() if c.isupper() else c for c in name).lstrip("_")
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown stat: {name}") from None


# Stats scaled multiplicatively by modifiers; everything else is additive.
PERCENT_STATS = frozenset(
    {Stat.ATK, Stat.MAGIC_ATK, Stat.DEF, Stat.MAGIC_DEF, Stat.SPEED}
)


class PassiveModifier(Enum):
    """Base for a character's closed set of passive modifier keys.

    Members are declared as ``NAME = ("key", Stat.X)``; the stat tells the
    aggregation step which stat the modifier feeds.
    """

    def __init__(self, key: str, stat: Stat) -> None:
        self.key = key
        self.stat = stat


__all__ = ["Stat", "PERCENT_STATS", "PassiveModifier"]
