"""Damage type definitions."""

from __future__ import annotations

from enum import Enum


class DamageType(Enum):
    """Enumerate supported damage categories."""

    PHYSICAL = "physical"
    MAGIC = "magic"
    TRUE = "true"


class EffectType(Enum):
    """What a resolved action does to its receiver."""

    DAMAGE = "damage"
    HEAL = "heal"
    SHIELD = "shield"


class Element(Enum):
    """Elemental tags carried by abilities; opaque to mitigation."""

    PHYSICAL = "physical"
    FIRE = "fire"
    WATER = "water"
    EARTH = "earth"
    WIND = "wind"
    ELECTRIC = "electric"
    NATURE = "nature"
    DARK = "dark"
    LIGHT = "light"
    ARCANE = "arcane"


__all__ = ["DamageType", "EffectType", "Element"]
