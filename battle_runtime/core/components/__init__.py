"""components package."""

from .modifiers import PassiveModifier, Stat
from .resources import ResourcePool
from .status_effects import StackPolicy, StatusEffect, StatusEffectStore

__all__ = [
    "PassiveModifier",
    "Stat",
    "ResourcePool",
    "StackPolicy",
    "StatusEffect",
    "StatusEffectStore",
]
