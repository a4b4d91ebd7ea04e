"""Built-in strike used when an ability cannot be resolved."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Iterable, Optional

from ...config import BasicStrikeConfig
from ...core.components.modifiers import Stat
from ...systems.ai import targeting
from ...systems.combat.damage_types import DamageType, Element
from ..descriptor import AbilityDescriptor, Category

if TYPE_CHECKING:
    from ...core.actor import Actor

DEFAULT_STRIKE = "Default Strike"


def build_descriptor(config: BasicStrikeConfig) -> AbilityDescriptor:
    """Descriptor for the strike described by ``abilities.default_basic``."""

    element = Element(config.element)
    return AbilityDescriptor(
        name=DEFAULT_STRIKE,
        kind="default_strike",
        category=Category.BASIC,
        base_damage=config.base_damage,
        scale_pct=config.scale_pct,
        scale_stat=Stat.parse(config.scale_stat),
        damage_type=DamageType.PHYSICAL if element is Element.PHYSICAL else DamageType.MAGIC,
        element=element,
        cooldown=config.cooldown,
        duration=0.0,
        hit_count=1,
        hit_interval=0.0,
        energy_gain=config.energy_gain,
        targeting="enemy",
        tags=("basic",),
        mechanics=MappingProxyType({}),
    )


def pick_target(
    actor: "Actor", preferred: Iterable["Actor"], enemies: Iterable["Actor"]
) -> Optional["Actor"]:
    """First live preferred target, else the nearest live enemy."""

    for target in preferred:
        if target.is_alive and target is not actor:
            return target
    live = [e for e in enemies if e.is_alive]
    return targeting.nearest(actor, live)


__all__ = ["DEFAULT_STRIKE", "build_descriptor", "pick_target"]
