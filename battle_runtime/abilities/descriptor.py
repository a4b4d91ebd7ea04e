"""Static ability definitions and their level-resolved descriptors."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from ..config import CONFIG, AbilityConfig
from ..core.components.modifiers import Stat
from ..systems.combat.damage_types import DamageType, Element

logger = logging.getLogger(__name__)

# Level-effect keys with a fixed meaning; anything else overrides a mechanic.
LEVEL_EFFECT_KEYS = frozenset(
    {
        "base_damage_bonus",
        "scale_pct_bonus",
        "cooldown_reduction",
        "duration_bonus",
        "hit_count_bonus",
    }
)

TARGETING_MODES = frozenset({"enemy", "ally", "self", "area"})


class Category(Enum):
    """Ability category as used by the decision tiers."""

    BASIC = "basic"
    SKILL = "skill"
    PASSIVE = "passive"
    ULTIMATE = "ultimate"

    @classmethod
    def parse(cls, name: str) -> "Category":
        try:
            return cls(str(name).lower())
        except ValueError:
            raise ValueError(f"Unknown ability category: {name}") from None


@dataclass
class AbilityDefinition:
    """One ability as written in a character's YAML definition."""

    name: str
    kind: str
    category: Category
    base_damage: float = 0.0
    scale_pct: float = 0.0
    scale_stat: Stat = Stat.ATK
    damage_type: DamageType = DamageType.PHYSICAL
    element: Element = Element.PHYSICAL
    cooldown: float = 0.0
    duration: float = 0.0
    hit_count: int = 1
    hit_interval: float = 0.0
    # None means the configured default basic energy gain
    energy_gain: Optional[float] = None
    targeting: str = "enemy"
    tags: Tuple[str, ...] = ()
    mechanics: Dict[str, Any] = field(default_factory=dict)
    # actor level threshold -> effects unlocked at that level
    level_effects: Dict[int, Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AbilityDefinition":
        """Build a definition from raw YAML data, validating enum fields."""

        try:
            name = str(data["name"])
            kind = str(data["kind"])
            category = Category.parse(data["category"])
        except KeyError as exc:
            raise ValueError(f"Ability definition missing key {exc}: {dict(data)}") from None

        targeting = str(data.get("targeting", "enemy"))
        if targeting not in TARGETING_MODES:
            raise ValueError(f"Unknown targeting mode '{targeting}' for ability '{name}'")

        try:
            damage_type = DamageType(str(data.get("damage_type", "physical")))
            element = Element(str(data.get("element", "physical")))
        except ValueError as exc:
            raise ValueError(f"Ability '{name}': {exc}") from None

        level_effects: Dict[int, Dict[str, Any]] = {}
        for level, effects in (data.get("level_effects") or {}).items():
            level_effects[int(level)] = dict(effects or {})

        return cls(
            name=name,
            kind=kind,
            category=category,
            base_damage=float(data.get("base_damage", 0.0)),
            scale_pct=float(data.get("scale_pct", 0.0)),
            scale_stat=Stat.parse(str(data.get("scale_stat", "atk"))),
            damage_type=damage_type,
            element=element,
            cooldown=float(data.get("cooldown", 0.0)),
            duration=float(data.get("duration", 0.0)),
            hit_count=int(data.get("hit_count", 1)),
            hit_interval=float(data.get("hit_interval", 0.0)),
            energy_gain=None if data.get("energy_gain") is None else float(data["energy_gain"]),
            targeting=targeting,
            tags=tuple(str(t) for t in data.get("tags") or ()),
            mechanics=dict(data.get("mechanics") or {}),
            level_effects=level_effects,
        )


@dataclass(frozen=True)
class AbilityDescriptor:
    """Resolved, level-adjusted parameters for one ability use."""

    name: str
    kind: str
    category: Category
    base_damage: float
    scale_pct: float
    scale_stat: Stat
    damage_type: DamageType
    element: Element
    cooldown: float
    duration: float
    hit_count: int
    hit_interval: float
    energy_gain: float
    targeting: str
    tags: Tuple[str, ...]
    mechanics: Mapping[str, Any]

    def mechanic(self, key: str, default: Any = None) -> Any:
        return self.mechanics.get(key, default)


@dataclass
class CharacterDefinition:
    """Base numbers and ability list for one character."""

    name: str
    max_hp: float
    stats: Dict[Stat, float]
    abilities: Dict[str, AbilityDefinition]
    max_energy: float = 100.0
    resources: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CharacterDefinition":
        try:
            name = str(data["character"])
            max_hp = float(data["max_hp"])
        except KeyError as exc:
            raise ValueError(f"Character definition missing key {exc}") from None

        stats = {Stat.parse(str(k)): float(v) for k, v in (data.get("stats") or {}).items()}
        abilities: Dict[str, AbilityDefinition] = {}
        for raw in data.get("abilities") or []:
            ability = AbilityDefinition.from_dict(raw)
            if ability.name in abilities:
                raise ValueError(f"Duplicate ability '{ability.name}' for {name}")
            abilities[ability.name] = ability
        return cls(
            name=name,
            max_hp=max_hp,
            stats=stats,
            abilities=abilities,
            max_energy=float(data.get("max_energy", 100.0)),
            resources={str(k): float(v) for k, v in (data.get("resources") or {}).items()},
        )

    def basic_ability(self) -> Optional[AbilityDefinition]:
        for ability in self.abilities.values():
            if ability.category is Category.BASIC:
                return ability
        return None


def _frozen(value: Any) -> Any:
    """Read-only copy of a mechanic value: lists become tuples, dicts proxies."""

    if isinstance(value, (list, tuple)):
        return tuple(_frozen(v) for v in value)
    if isinstance(value, Mapping):
        return MappingProxyType({k: _frozen(v) for k, v in value.items()})
    return value


def resolve_descriptor(
    definition: AbilityDefinition,
    level: int = 1,
    skill_level: int = 1,
    level_scaling: Optional[float] = None,
    config: Optional[AbilityConfig] = None,
) -> AbilityDescriptor:
    """Return the descriptor for ``definition`` at the given levels.

    Base damage and scaling grow by ``level_scaling`` per skill level above
    one. ``level_effects`` thresholds at or below ``level`` apply in
    ascending order and accumulate. ``config`` (the global one when omitted)
    supplies the default ``level_scaling`` and the energy gain of
    definitions that set none.
    """

    config = config or CONFIG.abilities
    if level_scaling is None:
        level_scaling = config.level_scaling
    mult = 1.0 + (max(1, int(skill_level)) - 1) * level_scaling

    base_damage = definition.base_damage * mult
    scale_pct = definition.scale_pct * mult
    cooldown = definition.cooldown
    duration = definition.duration
    hit_count = definition.hit_count
    mechanics = dict(definition.mechanics)

    for threshold in sorted(definition.level_effects):
        if threshold > level:
            break
        effects = definition.level_effects[threshold]
        base_damage += float(effects.get("base_damage_bonus", 0.0))
        scale_pct += float(effects.get("scale_pct_bonus", 0.0))
        cooldown = max(0.0, cooldown - float(effects.get("cooldown_reduction", 0.0)))
        duration += float(effects.get("duration_bonus", 0.0))
        hit_count += int(effects.get("hit_count_bonus", 0))
        for key, value in effects.items():
            if key not in LEVEL_EFFECT_KEYS:
                mechanics[key] = value

    return AbilityDescriptor(
        name=definition.name,
        kind=definition.kind,
        category=definition.category,
        base_damage=base_damage,
        scale_pct=scale_pct,
        scale_stat=definition.scale_stat,
        damage_type=definition.damage_type,
        element=definition.element,
        cooldown=cooldown,
        duration=duration,
        hit_count=max(1, hit_count),
        hit_interval=definition.hit_interval,
        energy_gain=(
            config.default_basic.energy_gain if definition.energy_gain is None else definition.energy_gain
        ),
        targeting=definition.targeting,
        tags=definition.tags,
        mechanics=MappingProxyType({k: _frozen(v) for k, v in mechanics.items()}),
    )


def _load_file(path: Path) -> CharacterDefinition:
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"Character definition {path} is not a mapping")
    return CharacterDefinition.from_dict(raw)


def load_definitions(path: str | Path) -> Dict[str, CharacterDefinition]:
    """Load one YAML file, or every ``*.yaml`` file in a directory.

    Returns definitions keyed by character name.
    """

    p = Path(path)
    files: List[Path] = sorted(p.glob("*.yaml")) if p.is_dir() else [p]
    definitions: Dict[str, CharacterDefinition] = {}
    for file in files:
        definition = _load_file(file)
        if definition.name in definitions:
            raise ValueError(f"Character '{definition.name}' defined twice ({file})")
        definitions[definition.name] = definition
        logger.debug("Loaded %d abilities for %s from %s", len(definition.abilities), definition.name, file)
    return definitions


__all__ = [
    "Category",
    "AbilityDefinition",
    "AbilityDescriptor",
    "CharacterDefinition",
    "resolve_descriptor",
    "load_definitions",
    "LEVEL_EFFECT_KEYS",
]
