"""Battle participant and the boundary calls ability modules make on it."""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from .components.modifiers import PERCENT_STATS, PassiveModifier, Stat
from .components.resources import ResourcePool
from .components.status_effects import EPSILON, StackPolicy, StatusEffect, StatusEffectStore
from ..systems.ability.cooldowns import CooldownTracker
from ..systems.combat.damage_types import DamageType, EffectType, Element

# Status kinds blocked by ``cc_immune`` and shortened by tenacity.
CC_KINDS = frozenset({"stun", "slow", "knockback", "silence"})
MAX_DAMAGE_REDUCTION = 0.9
MAX_TENACITY = 75.0

_actor_ids = itertools.count(1)


@dataclass(slots=True)
class ActionRequest:
    """Damage, heal or shield handed to :meth:`Actor.receive_action`.

    Hit rolls (``attacker_accuracy`` against the target's ``Stat.EVASION``)
    belong to the host engine; :meth:`Actor.receive_action` treats every
    request as a hit.
    """

    amount: float
    type: DamageType = DamageType.PHYSICAL
    element: Element = Element.PHYSICAL
    is_crit: bool = False
    effect_type: EffectType = EffectType.DAMAGE
    attacker_accuracy: float = 0.0
    source_name: str = ""
    duration: float = math.inf


@dataclass(slots=True)
class ActionResult:
    """Amount actually applied after mitigation."""

    amount: float
    is_crit: bool = False
    absorbed: float = 0.0
    killed: bool = False


@dataclass(slots=True)
class StatusRequest:
    """Status application as issued by ability code."""

    type: str
    name: str = ""
    duration: float = math.inf
    value: float = 0.0
    stack_limit: int = 1
    apply_to: str = "target"
    source: str = ""
    params: Dict[str, object] = field(default_factory=dict)


class Actor:
    """One battle participant.

    Owns its status store, resource pool and cooldown tracker exclusively;
    other actors change them only through the methods below.
    """

    def __init__(
        self,
        name: str,
        team: str,
        *,
        max_hp: float,
        stats: Mapping[Stat, float] | None = None,
        character: str | None = None,
        level: int = 1,
        skill_levels: Mapping[str, int] | None = None,
        abilities: Iterable[str] = (),
        max_energy: float = 100.0,
        energy: float = 0.0,
        x: float = 0.0,
        y: float = 0.0,
        status_policies: Mapping[str, StackPolicy] | None = None,
        default_resource_cap: float = 999.0,
    ) -> None:
        self.actor_id: int = next(_actor_ids)
        self.name = name
        self.team = team
        self.character = character or name
        self.level = level
        self.skill_levels: Dict[str, int] = dict(skill_levels or {})
        self.abilities: List[str] = list(abilities)

        self.max_hp = float(max_hp)
        self.current_hp = float(max_hp)
        self.max_energy = float(max_energy)
        self.energy = float(energy)
        self.base_stats: Dict[Stat, float] = dict(stats or {})
        self.x = x
        self.y = y

        self.statuses = StatusEffectStore(status_policies)
        self.resources = ResourcePool(default_resource_cap)
        self.cooldowns = CooldownTracker()
        # Replaced wholesale on every passive tick.
        self.passive_modifiers: Dict[PassiveModifier, float] = {}

        self.is_removed = False
        self.action_gauge = 0.0
        self.last_combat_time = -math.inf

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------
    @property
    def is_dead(self) -> bool:
        return self.is_removed or self.current_hp <= 0

    @property
    def is_alive(self) -> bool:
        return not self.is_dead

    @property
    def hp_fraction(self) -> float:
        if self.max_hp <= 0:
            return 0.0
        return self.current_hp / self.max_hp

    @property
    def cooldown_timers(self) -> Dict[str, float]:
        """Direct view into the cooldown tracker."""

        return self.cooldowns.timers

    def skill_level(self, ability: str) -> int:
        return int(self.skill_levels.get(ability, 1))

    def distance_to(self, other: "Actor") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def in_combat(self, now: float, timeout: float) -> bool:
        return now - self.last_combat_time < timeout

    # ------------------------------------------------------------------
    # Stat aggregation
    # ------------------------------------------------------------------
    def effective_stat(self, stat: Stat) -> float:
        """Return ``stat`` after passive modifiers and status effects."""

        base = self.base_stats.get(stat, 0.0)
        bonus = sum(v for key, v in self.passive_modifiers.items() if key.stat is stat)
        bonus += self._status_bonus(stat)
        if stat in PERCENT_STATS:
            return max(0.0, base * (1.0 + bonus))
        return base + bonus

    def _status_bonus(self, stat: Stat) -> float:
        bonus = 0.0
        for effect in self.statuses:
            if effect.kind == f"buff_{stat.value}":
                bonus += abs(effect.total_magnitude)
            elif effect.kind == f"debuff_{stat.value}":
                bonus -= abs(effect.total_magnitude)
            elif effect.kind == "slow" and stat is Stat.SPEED:
                bonus -= abs(effect.magnitude)
            elif effect.kind == "vulnerability" and stat is Stat.VULNERABILITY:
                bonus += abs(effect.total_magnitude)
            elif effect.kind == "reduced_healing" and stat is Stat.HEALING_RECEIVED:
                bonus -= abs(effect.total_magnitude)
            for key, value in dict(effect.params.get("modifiers", {})).items():
                if Stat.parse(str(key)) is stat:
                    bonus += float(value) * effect.stack_count
        return bonus

    # ------------------------------------------------------------------
    # Boundary API used by ability modules
    # ------------------------------------------------------------------
    def receive_action(self, request: ActionRequest) -> ActionResult:
        """Resolve damage, healing or a shield against this actor.

        Evasion is never rolled here; the host engine filters misses
        before calling in.
        """

        if self.is_dead:
            return ActionResult(amount=0.0, is_crit=request.is_crit)

        if request.effect_type is EffectType.HEAL:
            scale = max(0.0, 1.0 + self.effective_stat(Stat.HEALING_RECEIVED))
            healed = min(self.max_hp - self.current_hp, max(0.0, request.amount) * scale)
            self.current_hp += healed
            return ActionResult(amount=healed, is_crit=request.is_crit)

        if request.effect_type is EffectType.SHIELD:
            value = max(0.0, request.amount)
            self.statuses.apply(
                StatusEffect(
                    kind="shield",
                    source_name=request.source_name or "shield",
                    duration=request.duration,
                    magnitude=value,
                )
            )
            return ActionResult(amount=value, is_crit=request.is_crit)

        amount = max(0.0, request.amount)
        if request.type is DamageType.PHYSICAL:
            amount *= 100.0 / (100.0 + max(0.0, self.effective_stat(Stat.DEF)))
        elif request.type is DamageType.MAGIC:
            amount *= 100.0 / (100.0 + max(0.0, self.effective_stat(Stat.MAGIC_DEF)))
        reduction = min(MAX_DAMAGE_REDUCTION, max(0.0, self.effective_stat(Stat.DAMAGE_REDUCTION)))
        amount *= (1.0 - reduction) * (1.0 + max(0.0, self.effective_stat(Stat.VULNERABILITY)))

        absorbed = self._absorb(amount)
        dealt = min(self.current_hp, amount - absorbed)
        self.current_hp -= dealt
        return ActionResult(
            amount=dealt,
            is_crit=request.is_crit,
            absorbed=absorbed,
            killed=self.current_hp <= 0,
        )

    def apply_status(self, request: StatusRequest) -> Optional[StatusEffect]:
        """Hand ``request`` to the status store; no-op on a dead actor."""

        if self.is_dead:
            return None
        duration = request.duration
        if request.type in CC_KINDS:
            if self.statuses.has("cc_immune"):
                return None
            if not math.isinf(duration):
                tenacity = min(MAX_TENACITY, max(0.0, self.effective_stat(Stat.TENACITY)))
                duration *= 1.0 - tenacity / 100.0
        effect = StatusEffect(
            kind=request.type,
            source_name=request.source or request.name or request.type,
            duration=duration,
            magnitude=request.value,
            stack_limit=request.stack_limit,
            name=request.name,
            params=dict(request.params),
        )
        return self.statuses.apply(effect)

    def add_resource(self, name: str, amount: float, cap: float | None = None) -> float:
        return self.resources.add(name, amount, cap)

    def consume_resource(self, name: str, amount: float) -> float:
        return self.resources.consume(name, amount)

    def get_resource(self, name: str) -> float:
        return self.resources.get(name)

    def gain_energy(self, amount: float) -> float:
        self.energy = min(self.max_energy, max(0.0, self.energy + amount))
        return self.energy

    def remove(self) -> None:
        """Take the actor off the field without killing it."""

        self.is_removed = True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _absorb(self, amount: float) -> float:
        remaining = amount
        for shield in self.statuses.query("shield"):
            if remaining <= 0:
                break
            take = min(shield.magnitude, remaining)
            shield.magnitude -= take
            remaining -= take
            if shield.magnitude <= EPSILON:
                self.statuses.remove("shield", shield.source_name)
        return amount - remaining

    def __repr__(self) -> str:
        return (
            f"Actor({self.name!r}, team={self.team!r}, "
            f"hp={self.current_hp:.0f}/{self.max_hp:.0f})"
        )


__all__ = ["Actor", "ActionRequest", "ActionResult", "StatusRequest", "CC_KINDS"]
