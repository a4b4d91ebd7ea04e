from __future__ import annotations

"""Aang: stance-cycling skirmisher with a self-healing safety net."""

from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from battle_runtime.abilities.base import CharacterModule
from battle_runtime.abilities.decision import Decision
from battle_runtime.abilities.descriptor import AbilityDescriptor, CharacterDefinition
from battle_runtime.core.actor import Actor, ActionResult, StatusRequest
from battle_runtime.core.components.modifiers import PassiveModifier, Stat
from battle_runtime.core.components.status_effects import StatusEffect
from battle_runtime.core.events import AbilitySequence
from battle_runtime.systems.ai import targeting
from battle_runtime.systems.ai.decision_policy import (
    AbilityRule,
    DecisionContext,
    Priority,
    PriorityPolicy,
    energy_full,
)

if TYPE_CHECKING:
    from battle_runtime.core.battle import Battle

STANCES = ("Air", "Water", "Earth", "Fire")
RESILIENCE = "Avatar's Resilience"
FOOTWORK = "Nomad's Light Footwork"


class AangKind(Enum):
    BASIC = "basic_attack"
    AIRBENDING_JAB = "airbending_jab"
    AIRBENDING_SWIFTNESS = "airbending_swiftness"
    ELEMENTAL_SHIFT = "elemental_shift"
    TORNADO_STRIKE = "tornado_strike"


class AangModifier(PassiveModifier):
    STANCE_EVASION = ("stance_evasion", Stat.EVASION)
    STANCE_SPEED = ("stance_speed", Stat.SPEED)
    STANCE_DEF = ("stance_def", Stat.DEF)
    STANCE_ATK = ("stance_atk", Stat.ATK)
    FOOTWORK_EVASION = ("footwork_evasion", Stat.EVASION)
    FOOTWORK_TENACITY = ("footwork_tenacity", Stat.TENACITY)


class Aang(CharacterModule):
    character = "Aang"
    Kind = AangKind
    HANDLERS = {
        AangKind.BASIC: "basic_attack",
        AangKind.AIRBENDING_JAB: "airbending_jab",
        AangKind.AIRBENDING_SWIFTNESS: "airbending_swiftness",
        AangKind.ELEMENTAL_SHIFT: "elemental_shift",
        AangKind.TORNADO_STRIKE: "tornado_strike",
    }

    def __init__(self, definition: CharacterDefinition) -> None:
        # actor id -> last stance taken, so the cycle resumes after a lapse
        self._last_stance: Dict[int, str] = {}
        super().__init__(definition)

    def build_policy(self) -> PriorityPolicy:
        tornado = self.static_mechanics(AangKind.TORNADO_STRIKE)
        swiftness = self.static_mechanics(AangKind.AIRBENDING_SWIFTNESS)
        shift = self.static_mechanics(AangKind.ELEMENTAL_SHIFT)
        radius = float(tornado.get("radius", 300))
        swift_below = float(swiftness.get("hp_below", 0.6))
        refresh_below = float(shift.get("refresh_below", 1.0))

        def stance_lapsing(ctx: DecisionContext) -> bool:
            stance = self.current_stance(ctx.actor)
            return stance is None or stance.duration < refresh_below

        def in_tornado(ctx: DecisionContext) -> List[Actor]:
            return targeting.within_radius(ctx.actor, ctx.enemies, radius)

        rules = []
        name = self.ability_name(AangKind.TORNADO_STRIKE)
        if name:
            rules.append(AbilityRule(name, Priority.ULTIMATE, targets=in_tornado, condition=energy_full))
        name = self.ability_name(AangKind.ELEMENTAL_SHIFT)
        if name:
            rules.append(
                AbilityRule(name, Priority.MAINTENANCE, targets=lambda ctx: [ctx.actor], condition=stance_lapsing)
            )
        name = self.ability_name(AangKind.AIRBENDING_SWIFTNESS)
        if name:
            rules.append(
                AbilityRule(
                    name,
                    Priority.MAINTENANCE,
                    targets=lambda ctx: [ctx.actor],
                    condition=lambda ctx: ctx.actor.hp_fraction < swift_below,
                )
            )
        name = self.ability_name(AangKind.AIRBENDING_JAB)
        if name:
            rules.append(AbilityRule(name, Priority.OPPORTUNISTIC))
        return PriorityPolicy(rules, self.ability_name(AangKind.BASIC))

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------
    def basic_attack(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> None:
        target = decision.primary
        battle.executor.strike(battle, actor, target, descriptor)
        battle.ui.play_vfx(target, "vfx-fire")

    def airbending_jab(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> AbilitySequence:
        target = decision.primary
        chance = float(descriptor.mechanic("stagger_chance", 0.15))

        def stagger(index: int, result: ActionResult) -> None:
            if target.is_alive and battle.rng.random() < chance:
                battle.executor.apply_status(
                    battle,
                    actor,
                    target,
                    StatusRequest(
                        type="stun",
                        name="Stagger",
                        duration=float(descriptor.mechanic("stagger_duration", 0.5)),
                        source=descriptor.name,
                    ),
                )
                battle.ui.show_floating_text(target, "STAGGERED", "status-text")

        return battle.executor.multi_hit(battle, actor, target, descriptor, on_hit=stagger)

    def airbending_swiftness(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> None:
        ex = battle.executor
        battle.ui.show_floating_text(actor, "AIR SCOOTER!", "status-text buff")
        battle.ui.play_vfx(actor, "vfx-wind")
        dash_target = targeting.nearest(actor, battle.enemies_of(actor))
        if dash_target is not None:
            ex.strike(battle, actor, dash_target, descriptor)
        for kind, key in (("buff_speed", "speed_buff"), ("buff_evasion", "evasion_buff")):
            ex.apply_status(
                battle,
                actor,
                actor,
                StatusRequest(
                    type=kind,
                    duration=descriptor.duration,
                    value=float(descriptor.mechanic(key, 0.0)),
                    source=descriptor.name,
                ),
            )
        shield_pct = float(descriptor.mechanic("shield_pct", 0.0))
        if shield_pct > 0:
            ex.shield(battle, actor, actor, actor.max_hp * shield_pct, descriptor.duration, descriptor.name)

    def elemental_shift(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> None:
        last = self._last_stance.get(actor.actor_id)
        stance = STANCES[0] if last is None else STANCES[(STANCES.index(last) + 1) % len(STANCES)]
        self._last_stance[actor.actor_id] = stance
        battle.executor.apply_status(
            battle,
            actor,
            actor,
            StatusRequest(type="stance", name=stance, duration=descriptor.duration, source=descriptor.name),
        )
        battle.ui.show_floating_text(actor, f"{stance.upper()} STANCE", "status-text buff")
        battle.ui.play_vfx(actor, "vfx-magic")

    def tornado_strike(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> None:
        ex = battle.executor
        battle.ui.announce("AVATAR STATE!")
        battle.ui.play_vfx(actor, "vfx-fire-storm")
        buff = float(descriptor.mechanic("avatar_state_buff", 0.30))
        for kind in ("buff_atk", "buff_magic_atk"):
            ex.apply_status(
                battle,
                actor,
                actor,
                StatusRequest(type=kind, duration=descriptor.duration, value=buff, source=descriptor.name),
            )
        ex.apply_status(
            battle,
            actor,
            actor,
            StatusRequest(type="cc_immune", duration=descriptor.duration, source=descriptor.name),
        )

        pull = float(descriptor.mechanic("pull", 0.5))
        for enemy in decision.targets:
            enemy.x += (actor.x - enemy.x) * pull
            enemy.y += (actor.y - enemy.y) * pull
            if ex.strike(battle, actor, enemy, descriptor) is None or enemy.is_dead:
                continue
            ex.apply_status(
                battle,
                actor,
                enemy,
                StatusRequest(
                    type="stun",
                    duration=float(descriptor.mechanic("stun_duration", 1.5)),
                    source=descriptor.name,
                ),
            )

    # ------------------------------------------------------------------
    # Passives
    # ------------------------------------------------------------------
    def current_stance(self, actor: Actor) -> Optional[StatusEffect]:
        stances = actor.statuses.query("stance")
        return stances[0] if stances else None

    def _stance_mechanics(self, actor: Actor) -> Dict[str, float]:
        descriptor = self.get_parsed_ability(self.ability_name(AangKind.ELEMENTAL_SHIFT), actor)
        return dict(descriptor.mechanics) if descriptor is not None else {}

    def on_status_expired(self, actor: Actor, effect: StatusEffect, battle: Battle) -> None:
        if effect.kind == "stance":
            battle.ui.show_floating_text(actor, f"{effect.name.upper()} FADES", "status-text")

    def apply_regen(self, actor: Actor, dt: float, battle: Battle) -> None:
        ex = battle.executor
        resilience = self.passive(RESILIENCE, actor)
        if resilience:
            ex.heal(battle, actor, actor, actor.max_hp * float(resilience["regen_pct"]) * dt, RESILIENCE)

        stance = self.current_stance(actor)
        if stance is not None and stance.name == "Water":
            rate = float(self._stance_mechanics(actor).get("water_regen", 0.03))
            ex.heal(battle, actor, actor, actor.max_hp * rate * dt, stance.source_name)

    def compute_modifiers(self, actor: Actor, battle: Battle) -> Dict[AangModifier, float]:
        mods: Dict[AangModifier, float] = {}
        stance = self.current_stance(actor)
        if stance is not None:
            values = self._stance_mechanics(actor)
            if stance.name == "Air":
                mods[AangModifier.STANCE_EVASION] = float(values.get("air_evasion", 0.0))
                mods[AangModifier.STANCE_SPEED] = float(values.get("air_speed", 0.0))
            elif stance.name == "Earth":
                mods[AangModifier.STANCE_DEF] = float(values.get("earth_def", 0.0))
            elif stance.name == "Fire":
                mods[AangModifier.STANCE_ATK] = float(values.get("fire_atk", 0.0))

        footwork = self.passive(FOOTWORK, actor)
        if footwork:
            mods[AangModifier.FOOTWORK_EVASION] = float(footwork["evasion"])
            mods[AangModifier.FOOTWORK_TENACITY] = float(footwork["tenacity"])
        return mods

    def react(self, actor: Actor, dt: float, battle: Battle) -> None:
        resilience = self.passive(RESILIENCE, actor)
        if not resilience or actor.hp_fraction >= float(resilience["threshold"]):
            return
        # The internal cooldown lives in the cooldown tracker under the passive's name.
        if not actor.cooldowns.is_ready(RESILIENCE):
            return
        ex = battle.executor
        ex.heal(battle, actor, actor, actor.max_hp * float(resilience["emergency_heal"]), RESILIENCE)
        ex.apply_status(
            battle,
            actor,
            actor,
            StatusRequest(
                type="buff_damage_reduction",
                duration=float(resilience["damage_reduction_duration"]),
                value=float(resilience["damage_reduction"]),
                source=RESILIENCE,
            ),
        )
        actor.cooldowns.start(RESILIENCE, float(resilience["internal_cooldown"]))
        battle.ui.show_floating_text(actor, "SPIRIT WATER!", "status-text heal")
        battle.ui.play_vfx(actor, "vfx-heal")


__all__ = ["Aang", "AangKind", "AangModifier", "STANCES"]
