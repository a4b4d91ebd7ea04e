from __future__ import annotations

"""Knuckles: a durable bruiser whose damage reduction grows as he is hurt."""

from enum import Enum
from typing import TYPE_CHECKING, Dict, List

from battle_runtime.abilities.base import CharacterModule
from battle_runtime.abilities.decision import Decision
from battle_runtime.abilities.descriptor import AbilityDescriptor
from battle_runtime.core.actor import Actor, StatusRequest
from battle_runtime.core.components.modifiers import PassiveModifier, Stat
from battle_runtime.core.events import AbilitySequence
from battle_runtime.systems.ai import targeting
from battle_runtime.systems.ai.decision_policy import (
    AbilityRule,
    DecisionContext,
    Priority,
    PriorityPolicy,
    energy_full,
)
from battle_runtime.systems.combat.damage_types import DamageType

if TYPE_CHECKING:
    from battle_runtime.core.battle import Battle

GUARDIAN = "Guardian's Resolve"
ECHIDNA = "Echidna Resilience"
RESOLVE_STATUS = "resolve"


class KnucklesKind(Enum):
    BASIC = "basic_attack"
    MAXIMUM_HEAT = "maximum_heat"
    DRILL_CLAW = "drill_claw"
    AVALANCHE = "avalanche"


class KnucklesModifier(PassiveModifier):
    GUARDIAN_REDUCTION = ("guardian_damage_reduction", Stat.DAMAGE_REDUCTION)
    GUARDIAN_TENACITY = ("guardian_tenacity", Stat.TENACITY)
    CHANNEL_REDUCTION = ("guardian_channel_bonus", Stat.DAMAGE_REDUCTION)
    ECHIDNA_TENACITY = ("echidna_tenacity", Stat.TENACITY)
    ECHIDNA_EVASION = ("echidna_evasion", Stat.EVASION)
    ECHIDNA_ATK = ("echidna_atk_buff", Stat.ATK)


class Knuckles(CharacterModule):
    character = "Knuckles"
    Kind = KnucklesKind
    HANDLERS = {
        KnucklesKind.BASIC: "basic_attack",
        KnucklesKind.MAXIMUM_HEAT: "maximum_heat",
        KnucklesKind.DRILL_CLAW: "drill_claw",
        KnucklesKind.AVALANCHE: "avalanche",
    }

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------
    def build_policy(self) -> PriorityPolicy:
        drill = self.static_mechanics(KnucklesKind.DRILL_CLAW)
        ult = self.static_mechanics(KnucklesKind.AVALANCHE)
        drill_radius = float(drill.get("cluster_radius", 120))
        ult_radius = float(ult.get("cluster_radius", 140))

        def drill_target(ctx: DecisionContext) -> List[Actor]:
            best = targeting.highest_max_hp(ctx.enemies)
            if best is None or len(targeting.within_radius(best, ctx.enemies, drill_radius)) < 2:
                return []
            return [best]

        def lowest_def(ctx: DecisionContext) -> List[Actor]:
            target = targeting.lowest_defense(ctx.enemies)
            return [target] if target is not None else []

        rules = []
        ult_name = self.ability_name(KnucklesKind.AVALANCHE)
        if ult_name:
            rules.append(
                AbilityRule(
                    ult_name,
                    Priority.ULTIMATE,
                    targets=lambda ctx: targeting.densest_cluster(ctx.enemies, ult_radius),
                    condition=energy_full,
                )
            )
        drill_name = self.ability_name(KnucklesKind.DRILL_CLAW)
        if drill_name:
            rules.append(AbilityRule(drill_name, Priority.OPPORTUNISTIC, targets=drill_target))
        heat_name = self.ability_name(KnucklesKind.MAXIMUM_HEAT)
        if heat_name:
            rules.append(AbilityRule(heat_name, Priority.OPPORTUNISTIC, targets=lowest_def))
        return PriorityPolicy(rules, self.ability_name(KnucklesKind.BASIC))

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------
    def basic_attack(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> None:
        target = decision.primary
        battle.ui.show_projectile(actor, target, descriptor.element.value)
        battle.executor.strike(battle, actor, target, descriptor)

    def maximum_heat(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> None:
        target = decision.primary
        ex = battle.executor
        result = ex.strike(battle, actor, target, descriptor)
        battle.ui.play_vfx(target, "vfx-slash-heavy")
        if result is None or target.is_dead:
            return

        chance = float(descriptor.mechanic("burn_chance", 0.10))
        if actor.hp_fraction < float(descriptor.mechanic("empower_below_hp", 0.5)):
            chance *= 2
        if battle.rng.random() < chance:
            per_sec = max(1.0, actor.effective_stat(Stat.ATK) * float(descriptor.mechanic("burn_pct_of_atk", 0.02)))
            ex.apply_status(
                battle,
                actor,
                target,
                StatusRequest(
                    type="burn",
                    duration=float(descriptor.mechanic("burn_duration", 3)),
                    value=per_sec,
                    source=descriptor.name,
                ),
            )
            battle.ui.show_floating_text(target, "BURN", "status-text")

    def drill_claw(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> None:
        primary = decision.primary
        ex = battle.executor
        radius = float(descriptor.mechanic("aoe_radius", 100))
        battle.ui.play_vfx(primary, "vfx-earth")
        for enemy in targeting.within_radius(primary, battle.enemies_of(actor), radius):
            if ex.strike(battle, actor, enemy, descriptor) is None or enemy.is_dead:
                continue
            ex.apply_status(
                battle,
                actor,
                enemy,
                StatusRequest(
                    type="stun",
                    duration=float(descriptor.mechanic("stun_duration", 1.0)),
                    source=descriptor.name,
                ),
            )
            ex.apply_status(
                battle,
                actor,
                enemy,
                StatusRequest(
                    type="debuff_def",
                    duration=float(descriptor.mechanic("def_reduce_duration", 4)),
                    value=float(descriptor.mechanic("def_reduce_pct", 0.12)),
                    source=descriptor.name,
                ),
            )

    def avalanche(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> AbilitySequence:
        ex = battle.executor
        for kind in ("cc_immune", "channel"):
            ex.apply_status(
                battle,
                actor,
                actor,
                StatusRequest(type=kind, duration=descriptor.duration, source=descriptor.name),
            )
        battle.ui.play_vfx(actor, "vfx-fire-storm")
        return self._avalanche_waves(battle, actor, decision.primary, descriptor)

    def _avalanche_waves(
        self, battle: Battle, actor: Actor, center: Actor, descriptor: AbilityDescriptor
    ) -> AbilitySequence:
        ex = battle.executor
        radius = float(descriptor.mechanic("aoe_radius", 220))
        cluster_radius = float(descriptor.mechanic("cluster_radius", 140))
        for wave in range(descriptor.hit_count):
            if actor.is_dead:
                return
            if center.is_dead:
                cluster = targeting.densest_cluster(battle.enemies_of(actor), cluster_radius)
                if not cluster:
                    break
                center = cluster[0]
            for enemy in targeting.within_radius(center, battle.enemies_of(actor), radius):
                if ex.strike(battle, actor, enemy, descriptor, damage_type=DamageType.PHYSICAL) is None:
                    continue
                ex.apply_status(
                    battle,
                    actor,
                    enemy,
                    StatusRequest(
                        type="slow",
                        duration=float(descriptor.mechanic("slow_duration", 1.0)),
                        value=float(descriptor.mechanic("slow_pct", 0.30)),
                        source=descriptor.name,
                    ),
                )
            if wave < descriptor.hit_count - 1:
                yield descriptor.hit_interval
        actor.statuses.remove("channel", descriptor.name)

    # ------------------------------------------------------------------
    # Passives
    # ------------------------------------------------------------------
    def compute_modifiers(self, actor: Actor, battle: Battle) -> Dict[KnucklesModifier, float]:
        mods: Dict[KnucklesModifier, float] = {}
        hp = actor.hp_fraction

        guardian = self.passive(GUARDIAN, actor)
        if guardian:
            steps = int((1.0 - hp) / 0.25 + 1e-9)
            extra = min(float(guardian["max_additional"]), steps * float(guardian["per_quarter_missing"]))
            mods[KnucklesModifier.GUARDIAN_REDUCTION] = float(guardian["base_reduction"]) + extra
            if actor.statuses.has(RESOLVE_STATUS):
                mods[KnucklesModifier.GUARDIAN_TENACITY] = float(guardian["low_hp_tenacity"])

        if actor.statuses.has("channel"):
            ult = self.static_mechanics(KnucklesKind.AVALANCHE)
            mods[KnucklesModifier.CHANNEL_REDUCTION] = float(ult.get("channel_damage_reduction", 0.10))

        echidna = self.passive(ECHIDNA, actor)
        if echidna:
            mods[KnucklesModifier.ECHIDNA_TENACITY] = float(echidna["base_tenacity"])
            mods[KnucklesModifier.ECHIDNA_EVASION] = float(echidna["base_evasion"])
            if hp >= float(echidna["high_hp_threshold"]):
                mods[KnucklesModifier.ECHIDNA_ATK] = float(echidna["atk_buff_high_hp"])
        return mods

    def react(self, actor: Actor, dt: float, battle: Battle) -> None:
        guardian = self.passive(GUARDIAN, actor)
        if guardian and actor.hp_fraction <= float(guardian["low_hp_threshold"]):
            # Keeps the tenacity bonus for a few seconds after recovering.
            actor.apply_status(
                StatusRequest(
                    type=RESOLVE_STATUS,
                    duration=float(guardian["tenacity_window"]),
                    source=GUARDIAN,
                )
            )


__all__ = ["Knuckles", "KnucklesKind", "KnucklesModifier"]
