from __future__ import annotations

"""Ridley: builds Fury from damage taken and deaths, transforming at thresholds."""

import math
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from battle_runtime.abilities.base import CharacterModule, HandlerResult
from battle_runtime.abilities.decision import Decision
from battle_runtime.abilities.descriptor import AbilityDescriptor, CharacterDefinition
from battle_runtime.core.actor import Actor, StatusRequest
from battle_runtime.core.components.modifiers import Stat
from battle_runtime.core.events import AbilitySequence
from battle_runtime.persistence.event_log import FORM_CHANGED
from battle_runtime.systems.ai import targeting
from battle_runtime.systems.ai.decision_policy import (
    AbilityRule,
    DecisionContext,
    Priority,
    PriorityPolicy,
)
from battle_runtime.systems.combat.damage_types import DamageType, Element

if TYPE_CHECKING:
    from battle_runtime.core.battle import Battle

FURY = "Fury"
ADAPTIVE_FURY = "Adaptive Fury"
META_FORM = "Meta Ridley"
OMEGA_FORM = "Omega Ridley"


class RidleyKind(Enum):
    BASIC = "basic_attack"
    PLASMA_BREATH = "plasma_breath"
    WING_BUFFET = "wing_buffet"
    PLASMA_DIVEBOMB = "plasma_divebomb"


class Ridley(CharacterModule):
    character = "Ridley"
    Kind = RidleyKind
    HANDLERS = {
        RidleyKind.BASIC: "basic_attack",
        RidleyKind.PLASMA_BREATH: "plasma_breath",
        RidleyKind.WING_BUFFET: "wing_buffet",
        RidleyKind.PLASMA_DIVEBOMB: "plasma_divebomb",
    }
    RESOURCE_DECAY = {FURY: 5.0}

    def __init__(self, definition: CharacterDefinition) -> None:
        # Per-actor bookkeeping for Fury gain, keyed by actor id.
        self._last_hp: Dict[int, float] = {}
        self._deaths_seen: Dict[int, int] = {}
        super().__init__(definition)

    def build_policy(self) -> PriorityPolicy:
        ult = self.static_mechanics(RidleyKind.PLASMA_DIVEBOMB)
        wing = self.static_mechanics(RidleyKind.WING_BUFFET)
        breath = self.static_mechanics(RidleyKind.PLASMA_BREATH)
        required = float(ult.get("required_fury", 100))
        cluster_radius = float(ult.get("cluster_radius", 200))
        low_hp = float(wing.get("low_hp", 0.55))
        breath_range = float(breath.get("range", 220))
        min_targets = int(breath.get("min_targets", 2))

        def weakest(ctx: DecisionContext) -> List[Actor]:
            target = targeting.lowest_hp_fraction(ctx.enemies)
            return [target] if target is not None else []

        def breath_targets(ctx: DecisionContext) -> List[Actor]:
            if len(targeting.within_radius(ctx.actor, ctx.enemies, breath_range)) < min_targets:
                return []
            target = targeting.nearest(ctx.actor, ctx.enemies)
            return [target] if target is not None else []

        rules = []
        name = self.ability_name(RidleyKind.PLASMA_DIVEBOMB)
        if name:
            rules.append(
                AbilityRule(
                    name,
                    Priority.ULTIMATE,
                    targets=lambda ctx: targeting.densest_cluster(ctx.enemies, cluster_radius)[:1],
                    condition=lambda ctx: ctx.energy_full and ctx.resource(FURY) >= required,
                )
            )
        name = self.ability_name(RidleyKind.WING_BUFFET)
        if name:
            rules.append(
                AbilityRule(
                    name,
                    Priority.MAINTENANCE,
                    targets=weakest,
                    condition=lambda ctx: ctx.actor.hp_fraction < low_hp,
                )
            )
        name = self.ability_name(RidleyKind.PLASMA_BREATH)
        if name:
            rules.append(AbilityRule(name, Priority.OPPORTUNISTIC, targets=breath_targets))
        return PriorityPolicy(rules, self.ability_name(RidleyKind.BASIC), basic_targets=weakest)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------
    def basic_attack(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> None:
        battle.ui.show_projectile(actor, decision.primary, descriptor.element.value)
        battle.executor.strike(battle, actor, decision.primary, descriptor)

    def plasma_breath(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> AbilitySequence:
        battle.ui.play_vfx(actor, "vfx-fire-storm")
        return self._breath_volleys(battle, actor, descriptor)

    def _breath_volleys(self, battle: Battle, actor: Actor, descriptor: AbilityDescriptor) -> AbilitySequence:
        ex = battle.executor
        reach = float(descriptor.mechanic("range", 220))
        burn = StatusRequest(
            type="burn",
            name=str(descriptor.mechanic("burn_name", "Minor Burn")),
            duration=float(descriptor.mechanic("burn_duration", 3)),
            value=float(descriptor.mechanic("burn_value", 5)),
            source=descriptor.name,
        )
        for volley in range(descriptor.hit_count):
            for enemy in targeting.within_radius(actor, battle.enemies_of(actor), reach):
                if ex.strike(battle, actor, enemy, descriptor) is not None and enemy.is_alive:
                    ex.apply_status(battle, actor, enemy, burn)
                    battle.ui.play_vfx(enemy, "vfx-fire")
            if volley < descriptor.hit_count - 1:
                yield descriptor.hit_interval

    def wing_buffet(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> None:
        ex = battle.executor
        reach_x = float(descriptor.mechanic("reach_x", 120))
        reach_y = float(descriptor.mechanic("reach_y", 60))
        battle.ui.play_vfx(actor, "vfx-slash")
        for enemy in battle.enemies_of(actor):
            if abs(enemy.x - actor.x) >= reach_x or abs(enemy.y - actor.y) >= reach_y:
                continue
            if ex.strike(battle, actor, enemy, descriptor) is None:
                continue
            ex.apply_status(
                battle,
                actor,
                enemy,
                StatusRequest(
                    type="knockback",
                    duration=float(descriptor.mechanic("knockback_duration", 0.3)),
                    source=descriptor.name,
                ),
            )
        if self.current_form(actor) == OMEGA_FORM:
            ex.shield(
                battle,
                actor,
                actor,
                actor.max_hp * float(descriptor.mechanic("shield_pct", 0.10)),
                float(descriptor.mechanic("shield_duration", 4)),
                descriptor.name,
            )

    def plasma_divebomb(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> HandlerResult:
        if actor.get_resource(FURY) < float(descriptor.mechanic("required_fury", 100)):
            return False
        battle.executor.apply_status(
            battle,
            actor,
            actor,
            StatusRequest(type="channel", duration=descriptor.duration, source=descriptor.name),
        )
        battle.ui.play_vfx(actor, "vfx-explosion")
        return self._divebomb_impact(battle, actor, decision.primary, descriptor)

    def _divebomb_impact(
        self, battle: Battle, actor: Actor, center: Actor, descriptor: AbilityDescriptor
    ) -> AbilitySequence:
        yield descriptor.duration
        actor.statuses.remove("channel", descriptor.name)
        ex = battle.executor
        enemies = battle.enemies_of(actor)
        if center.is_dead:
            cluster = targeting.densest_cluster(enemies, float(descriptor.mechanic("cluster_radius", 200)))
            center = cluster[0] if cluster else None
        if center is not None:
            magic = float(descriptor.mechanic("magic_base", 80)) + actor.effective_stat(Stat.MAGIC_ATK) * float(
                descriptor.mechanic("magic_scale_pct", 0.4)
            )
            for enemy in targeting.within_radius(center, enemies, float(descriptor.mechanic("radius", 220))):
                ex.strike(battle, actor, enemy, descriptor)
                ex.strike(
                    battle, actor, enemy, descriptor, amount=magic, damage_type=DamageType.MAGIC, element=Element.FIRE
                )
                if enemy.is_dead:
                    continue
                ex.apply_status(
                    battle,
                    actor,
                    enemy,
                    StatusRequest(
                        type="burn",
                        name="Heatwave",
                        duration=float(descriptor.mechanic("heatwave_duration", 5)),
                        value=float(descriptor.mechanic("heatwave_value", 30)),
                        source=descriptor.name,
                    ),
                )
                ex.apply_status(
                    battle,
                    actor,
                    enemy,
                    StatusRequest(
                        type="debuff_speed",
                        duration=float(descriptor.mechanic("slow_duration", 3)),
                        value=float(descriptor.mechanic("slow_value", 0.40)),
                        source=descriptor.name,
                    ),
                )
        self.add_resource(battle, actor, FURY, -actor.get_resource(FURY))

    # ------------------------------------------------------------------
    # Passives
    # ------------------------------------------------------------------
    @staticmethod
    def current_form(actor: Actor) -> Optional[str]:
        effect = actor.statuses.get("form", ADAPTIVE_FURY)
        return effect.name if effect is not None else None

    def react(self, actor: Actor, dt: float, battle: Battle) -> None:
        fury = self.passive(ADAPTIVE_FURY, actor)
        if not fury:
            return
        cap = float(fury["fury_cap"])

        last = self._last_hp.setdefault(actor.actor_id, actor.current_hp)
        lost = last - actor.current_hp
        if lost > 0:
            gained = math.floor(lost / actor.max_hp * 100 * float(fury["fury_per_hp_pct"]))
            if gained > 0:
                self.add_resource(battle, actor, FURY, gained, cap)
                self._last_hp[actor.actor_id] = actor.current_hp
        else:
            self._last_hp[actor.actor_id] = actor.current_hp

        seen = self._deaths_seen.setdefault(actor.actor_id, battle.death_count)
        if battle.death_count > seen:
            self.add_resource(battle, actor, FURY, float(fury["fury_on_death"]) * (battle.death_count - seen), cap)
            self._deaths_seen[actor.actor_id] = battle.death_count

        self._update_form(actor, battle, float(fury["meta_threshold"]), float(fury["omega_threshold"]))

    def _update_form(self, actor: Actor, battle: Battle, meta: float, omega: float) -> None:
        value = actor.get_resource(FURY)
        if value >= omega:
            form = OMEGA_FORM
        elif value >= meta:
            form = META_FORM
        else:
            form = None
        previous = self.current_form(actor)
        if form == previous:
            return
        if form is None:
            actor.statuses.remove("form", ADAPTIVE_FURY)
        else:
            actor.apply_status(StatusRequest(type="form", name=form, source=ADAPTIVE_FURY))
        battle.log(FORM_CHANGED, {"actor": actor.actor_id, "from": previous, "to": form})
        if form is not None:
            battle.ui.show_floating_text(actor, form.upper(), "status-text buff")


__all__ = ["Ridley", "RidleyKind", "FURY"]
