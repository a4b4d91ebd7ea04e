from __future__ import annotations

"""Dandy: support bruiser spending Ichor Reserves on a timed transformation."""

from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, Dict, List, Optional

from battle_runtime.abilities.base import CharacterModule, HandlerResult
from battle_runtime.abilities.decision import Decision
from battle_runtime.abilities.descriptor import AbilityDescriptor, CharacterDefinition
from battle_runtime.core.actor import Actor, StatusRequest
from battle_runtime.core.components.modifiers import PassiveModifier, Stat
from battle_runtime.core.components.status_effects import StatusEffect
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

ICHOR = "Ichor Reserves"
DIVIDENDS = "Ichor Dividends"
ICHOR_DIVIDEND = "Ichor Dividend"
DISCORD_SEED = "Discord Seed"
INSTABILITY = "Instability"
RESONANCE = "Prismatic Resonance"


class DandyKind(Enum):
    BASIC = "basic_attack"
    CHEERFUL_ZEPHYR = "cheerful_zephyr"
    DANDYS_BARGAIN = "dandys_bargain"
    INVENTORY_MANAGEMENT = "inventory_management"
    CHROMATIC_BURST = "chromatic_burst"
    PRISMATIC_BLOOM = "prismatic_bloom"


class DandyModifier(PassiveModifier):
    DIVIDEND_TENACITY = ("dividend_tenacity", Stat.TENACITY)
    DIVIDEND_EVASION = ("dividend_evasion", Stat.EVASION)


def is_transformed(actor: Actor) -> bool:
    return actor.statuses.has("form")


class Dandy(CharacterModule):
    character = "Dandy"
    Kind = DandyKind
    HANDLERS = {
        DandyKind.BASIC: "basic_attack",
        DandyKind.CHEERFUL_ZEPHYR: "cheerful_zephyr",
        DandyKind.DANDYS_BARGAIN: "dandys_bargain",
        DandyKind.INVENTORY_MANAGEMENT: "inventory_management",
        DandyKind.CHROMATIC_BURST: "chromatic_burst",
        DandyKind.PRISMATIC_BLOOM: "prismatic_bloom",
    }

    def __init__(self, definition: CharacterDefinition) -> None:
        # actor id -> live enemy count seen on the previous tick
        self._enemies_alive: Dict[int, int] = {}
        super().__init__(definition)

    def build_policy(self) -> PriorityPolicy:
        bloom = self.static_mechanics(DandyKind.PRISMATIC_BLOOM)
        bargain = self.static_mechanics(DandyKind.DANDYS_BARGAIN)
        inventory = self.static_mechanics(DandyKind.INVENTORY_MANAGEMENT)
        ichor_cost = float(bloom.get("ichor_cost", 50))
        bargain_hp = float(bargain.get("hp_below", 0.9))
        energy_below = float(inventory.get("energy_below", 50))
        heal_below = float(inventory.get("hp_below", 0.7))

        def team(ctx: DecisionContext) -> List[Actor]:
            return [ctx.actor, *ctx.allies]

        def needs_supplies(ctx: DecisionContext) -> bool:
            return any(a.energy < energy_below or a.hp_fraction < heal_below for a in team(ctx))

        def weakest_ally(ctx: DecisionContext) -> List[Actor]:
            target = targeting.lowest_hp_fraction(team(ctx))
            if target is None or target.hp_fraction >= bargain_hp:
                return []
            return [target]

        def biggest_enemy(ctx: DecisionContext) -> List[Actor]:
            target = targeting.highest_max_hp(ctx.enemies)
            return [target] if target is not None else []

        rules = []
        name = self.ability_name(DandyKind.PRISMATIC_BLOOM)
        if name:
            rules.append(
                AbilityRule(
                    name,
                    Priority.ULTIMATE,
                    targets=lambda ctx: list(ctx.enemies),
                    condition=lambda ctx: ctx.resource(ICHOR) >= ichor_cost and not is_transformed(ctx.actor),
                )
            )
        name = self.ability_name(DandyKind.INVENTORY_MANAGEMENT)
        if name:
            rules.append(
                AbilityRule(
                    name,
                    Priority.MAINTENANCE,
                    targets=lambda ctx: [ctx.actor],
                    condition=needs_supplies,
                )
            )
        name = self.ability_name(DandyKind.DANDYS_BARGAIN)
        if name:
            rules.append(AbilityRule(name, Priority.MAINTENANCE, targets=weakest_ally))
        name = self.ability_name(DandyKind.CHROMATIC_BURST)
        if name:
            rules.append(
                AbilityRule(
                    name,
                    Priority.OPPORTUNISTIC,
                    targets=biggest_enemy,
                    condition=lambda ctx: not is_transformed(ctx.actor),
                )
            )
        name = self.ability_name(DandyKind.CHEERFUL_ZEPHYR)
        if name:
            rules.append(AbilityRule(name, Priority.OPPORTUNISTIC))
        return PriorityPolicy(rules, self.ability_name(DandyKind.BASIC))

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------
    def basic_attack(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> None:
        target = decision.primary
        battle.ui.show_projectile(actor, target, descriptor.element.value)
        result = battle.executor.strike(battle, actor, target, descriptor)
        if result is not None and is_transformed(actor):
            self._plant_seed(battle, actor, target)

    def cheerful_zephyr(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> None:
        ex = battle.executor
        target = decision.primary
        battle.ui.play_vfx(target, "vfx-wind")
        ex.strike(battle, actor, target, descriptor)

        weakest = targeting.lowest_hp_fraction(battle.allies_of(actor))
        if weakest is None:
            return
        ex.shield(
            battle,
            actor,
            weakest,
            actor.max_hp * float(descriptor.mechanic("shield_pct", 0.05)),
            float(descriptor.mechanic("shield_duration", 2)),
            descriptor.name,
        )
        ex.apply_status(
            battle,
            actor,
            weakest,
            StatusRequest(
                type="buff_speed",
                duration=float(descriptor.mechanic("speed_duration", 2)),
                value=float(descriptor.mechanic("speed_buff", 0.10)),
                source=descriptor.name,
            ),
        )
        battle.ui.show_floating_text(weakest, "ZEPHYR SHIELD", "status-text buff")

    def dandys_bargain(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> None:
        ex = battle.executor
        target = decision.primary
        battle.ui.play_vfx(target, "buff")
        ex.shield(
            battle,
            actor,
            target,
            actor.max_hp * float(descriptor.mechanic("shield_pct", 0.10)),
            float(descriptor.mechanic("shield_duration", 3)),
            descriptor.name,
        )
        ex.apply_status(
            battle,
            actor,
            target,
            StatusRequest(
                type="energy_regen",
                duration=float(descriptor.mechanic("energy_regen_duration", 8)),
                value=float(descriptor.mechanic("energy_regen", 5)),
                source=descriptor.name,
            ),
        )
        self.add_resource(battle, actor, ICHOR, float(descriptor.mechanic("ichor_gain", 5)), self._ichor_cap(actor))

    def inventory_management(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> None:
        ex = battle.executor
        battle.ui.play_vfx(actor, "vfx-magic")
        amount = actor.effective_stat(Stat.MAGIC_ATK) * float(descriptor.mechanic("heal_pct_of_magic_atk", 0.3))
        restore = float(descriptor.mechanic("energy_restore", 15))
        for ally in targeting.within_radius(actor, battle.allies_of(actor), float(descriptor.mechanic("radius", 200))):
            ex.heal(battle, actor, ally, amount, descriptor.name)
            ally.gain_energy(restore)
        self.add_resource(battle, actor, ICHOR, float(descriptor.mechanic("ichor_gain", 10)), self._ichor_cap(actor))

    def chromatic_burst(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> AbilitySequence:
        battle.executor.apply_status(
            battle,
            actor,
            actor,
            StatusRequest(type="channel", duration=descriptor.duration, source=descriptor.name),
        )
        return self._burst_after_channel(battle, actor, decision.primary, descriptor)

    def _burst_after_channel(
        self, battle: Battle, actor: Actor, target: Actor, descriptor: AbilityDescriptor
    ) -> AbilitySequence:
        yield descriptor.duration
        actor.statuses.remove("channel", descriptor.name)
        if target.is_dead:
            return
        battle.ui.play_vfx(target, "beam")
        for index, element in enumerate(descriptor.mechanic("elements", ())):
            battle.timeline.schedule(
                index * descriptor.hit_interval,
                partial(self._prismatic_hit, battle, actor, target, descriptor, Element(element)),
                owner=actor,
                label=f"{descriptor.name}:{element}",
            )
        battle.executor.apply_status(
            battle,
            actor,
            target,
            StatusRequest(
                type="vulnerability",
                name=RESONANCE,
                duration=float(descriptor.mechanic("vulnerability_duration", 8)),
                value=float(descriptor.mechanic("vulnerability", 0.07)),
                stack_limit=int(descriptor.mechanic("vulnerability_stacks", 3)),
                source=RESONANCE,
            ),
        )

    @staticmethod
    def _prismatic_hit(
        battle: Battle, actor: Actor, target: Actor, descriptor: AbilityDescriptor, element: Element
    ) -> None:
        battle.executor.strike(
            battle, actor, target, descriptor, amount=descriptor.base_damage, damage_type=DamageType.MAGIC, element=element
        )

    def prismatic_bloom(
        self, battle: Battle, actor: Actor, decision: Decision, descriptor: AbilityDescriptor
    ) -> HandlerResult:
        cost = float(descriptor.mechanic("ichor_cost", 50))
        if actor.get_resource(ICHOR) < cost:
            return False
        self.add_resource(battle, actor, ICHOR, -cost)
        ex = battle.executor
        ex.apply_status(
            battle,
            actor,
            actor,
            StatusRequest(type="form", name=descriptor.name, duration=descriptor.duration, source=descriptor.name),
        )
        battle.log(FORM_CHANGED, {"actor": actor.actor_id, "from": None, "to": descriptor.name})
        battle.ui.play_vfx(actor, "vfx-explosion")
        for enemy in decision.targets:
            if ex.strike(battle, actor, enemy, descriptor) is None or enemy.is_dead:
                continue
            self._plant_seed(battle, actor, enemy)
            battle.ui.show_floating_text(enemy, "SEED PLANTED", "status-text")
        return None

    def _plant_seed(self, battle: Battle, actor: Actor, target: Actor) -> None:
        bloom = self.static_mechanics(DandyKind.PRISMATIC_BLOOM)
        battle.executor.apply_status(
            battle,
            actor,
            target,
            StatusRequest(
                type="debuff_atk",
                name=DISCORD_SEED,
                duration=float(bloom.get("seed_duration", 10)),
                value=float(bloom.get("seed_value", 0.05)),
                stack_limit=int(bloom.get("seed_stacks", 3)),
                source=DISCORD_SEED,
            ),
        )

    # ------------------------------------------------------------------
    # Passives
    # ------------------------------------------------------------------
    def _ichor_cap(self, actor: Actor) -> Optional[float]:
        dividend = self.passive(ICHOR_DIVIDEND, actor)
        return float(dividend["ichor_cap"]) if dividend else None

    def on_status_expired(self, actor: Actor, effect: StatusEffect, battle: Battle) -> None:
        if effect.kind != "form":
            return
        bloom = self.static_mechanics(DandyKind.PRISMATIC_BLOOM)
        for kind in ("debuff_atk", "debuff_magic_atk"):
            battle.executor.apply_status(
                battle,
                actor,
                actor,
                StatusRequest(
                    type=kind,
                    duration=float(bloom.get("instability_duration", 5)),
                    value=float(bloom.get("instability", 0.2)),
                    source=INSTABILITY,
                ),
            )
        battle.log(FORM_CHANGED, {"actor": actor.actor_id, "from": effect.name, "to": None})
        battle.ui.show_floating_text(actor, "INSTABILITY", "status-text")

    def compute_modifiers(self, actor: Actor, battle: Battle) -> Dict[DandyModifier, float]:
        dividend = self.passive(ICHOR_DIVIDEND, actor)
        kills = actor.get_resource(DIVIDENDS)
        if not dividend or kills <= 0:
            return {}
        return {
            DandyModifier.DIVIDEND_TENACITY: kills * float(dividend["tenacity_per_kill"]),
            DandyModifier.DIVIDEND_EVASION: kills * float(dividend["evasion_per_kill"]),
        }

    def react(self, actor: Actor, dt: float, battle: Battle) -> None:
        dividend = self.passive(ICHOR_DIVIDEND, actor)
        if not dividend:
            return
        alive = len(battle.enemies_of(actor))
        previous = self._enemies_alive.get(actor.actor_id, alive)
        self._enemies_alive[actor.actor_id] = alive
        if alive >= previous:
            return

        kills = previous - alive
        self.add_resource(battle, actor, ICHOR, kills * float(dividend["ichor_per_kill"]), float(dividend["ichor_cap"]))
        actor.add_resource(DIVIDENDS, kills)

        allies = battle.allies_of(actor)
        if not allies:
            return
        # The killer is not tracked; a seeded pick keeps replays identical.
        killer = battle.rng.choice(allies)
        base_atk = killer.base_stats.get(Stat.ATK, 0.0) or 1.0
        battle.executor.apply_status(
            battle,
            actor,
            killer,
            StatusRequest(
                type="buff_atk",
                name="Petals for Profit",
                duration=float(dividend["killer_buff_duration"]),
                value=actor.effective_stat(Stat.ATK) * float(dividend["killer_atk_pct"]) / base_atk,
                source=ICHOR_DIVIDEND,
            ),
        )
        battle.ui.show_floating_text(killer, "PROFIT!", "status-text buff")


__all__ = ["Dandy", "DandyKind", "DandyModifier", "ICHOR"]
