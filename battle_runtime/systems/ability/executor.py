"""Apply resolved abilities to the battle."""

from __future__ import annotations

import inspect
import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from ...abilities.builtin.default_strike import DEFAULT_STRIKE, build_descriptor, pick_target
from ...abilities.decision import Decision
from ...abilities.descriptor import AbilityDescriptor, Category
from ...config import CONFIG, AbilityConfig
from ...core.actor import ActionRequest, ActionResult, StatusRequest
from ...core.components.status_effects import StatusEffect
from ...core.events import AbilitySequence
from ...persistence.event_log import HEAL, SHIELD, STATUS_APPLIED
from ..combat.damage import compute_damage, roll_crit
from ..combat.damage_types import DamageType, EffectType, Element

if TYPE_CHECKING:
    from ...core.actor import Actor
    from ...core.battle import Battle

logger = logging.getLogger(__name__)

HitCallback = Callable[[int, ActionResult], None]


class AbilityExecutor:
    """Run one decision through its character module.

    Character modules call the helpers below instead of touching actors
    directly so that every effect is logged and death is handled in one
    place.
    """

    def __init__(self, config: AbilityConfig | None = None) -> None:
        self.config = config or CONFIG.abilities
        self._default_descriptor = build_descriptor(self.config.default_basic)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def execute(
        self,
        battle: "Battle",
        actor: "Actor",
        decision: Decision,
        descriptor: Optional[AbilityDescriptor] = None,
    ) -> bool:
        """Apply ``decision`` for ``actor``. Returns ``True`` if it was used.

        A stale decision (dead caster, every target gone, ability cooling
        down) returns ``False`` and changes nothing. A handler that raises
        still spends the turn and starts the cooldown.
        """

        if decision.is_idle or actor.is_dead:
            return False

        module = battle.module_for(actor)
        if module is None:
            logger.warning("%s has no character module; using default strike.", actor.name)
            return self.default_strike(battle, actor, decision.targets)

        if descriptor is None:
            descriptor = module.get_parsed_ability(decision.ability, actor, battle)
        if descriptor is None:
            logger.warning(
                "%s tried unknown ability '%s'; using default strike.", actor.name, decision.ability
            )
            return self.default_strike(battle, actor, decision.targets)

        if descriptor.category is Category.PASSIVE:
            logger.debug("%s: passive '%s' cannot be activated.", actor.name, descriptor.name)
            return False

        targets = tuple(t for t in decision.targets if t.is_alive)
        if not targets and descriptor.targeting == "self":
            targets = (actor,)
        if not targets:
            logger.debug("%s: stale decision for '%s', no live target.", actor.name, descriptor.name)
            return False

        if not actor.cooldowns.is_ready(descriptor.name):
            logger.debug(
                "%s: '%s' on cooldown (%.2fs).",
                actor.name,
                descriptor.name,
                actor.cooldowns.remaining(descriptor.name),
            )
            return False

        live = replace(decision, targets=targets)
        try:
            result = module.execute_action(battle, actor, live, descriptor)
        except Exception as exc:
            logger.error(
                "Error executing '%s' for %s: %s", descriptor.name, actor.name, exc, exc_info=True
            )
            actor.cooldowns.start(descriptor.name, descriptor.cooldown)
            return True
        if result is False:
            logger.debug("%s: '%s' refused by its module.", actor.name, descriptor.name)
            return False

        self._commit(battle, actor, descriptor, targets)
        if inspect.isgenerator(result):
            battle.timeline.run_sequence(actor, result, label=descriptor.name)
        return True

    def _commit(
        self,
        battle: "Battle",
        actor: "Actor",
        descriptor: AbilityDescriptor,
        targets: Iterable["Actor"],
    ) -> None:
        actor.cooldowns.start(descriptor.name, descriptor.cooldown)
        if descriptor.category is Category.ULTIMATE:
            actor.energy = 0.0
        else:
            actor.gain_energy(descriptor.energy_gain)
        battle.ui.show_ability_name(actor, descriptor.name)
        battle.record_ability(actor, descriptor.name, targets)
        logger.info("%s used %s", actor.name, descriptor.name)

    # ------------------------------------------------------------------
    # Default behaviour
    # ------------------------------------------------------------------
    def default_strike(
        self, battle: "Battle", actor: "Actor", targets: Iterable["Actor"] = ()
    ) -> bool:
        """Single hit on the first live target, or the nearest enemy."""

        if actor.is_dead or not actor.cooldowns.is_ready(DEFAULT_STRIKE):
            return False
        target = pick_target(actor, targets, battle.enemies_of(actor))
        if target is None:
            return False
        descriptor = self._default_descriptor
        battle.ui.show_projectile(actor, target, descriptor.element.value)
        self.strike(battle, actor, target, descriptor)
        self._commit(battle, actor, descriptor, (target,))
        return True

    # ------------------------------------------------------------------
    # Effect helpers
    # ------------------------------------------------------------------
    def strike(
        self,
        battle: "Battle",
        actor: "Actor",
        target: "Actor",
        descriptor: AbilityDescriptor,
        *,
        multiplier: float = 1.0,
        amount: Optional[float] = None,
        damage_type: Optional[DamageType] = None,
        element: Optional[Element] = None,
    ) -> Optional[ActionResult]:
        """Deal one hit of ``descriptor`` damage; ``None`` if either side is gone."""

        if actor.is_dead or target.is_dead:
            return None
        raw = compute_damage(actor, descriptor, multiplier) if amount is None else amount * multiplier
        is_crit = roll_crit(battle.rng, actor)
        if is_crit:
            raw *= self.config.crit_multiplier
        request = ActionRequest(
            amount=raw,
            type=damage_type or descriptor.damage_type,
            element=element or descriptor.element,
            is_crit=is_crit,
            effect_type=EffectType.DAMAGE,
            attacker_accuracy=actor.effective_stat(descriptor.scale_stat) * 0.1,
            source_name=descriptor.name,
        )
        result = target.receive_action(request)
        battle.ui.show_floating_text(target, round(result.amount), "damage-number")
        battle.record_damage(actor, target, result, descriptor.name)
        return result

    def damage_over_time(
        self, battle: "Battle", target: "Actor", amount: float, source_name: str
    ) -> Optional[ActionResult]:
        """True damage from a periodic status; no attacker, never crits."""

        if target.is_dead or amount <= 0:
            return None
        result = target.receive_action(
            ActionRequest(amount=amount, type=DamageType.TRUE, source_name=source_name)
        )
        battle.record_damage(None, target, result, source_name)
        return result

    def heal(
        self,
        battle: "Battle",
        actor: "Actor",
        target: "Actor",
        amount: float,
        source_name: str = "",
    ) -> float:
        if target.is_dead or amount <= 0:
            return 0.0
        result = target.receive_action(
            ActionRequest(amount=amount, effect_type=EffectType.HEAL, source_name=source_name)
        )
        if result.amount > 0:
            battle.ui.show_floating_text(target, f"+{round(result.amount)}", "damage-number heal")
            battle.log(
                HEAL,
                {"source": actor.actor_id, "target": target.actor_id, "amount": result.amount, "ability": source_name},
            )
        return result.amount

    def shield(
        self,
        battle: "Battle",
        actor: "Actor",
        target: "Actor",
        amount: float,
        duration: float,
        source_name: str = "",
    ) -> float:
        if target.is_dead or amount <= 0:
            return 0.0
        result = target.receive_action(
            ActionRequest(
                amount=amount,
                effect_type=EffectType.SHIELD,
                source_name=source_name,
                duration=duration,
            )
        )
        battle.ui.show_floating_text(target, f"SHIELD {round(result.amount)}", "status-text buff")
        battle.log(
            SHIELD,
            {"source": actor.actor_id, "target": target.actor_id, "amount": result.amount, "ability": source_name},
        )
        return result.amount

    def apply_status(
        self, battle: "Battle", actor: "Actor", target: "Actor", request: StatusRequest
    ) -> Optional[StatusEffect]:
        effect = target.apply_status(request)
        if effect is None:
            return None
        battle.log(
            STATUS_APPLIED,
            {
                "source": actor.actor_id,
                "target": target.actor_id,
                "kind": effect.kind,
                "stacks": effect.stack_count,
                "duration": None if effect.durable else effect.duration,
            },
        )
        return effect

    def multi_hit(
        self,
        battle: "Battle",
        actor: "Actor",
        target: "Actor",
        descriptor: AbilityDescriptor,
        hits: Optional[int] = None,
        interval: Optional[float] = None,
        on_hit: Optional[HitCallback] = None,
        multiplier: float = 1.0,
    ) -> AbilitySequence:
        """Hit ``target`` repeatedly, suspending ``interval`` seconds between hits.

        Caster and target are re-checked before every hit; remaining hits
        are dropped once either is gone.
        """

        count = descriptor.hit_count if hits is None else hits
        delay = descriptor.hit_interval if interval is None else interval
        for index in range(count):
            if actor.is_dead or target.is_dead:
                logger.debug(
                    "%s: '%s' stopped after %d of %d hits.", actor.name, descriptor.name, index, count
                )
                return
            result = self.strike(battle, actor, target, descriptor, multiplier=multiplier)
            if result is not None and on_hit is not None:
                on_hit(index, result)
            if index < count - 1:
                yield delay


__all__ = ["AbilityExecutor"]
