"""Turn loop: fill action gauges and enact decisions."""

from __future__ import annotations

from typing import TYPE_CHECKING
import logging

from ...core.components.modifiers import Stat

if TYPE_CHECKING:
    from ...core.actor import Actor
    from ...core.battle import Battle

logger = logging.getLogger(__name__)

# Statuses that stop an actor from taking its turn.
CANNOT_ACT = ("stun", "knockback")


class ActionExecutionSystem:
    """Let each ready actor decide and act, one actor at a time."""

    phase = 1

    def __init__(self, battle: "Battle") -> None:
        self.battle = battle

    def can_act(self, actor: "Actor") -> bool:
        if actor.is_dead or self.battle.timeline.is_busy(actor):
            return False
        return not any(actor.statuses.has(kind) for kind in CANNOT_ACT)

    def update(self, dt: float) -> None:
        battle = self.battle
        threshold = battle.config.action_threshold
        for actor in battle.actors:
            if battle.is_over:
                break
            if not self.can_act(actor):
                continue
            gain = max(0.0, actor.effective_stat(Stat.SPEED)) * dt
            actor.action_gauge = min(threshold, actor.action_gauge + gain)
            if actor.action_gauge < threshold:
                continue
            module = battle.module_for(actor)
            if module is None:
                acted = battle.executor.default_strike(battle, actor)
            else:
                try:
                    decision = module.decide_action(
                        actor, battle.enemies_of(actor), battle.allies_of(actor), battle
                    )
                except Exception as exc:
                    logger.error("decide_action failed for %s: %s", actor.name, exc, exc_info=True)
                    continue
                if decision.is_idle:
                    logger.debug("[%.2fs] %s idles.", battle.now, actor.name)
                    continue
                acted = battle.executor.execute(battle, actor, decision)
            if acted:
                actor.action_gauge -= threshold
            else:
                logger.debug("[%.2fs] %s could not act.", battle.now, actor.name)


__all__ = ["ActionExecutionSystem", "CANNOT_ACT"]
