"""Per-step passive tick driver."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...persistence.event_log import STATUS_EXPIRED

if TYPE_CHECKING:
    from ...core.battle import Battle

logger = logging.getLogger(__name__)


class PassiveSystem:
    """Advance the timeline, then run every live actor's passive hook."""

    phase = 0

    def __init__(self, battle: "Battle") -> None:
        self.battle = battle

    def update(self, dt: float) -> None:
        battle = self.battle
        battle.timeline.advance(dt)
        for actor in battle.actors:
            if actor.is_dead:
                continue
            module = battle.module_for(actor)
            if module is None:
                actor.cooldowns.tick(dt)
                for effect in actor.statuses.tick(dt):
                    logger.debug("[%.2fs] %s: %s expired (no module).", battle.now, actor.name, effect.kind)
                    battle.log(
                        STATUS_EXPIRED,
                        {"target": actor.actor_id, "kind": effect.kind, "source": effect.source_name},
                    )
                continue
            try:
                module.update_passives(actor, dt, battle)
            except Exception as exc:
                logger.error("Passive update failed for %s: %s", actor.name, exc, exc_info=True)


__all__ = ["PassiveSystem"]
