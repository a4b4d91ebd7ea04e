"""Battle context: teams, clock, timeline and systems for one skirmish."""

from __future__ import annotations

import logging
import random
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from ..config import CONFIG, Config
from ..persistence.event_log import (
    ABILITY_USED,
    BATTLE_END,
    DAMAGE,
    DEATH,
    append_event,
    retention_bytes,
)
from ..systems.ability.ability_system import AbilitySystem
from ..systems.ability.executor import AbilityExecutor
from ..systems.ai.action_execution_system import ActionExecutionSystem
from ..systems.passive.passive_system import PassiveSystem
from ..utils.ui import UINotifier
from .actor import ActionResult, Actor
from .components.status_effects import parse_policies
from .events import AbilityUseEvent
from .systems_manager import SystemsManager
from .time_manager import TimeManager
from .timeline import Timeline

logger = logging.getLogger(__name__)

ALLY = "ally"
ENEMY = "enemy"
RECENT_ABILITY_LIMIT = 50


class Battle:
    """Shared context handed to every hook.

    ``event_log`` is either a path (JSON lines) or a list collecting event
    dicts in memory.
    """

    def __init__(
        self,
        allies: Iterable[Actor] = (),
        enemies: Iterable[Actor] = (),
        *,
        abilities: Optional[AbilitySystem] = None,
        config: Optional[Config] = None,
        ui_manager: Any = None,
        event_log: str | Path | List[Dict[str, Any]] | None = None,
        seed: Optional[int] = None,
    ) -> None:
        self.full_config = config or CONFIG
        self.config = self.full_config.battle
        self.allies: List[Actor] = list(allies)
        self.enemies: List[Actor] = list(enemies)

        self.abilities = abilities if abilities is not None else AbilitySystem()
        self.executor = AbilityExecutor(self.full_config.abilities)
        self.ui = UINotifier(ui_manager)
        self.event_log: str | Path | List[Dict[str, Any]] = event_log if event_log is not None else []
        self.rng = random.Random(self.config.seed if seed is None else seed)
        self.status_policies = parse_policies(self.full_config.status_policies)
        self.log_retention = retention_bytes(self.full_config)

        self.time_manager = TimeManager(self.config.tick_rate)
        self.timeline = Timeline()
        self.recent_abilities: Deque[AbilityUseEvent] = deque(maxlen=RECENT_ABILITY_LIMIT)
        self._dead: Set[int] = set()
        self._ended = False

        self.systems_manager = SystemsManager()
        self.systems_manager.register(ActionExecutionSystem(self))
        self.systems_manager.register(PassiveSystem(self))

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------
    @property
    def actors(self) -> List[Actor]:
        """Every participant in processing order: allies, then enemies."""

        return self.allies + self.enemies

    def spawn(
        self,
        character: str,
        team: str = ALLY,
        *,
        name: Optional[str] = None,
        level: int = 1,
        skill_levels: Optional[Mapping[str, int]] = None,
        x: float = 0.0,
        y: float = 0.0,
        energy: float = 0.0,
    ) -> Actor:
        """Build an actor from ``character``'s definition and add it to ``team``."""

        definition = self.abilities.definition_for(character)
        if definition is None:
            raise ValueError(f"Unknown character: {character}")
        actor = Actor(
            name or character,
            team,
            max_hp=definition.max_hp,
            stats=definition.stats,
            character=character,
            level=level,
            skill_levels=skill_levels,
            abilities=list(definition.abilities),
            max_energy=definition.max_energy,
            energy=energy,
            x=x,
            y=y,
            status_policies=self.status_policies,
            default_resource_cap=self.full_config.resources.default_cap,
        )
        for resource, value in definition.resources.items():
            actor.add_resource(resource, value)
        self.add(actor)
        return actor

    def add(self, actor: Actor) -> None:
        if actor.team == ALLY:
            self.allies.append(actor)
        else:
            self.enemies.append(actor)

    def enemies_of(self, actor: Actor) -> List[Actor]:
        pool = self.enemies if actor in self.allies or actor.team == ALLY else self.allies
        return [a for a in pool if a.is_alive]

    def allies_of(self, actor: Actor) -> List[Actor]:
        """Live teammates of ``actor``, itself included."""

        pool = self.allies if actor in self.allies or actor.team == ALLY else self.enemies
        return [a for a in pool if a.is_alive]

    def module_for(self, actor: Actor) -> Any:
        return self.abilities.module_for(actor)

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------
    @property
    def now(self) -> float:
        return self.timeline.now

    @property
    def tick(self) -> int:
        return self.time_manager.tick_counter

    @property
    def death_count(self) -> int:
        return len(self._dead)

    @property
    def is_over(self) -> bool:
        return not any(a.is_alive for a in self.allies) or not any(a.is_alive for a in self.enemies)

    @property
    def winner(self) -> Optional[str]:
        if not self.is_over:
            return None
        allies_alive = any(a.is_alive for a in self.allies)
        enemies_alive = any(a.is_alive for a in self.enemies)
        if allies_alive and not enemies_alive:
            return ALLY
        if enemies_alive and not allies_alive:
            return ENEMY
        return None

    def step(self, dt: Optional[float] = None) -> None:
        """Advance the battle by one simulation step."""

        if dt is None:
            dt = self.time_manager.advance()
        else:
            self.time_manager.tick_counter += 1
        self.systems_manager.update(dt)
        self._check_deaths()

    def run(self, max_duration: Optional[float] = None, realtime: bool = False) -> Optional[str]:
        """Step until one side falls or ``max_duration`` seconds pass."""

        limit = self.config.max_duration if max_duration is None else max_duration
        while not self.is_over and self.now < limit:
            if realtime:
                self.time_manager.sleep_until_next_tick()
                self.systems_manager.update(self.time_manager.dt)
                self._check_deaths()
            else:
                self.step()
        self.finish()
        return self.winner

    def finish(self) -> None:
        if self._ended:
            return
        self._ended = True
        self.log(
            BATTLE_END,
            {
                "winner": self.winner,
                "time": round(self.now, 3),
                "survivors": [a.name for a in self.actors if a.is_alive],
            },
        )
        logger.info("Battle ended at %.1fs, winner: %s", self.now, self.winner)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------
    def log(self, event_type: str, data: Any) -> None:
        append_event(self.event_log, self.tick, event_type, data, self.log_retention)

    def record_ability(self, actor: Actor, ability: str, targets: Sequence[Actor] | Iterable[Actor]) -> None:
        target_ids = tuple(t.actor_id for t in targets)
        self.recent_abilities.append(
            AbilityUseEvent(caster_id=actor.actor_id, ability_name=ability, target_ids=target_ids, time=self.now)
        )
        self.log(ABILITY_USED, {"caster": actor.actor_id, "ability": ability, "targets": list(target_ids)})

    def record_damage(
        self, attacker: Optional[Actor], target: Actor, result: ActionResult, source: str
    ) -> None:
        if attacker is not None:
            attacker.last_combat_time = self.now
        target.last_combat_time = self.now
        self.log(
            DAMAGE,
            {
                "source": attacker.actor_id if attacker is not None else None,
                "target": target.actor_id,
                "amount": result.amount,
                "absorbed": result.absorbed,
                "crit": result.is_crit,
                "ability": source,
            },
        )
        if result.killed:
            self.handle_death(target, attacker)

    def handle_death(self, actor: Actor, killer: Optional[Actor] = None) -> None:
        """Cancel the actor's pending steps and log its death once."""

        if actor.actor_id in self._dead:
            return
        self._dead.add(actor.actor_id)
        dropped = self.timeline.cancel(actor)
        self.log(
            DEATH,
            {"actor": actor.actor_id, "killer": killer.actor_id if killer is not None else None},
        )
        self.ui.announce(f"{actor.name} has fallen!")
        logger.info("%s died (%d pending steps dropped)", actor.name, dropped)

    def _check_deaths(self) -> None:
        for actor in self.actors:
            if actor.is_dead and actor.actor_id not in self._dead:
                self.handle_death(actor)


__all__ = ["Battle", "ALLY", "ENEMY"]
