from __future__ import annotations

"""Base interface for per-character ability modules."""

import inspect
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Mapping, Optional, Type, Union

from ..core.components.modifiers import PassiveModifier
from ..core.components.status_effects import StatusEffect
from ..core.events import AbilitySequence
from ..persistence.event_log import RESOURCE_CHANGED, STATUS_EXPIRED
from ..systems.ai.decision_policy import PriorityPolicy
from .decision import Decision
from .descriptor import AbilityDescriptor, Category, CharacterDefinition, resolve_descriptor

if TYPE_CHECKING:
    from ..core.actor import Actor
    from ..core.battle import Battle

logger = logging.getLogger(__name__)

# Statuses handled the same way for every character.
DOT_KINDS = ("burn", "bleed", "poison")
REGEN_KIND = "regen"
ENERGY_REGEN_KIND = "energy_regen"

HandlerResult = Union[None, bool, AbilitySequence]


class CharacterModule(ABC):
    """Four hooks the battle engine calls for one character.

    Subclasses set ``character``, an ability-kind enum ``Kind`` whose values
    match the ``kind`` tags in the character's YAML definition, and
    ``HANDLERS`` mapping every kind to the name of a handler method. A
    handler receives ``(battle, actor, decision, descriptor)`` and returns
    ``None`` when done, a generator for multi-step abilities, or ``False``
    to refuse the use before changing anything.
    """

    character: ClassVar[str] = ""
    Kind: ClassVar[Type[Enum]]
    HANDLERS: ClassVar[Mapping[Any, str]] = {}
    # resource name -> amount lost per second while out of combat
    RESOURCE_DECAY: ClassVar[Mapping[str, float]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if inspect.isabstract(cls) or not cls.character:
            return
        kinds = getattr(cls, "Kind", None)
        if kinds is None:
            raise TypeError(f"{cls.__name__} must declare a Kind enum")
        missing = [k.value for k in kinds if k not in cls.HANDLERS]
        if missing:
            raise TypeError(f"{cls.__name__} has no handler for kinds: {missing}")
        for kind, method in cls.HANDLERS.items():
            if not callable(getattr(cls, method, None)):
                raise TypeError(f"{cls.__name__}.{method} (handler for {kind}) is not callable")

    def __init__(self, definition: CharacterDefinition) -> None:
        self.definition = definition
        self._kinds: Dict[str, Enum] = {}
        for ability in definition.abilities.values():
            if ability.category is Category.PASSIVE:
                continue
            try:
                self._kinds[ability.name] = self.Kind(ability.kind)
            except ValueError:
                raise ValueError(
                    f"{self.character}: ability '{ability.name}' has unknown kind '{ability.kind}'"
                ) from None
        self.policy = self.build_policy()

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------
    def get_parsed_ability(
        self, name: Optional[str], actor: "Actor", battle: Optional["Battle"] = None
    ) -> Optional[AbilityDescriptor]:
        """Resolve ``name`` at the actor's levels; ``None`` if unknown.

        Scaling and default energy gain come from ``battle``'s configuration
        when one is given.
        """

        definition = self.definition.abilities.get(name or "")
        if definition is None:
            return None
        config = battle.full_config.abilities if battle is not None else None
        return resolve_descriptor(
            definition, actor.level, actor.skill_level(definition.name), config=config
        )

    def decide_action(
        self,
        actor: "Actor",
        enemies: Any,
        allies: Any,
        battle: Optional["Battle"] = None,
    ) -> Decision:
        now = battle.now if battle is not None else 0.0
        return self.policy.decide(actor, enemies, allies, now)

    def execute_action(
        self,
        battle: "Battle",
        actor: "Actor",
        decision: Decision,
        descriptor: AbilityDescriptor,
    ) -> HandlerResult:
        kind = self.Kind(descriptor.kind)
        handler = getattr(self, self.HANDLERS[kind])
        return handler(battle, actor, decision, descriptor)

    def update_passives(self, actor: "Actor", dt: float, battle: "Battle") -> None:
        """Advance one actor by ``dt`` seconds.

        Order: cooldowns, statuses (with expiry reactions), periodic
        effects and regen, modifier recomputation, threshold reactions.
        """

        if actor.is_dead:
            return
        actor.cooldowns.tick(dt)
        for effect in actor.statuses.tick(dt):
            battle.log(
                STATUS_EXPIRED,
                {"target": actor.actor_id, "kind": effect.kind, "source": effect.source_name},
            )
            self.on_status_expired(actor, effect, battle)
        self._apply_periodic(actor, dt, battle)
        if actor.is_dead:
            return
        self._decay_resources(actor, dt, battle)
        self.apply_regen(actor, dt, battle)
        actor.passive_modifiers = dict(self.compute_modifiers(actor, battle))
        self.react(actor, dt, battle)

    # ------------------------------------------------------------------
    # Overridable sub-hooks
    # ------------------------------------------------------------------
    @abstractmethod
    def build_policy(self) -> PriorityPolicy:
        """Return the decision policy for this character."""

    def on_status_expired(self, actor: "Actor", effect: StatusEffect, battle: "Battle") -> None:
        pass

    def apply_regen(self, actor: "Actor", dt: float, battle: "Battle") -> None:
        pass

    def compute_modifiers(self, actor: "Actor", battle: "Battle") -> Mapping[PassiveModifier, float]:
        return {}

    def react(self, actor: "Actor", dt: float, battle: "Battle") -> None:
        pass

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------
    def ability_name(self, kind: Enum) -> Optional[str]:
        """Name of the defined ability tagged ``kind``."""

        for name, k in self._kinds.items():
            if k is kind:
                return name
        return None

    def static_mechanics(self, kind: Enum) -> Mapping[str, Any]:
        """Unscaled mechanics of the ability tagged ``kind``."""

        name = self.ability_name(kind)
        if name is None:
            return {}
        return self.definition.abilities[name].mechanics

    def passive(self, name: str, actor: "Actor") -> Mapping[str, Any]:
        """Mechanics of passive ``name`` at the actor's level (empty if undefined)."""

        descriptor = self.get_parsed_ability(name, actor)
        return descriptor.mechanics if descriptor is not None else {}

    def add_resource(
        self, battle: "Battle", actor: "Actor", name: str, amount: float, cap: Optional[float] = None
    ) -> float:
        before = actor.get_resource(name)
        value = actor.add_resource(name, amount, cap)
        if value != before:
            battle.log(
                RESOURCE_CHANGED,
                {"actor": actor.actor_id, "resource": name, "value": value, "delta": value - before},
            )
        return value

    def _apply_periodic(self, actor: "Actor", dt: float, battle: "Battle") -> None:
        for effect in actor.statuses:
            if effect.kind in DOT_KINDS:
                battle.executor.damage_over_time(
                    battle, actor, effect.total_magnitude * dt, effect.source_name or effect.kind
                )
            elif effect.kind == REGEN_KIND:
                battle.executor.heal(
                    battle, actor, actor, effect.magnitude * actor.max_hp * dt, effect.source_name
                )
            elif effect.kind == ENERGY_REGEN_KIND:
                actor.gain_energy(effect.magnitude * dt)
            if actor.is_dead:
                return

    def _decay_resources(self, actor: "Actor", dt: float, battle: "Battle") -> None:
        if not self.RESOURCE_DECAY or actor.in_combat(battle.now, battle.config.combat_timeout):
            return
        for name, rate in self.RESOURCE_DECAY.items():
            before = actor.get_resource(name)
            if before <= 0:
                continue
            actor.consume_resource(name, rate * dt)
            value = actor.get_resource(name)
            battle.log(
                RESOURCE_CHANGED,
                {"actor": actor.actor_id, "resource": name, "value": value, "delta": value - before},
            )


__all__ = ["CharacterModule", "HandlerResult", "DOT_KINDS", "REGEN_KIND", "ENERGY_REGEN_KIND"]
