"""Tiered ability selection built on the behavior tree helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Sequence, Tuple

from ...abilities.decision import Decision
from ...abilities.descriptor import Category
from ...core.components.status_effects import EPSILON
from .behavior_tree import Action, BehaviorTree, Condition, Node, Selector
from . import targeting

if TYPE_CHECKING:
    from ...core.actor import Actor

logger = logging.getLogger(__name__)

# Statuses that restrict an actor to its basic attack.
SILENCING_KINDS = ("silence",)


@dataclass(frozen=True)
class DecisionContext:
    """Read-only snapshot handed to every rule."""

    actor: "Actor"
    enemies: Tuple["Actor", ...]
    allies: Tuple["Actor", ...]
    now: float = 0.0

    @classmethod
    def build(
        cls,
        actor: "Actor",
        enemies: Iterable["Actor"],
        allies: Iterable["Actor"],
        now: float = 0.0,
    ) -> "DecisionContext":
        """Keep live enemies and live allies other than ``actor``."""

        return cls(
            actor=actor,
            enemies=tuple(e for e in enemies if e.is_alive),
            allies=tuple(a for a in allies if a.is_alive and a is not actor),
            now=now,
        )

    @property
    def energy_full(self) -> bool:
        return self.actor.energy >= self.actor.max_energy - EPSILON

    @property
    def silenced(self) -> bool:
        return any(self.actor.statuses.has(kind) for kind in SILENCING_KINDS)

    def resource(self, name: str) -> float:
        return self.actor.get_resource(name)


class Priority(IntEnum):
    """Evaluation tiers, highest priority first."""

    ULTIMATE = 1
    MAINTENANCE = 2
    OPPORTUNISTIC = 3
    FALLBACK = 4


TargetFn = Callable[[DecisionContext], Sequence["Actor"]]
ConditionFn = Callable[[DecisionContext], bool]

_CATEGORY_FOR = {
    Priority.ULTIMATE: Category.ULTIMATE,
    Priority.MAINTENANCE: Category.SKILL,
    Priority.OPPORTUNISTIC: Category.SKILL,
    Priority.FALLBACK: Category.BASIC,
}


def always(context: DecisionContext) -> bool:
    return True


def energy_full(context: DecisionContext) -> bool:
    return context.energy_full


def nearest_enemy(context: DecisionContext) -> List["Actor"]:
    target = targeting.nearest(context.actor, context.enemies)
    return [target] if target is not None else []


def self_target(context: DecisionContext) -> List["Actor"]:
    return [context.actor]


@dataclass(frozen=True)
class AbilityRule:
    """Use ``ability`` on ``targets`` when ``condition`` holds."""

    ability: str
    priority: Priority
    targets: TargetFn = nearest_enemy
    condition: ConditionFn = always

    @property
    def category(self) -> Category:
        return _CATEGORY_FOR[self.priority]


class PriorityPolicy:
    """Four-tier policy: ultimate, maintenance, opportunistic, basic.

    Rules inside a tier keep their declaration order. The basic attack is
    appended as the last rule and always aims at the nearest enemy unless
    ``basic_targets`` says otherwise.
    """

    def __init__(
        self,
        rules: Iterable[AbilityRule],
        basic_ability: Optional[str],
        basic_targets: TargetFn = nearest_enemy,
    ) -> None:
        ordered = sorted(rules, key=lambda r: r.priority)
        if basic_ability is not None:
            ordered.append(AbilityRule(basic_ability, Priority.FALLBACK, basic_targets))
        self.rules: List[AbilityRule] = ordered
        self.tree = self._build()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def decide(
        self,
        actor: "Actor",
        enemies: Iterable["Actor"],
        allies: Iterable["Actor"],
        now: float = 0.0,
    ) -> Decision:
        """Return the highest-priority usable decision or ``Decision.idle()``."""

        context = DecisionContext.build(actor, enemies, allies, now)
        decision = self.tree.run(context)
        if decision is None:
            return Decision.idle()
        return decision

    # ------------------------------------------------------------------
    # Tree construction
    # ------------------------------------------------------------------
    def _build(self) -> BehaviorTree:
        children: List[Node] = [
            Condition(self._usable(rule), Action(self._pick(rule))) for rule in self.rules
        ]
        root = Condition(lambda c: bool(c.enemies), Selector(children))
        return BehaviorTree(root)

    @staticmethod
    def _usable(rule: AbilityRule) -> ConditionFn:
        def check(context: DecisionContext) -> bool:
            actor = context.actor
            if rule.ability not in actor.abilities:
                return False
            if not actor.cooldowns.is_ready(rule.ability):
                return False
            if rule.priority is not Priority.FALLBACK and context.silenced:
                return False
            return rule.condition(context)

        return check

    @staticmethod
    def _pick(rule: AbilityRule) -> Callable[[DecisionContext], Optional[Decision]]:
        def pick(context: DecisionContext) -> Optional[Decision]:
            chosen = tuple(t for t in rule.targets(context) if t.is_alive)
            if not chosen:
                return None
            logger.debug("%s picks %s -> %s", context.actor.name, rule.ability, [t.name for t in chosen])
            return Decision(ability=rule.ability, type=rule.category, targets=chosen)

        return pick


__all__ = [
    "DecisionContext",
    "Priority",
    "AbilityRule",
    "PriorityPolicy",
    "always",
    "energy_full",
    "nearest_enemy",
    "self_target",
]
