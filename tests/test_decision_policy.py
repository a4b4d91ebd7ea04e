from battle_runtime.abilities.descriptor import Category
from battle_runtime.core.actor import StatusRequest
from battle_runtime.core.battle import ALLY
from battle_runtime.systems.ai.decision_policy import (
    AbilityRule,
    DecisionContext,
    Priority,
    PriorityPolicy,
    energy_full,
    self_target,
)


def _policy() -> PriorityPolicy:
    return PriorityPolicy(
        [
            AbilityRule("Poke", Priority.OPPORTUNISTIC),
            AbilityRule("Nova", Priority.ULTIMATE, condition=energy_full),
            AbilityRule("Patch", Priority.MAINTENANCE, self_target, lambda c: c.actor.hp_fraction < 0.5),
        ],
        basic_ability="Basic Attack",
    )


def _hero(make_actor, **kwargs):
    return make_actor("hero", ALLY, abilities=["Basic Attack", "Poke", "Nova", "Patch"], **kwargs)


def test_rules_are_sorted_by_tier() -> None:
    policy = _policy()
    assert [r.ability for r in policy.rules] == ["Nova", "Patch", "Poke", "Basic Attack"]


def test_ultimate_wins_when_energy_full(make_actor) -> None:
    hero = _hero(make_actor, energy=100)
    enemy = make_actor("enemy", x=50)
    decision = _policy().decide(hero, [enemy], [hero])
    assert decision.ability == "Nova"
    assert decision.type is Category.ULTIMATE
    assert decision.targets == (enemy,)


def test_maintenance_targets_self(make_actor) -> None:
    hero = _hero(make_actor)
    hero.current_hp = 100
    decision = _policy().decide(hero, [make_actor("enemy")], [])
    assert decision.ability == "Patch"
    assert decision.targets == (hero,)


def test_cooldowns_fall_through_to_basic(make_actor) -> None:
    hero = _hero(make_actor)
    hero.cooldowns.start("Poke", 3)
    decision = _policy().decide(hero, [make_actor("enemy")], [])
    assert decision.ability == "Basic Attack"
    assert decision.type is Category.BASIC


def test_silence_restricts_to_basic(make_actor) -> None:
    hero = _hero(make_actor, energy=100)
    hero.apply_status(StatusRequest(type="silence", duration=2))
    decision = _policy().decide(hero, [make_actor("enemy")], [])
    assert decision.ability == "Basic Attack"


def test_no_live_enemies_is_idle(make_actor) -> None:
    hero = _hero(make_actor, energy=100)
    dead = make_actor("enemy")
    dead.current_hp = 0
    decision = _policy().decide(hero, [dead], [])
    assert decision.is_idle
    assert decision.primary is None


def test_unknown_ability_is_skipped(make_actor) -> None:
    hero = make_actor("hero", ALLY, abilities=["Basic Attack"], energy=100)
    decision = _policy().decide(hero, [make_actor("enemy")], [])
    assert decision.ability == "Basic Attack"


def test_context_drops_actor_and_dead_allies(make_actor) -> None:
    hero = _hero(make_actor)
    friend = make_actor("friend", ALLY)
    fallen = make_actor("fallen", ALLY)
    fallen.current_hp = 0
    context = DecisionContext.build(hero, [], [hero, friend, fallen])
    assert context.allies == (friend,)
    assert not context.energy_full


def test_decide_is_stable_for_an_unchanged_battle(make_actor) -> None:
    hero = _hero(make_actor, energy=40)
    hero.cooldowns.start("Poke", 3)
    enemies = [make_actor("far", x=300), make_actor("near", x=40)]
    policy = _policy()
    first = policy.decide(hero, enemies, [hero])
    for _ in range(5):
        assert policy.decide(hero, enemies, [hero]) == first
    assert hero.cooldowns.remaining("Poke") == 3
    assert hero.energy == 40
