import pytest

from battle_runtime.abilities.builtin.default_strike import DEFAULT_STRIKE
from battle_runtime.abilities.decision import Decision
from battle_runtime.abilities.descriptor import AbilityDefinition, Category, resolve_descriptor
from battle_runtime.core.actor import StatusRequest
from battle_runtime.core.battle import ALLY, ENEMY
from battle_runtime.core.components.modifiers import Stat
from battle_runtime.persistence.event_log import ABILITY_USED, DAMAGE, DEATH, STATUS_APPLIED

from conftest import events_of


def _flurry(hits: int = 5):
    return resolve_descriptor(
        AbilityDefinition.from_dict(
            {
                "name": "Flurry",
                "kind": "flurry",
                "category": "skill",
                "base_damage": 40,
                "hit_count": hits,
                "hit_interval": 0.2,
            }
        )
    )


def test_multi_hit_stops_when_target_dies(make_actor, make_battle) -> None:
    caster = make_actor("caster", ALLY)
    target = make_actor("target", ENEMY, max_hp=80)
    battle = make_battle([caster], [target])
    hits = []

    sequence = battle.executor.multi_hit(
        battle, caster, target, _flurry(), on_hit=lambda i, r: hits.append((i, r.amount))
    )
    battle.timeline.run_sequence(caster, sequence, label="Flurry")
    assert hits == [(0, 40)]
    for _ in range(6):
        battle.timeline.advance(0.2)

    assert hits == [(0, 40), (1, 40)]
    assert len(events_of(battle, DAMAGE)) == 2
    assert events_of(battle, DEATH) == [{"actor": target.actor_id, "killer": caster.actor_id}]
    assert not battle.timeline.is_busy(caster)


def test_strike_returns_none_for_dead_target(make_actor, make_battle) -> None:
    caster = make_actor("caster", ALLY)
    target = make_actor("target", ENEMY)
    target.current_hp = 0
    battle = make_battle([caster], [target])
    assert battle.executor.strike(battle, caster, target, _flurry(1)) is None
    assert battle.event_log == []


def test_stale_decision_changes_nothing(make_battle) -> None:
    battle = make_battle()
    knuckles = battle.spawn("Knuckles", ALLY, energy=40)
    enemy = battle.spawn("Knuckles", ENEMY, name="Rival", x=50)
    enemy.current_hp = 0

    used = battle.executor.execute(
        battle, knuckles, Decision("Maximum Heat Knuckles Attack", Category.SKILL, (enemy,))
    )
    assert used is False
    assert knuckles.energy == 40
    assert knuckles.cooldown_timers == {}
    assert battle.event_log == []


def test_cooldown_and_passive_refusals(make_battle) -> None:
    battle = make_battle()
    knuckles = battle.spawn("Knuckles", ALLY)
    enemy = battle.spawn("Knuckles", ENEMY, name="Rival", x=50)
    knuckles.cooldowns.start("Basic Attack", 1.0)

    assert not battle.executor.execute(battle, knuckles, Decision("Basic Attack", Category.BASIC, (enemy,)))
    assert not battle.executor.execute(
        battle, knuckles, Decision("Guardian's Resolve", Category.PASSIVE, (enemy,))
    )
    assert enemy.current_hp == enemy.max_hp


def test_successful_use_commits_cooldown_energy_and_log(make_battle, ui) -> None:
    battle = make_battle()
    knuckles = battle.spawn("Knuckles", ALLY)
    enemy = battle.spawn("Knuckles", ENEMY, name="Rival", x=50)

    assert battle.executor.execute(battle, knuckles, Decision("Basic Attack", Category.BASIC, (enemy,)))
    assert knuckles.cooldowns.remaining("Basic Attack") == pytest.approx(1.0)
    assert knuckles.energy == pytest.approx(10)
    assert enemy.current_hp < enemy.max_hp
    assert events_of(battle, ABILITY_USED) == [
        {"caster": knuckles.actor_id, "ability": "Basic Attack", "targets": [enemy.actor_id]}
    ]
    assert ("show_ability_name", knuckles, "Basic Attack") in ui.calls


def test_unknown_ability_falls_back_to_default_strike(make_battle) -> None:
    battle = make_battle()
    knuckles = battle.spawn("Knuckles", ALLY)
    enemy = battle.spawn("Knuckles", ENEMY, name="Rival", x=50)

    assert battle.executor.execute(battle, knuckles, Decision("Moonwalk", Category.SKILL, (enemy,)))
    assert not knuckles.cooldowns.is_ready(DEFAULT_STRIKE)
    assert events_of(battle, DAMAGE)[0]["ability"] == DEFAULT_STRIKE


def test_actor_without_module_uses_default_strike(make_actor, make_battle) -> None:
    hero = make_actor("hero", ALLY, stats={Stat.ATK: 40})
    enemy = make_actor("enemy", ENEMY, x=30)
    battle = make_battle([hero], [enemy])
    assert battle.executor.default_strike(battle, hero)
    # 10 + 0.25 * 40, no luck so no crit
    assert enemy.max_hp - enemy.current_hp == pytest.approx(20)
    assert not battle.executor.default_strike(battle, hero)


def test_ultimate_empties_energy_and_runs_as_sequence(make_battle) -> None:
    battle = make_battle()
    knuckles = battle.spawn("Knuckles", ALLY, energy=100)
    enemy = battle.spawn("Knuckles", ENEMY, name="Rival", x=50)

    assert battle.executor.execute(
        battle, knuckles, Decision("Angel Island Avalanche", Category.ULTIMATE, (enemy,))
    )
    assert knuckles.energy == 0
    assert battle.timeline.is_busy(knuckles)
    assert knuckles.statuses.has("cc_immune")
    assert knuckles.statuses.has("channel")
    assert len(events_of(battle, DAMAGE)) == 1

    for _ in range(30):
        battle.timeline.advance(0.1)
    assert len(events_of(battle, DAMAGE)) == 6
    assert not battle.timeline.is_busy(knuckles)
    assert not knuckles.statuses.has("channel")


def test_apply_status_logs_only_when_applied(make_actor, make_battle) -> None:
    caster = make_actor("caster", ALLY)
    target = make_actor("target", ENEMY)
    battle = make_battle([caster], [target])
    target.apply_status(StatusRequest(type="cc_immune", duration=5))

    assert battle.executor.apply_status(battle, caster, target, StatusRequest(type="stun", duration=1)) is None
    effect = battle.executor.apply_status(
        battle, caster, target, StatusRequest(type="burn", duration=3, value=4, source="Torch")
    )
    assert effect is not None
    assert events_of(battle, STATUS_APPLIED) == [
        {"source": caster.actor_id, "target": target.actor_id, "kind": "burn", "stacks": 1, "duration": 3}
    ]


def test_heal_and_shield_helpers(make_actor, make_battle) -> None:
    caster = make_actor("caster", ALLY)
    target = make_actor("target", ALLY, max_hp=100)
    battle = make_battle([caster, target], [make_actor("enemy")])
    target.current_hp = 50

    assert battle.executor.heal(battle, caster, target, 80, "Patch") == pytest.approx(50)
    assert battle.executor.shield(battle, caster, target, 25, 2.0, "Barrier") == pytest.approx(25)
    assert target.statuses.get("shield", "Barrier").magnitude == pytest.approx(25)


def test_handler_error_after_a_hit_still_spends_the_turn(make_battle, monkeypatch) -> None:
    battle = make_battle()
    knuckles = battle.spawn("Knuckles", ALLY)
    enemy = battle.spawn("Knuckles", ENEMY, name="Rival", x=50)
    module = battle.module_for(knuckles)

    def broken(battle, actor, decision, descriptor):
        battle.executor.strike(battle, actor, decision.primary, descriptor)
        raise RuntimeError("handler failed mid-way")

    monkeypatch.setattr(module, "execute_action", broken)
    decision = Decision("Basic Attack", Category.BASIC, (enemy,))
    used = [battle.executor.execute(battle, knuckles, decision) for _ in range(3)]

    assert used == [True, False, False]
    assert len(events_of(battle, DAMAGE)) == 1
    assert knuckles.cooldowns.remaining("Basic Attack") == pytest.approx(1.0)
