import pytest

from battle_runtime.abilities.decision import Decision
from battle_runtime.abilities.descriptor import Category
from battle_runtime.core.actor import StatusRequest
from battle_runtime.core.battle import ALLY
from battle_runtime.core.components.modifiers import Stat
from battle_runtime.persistence.event_log import DAMAGE, FORM_CHANGED

from conftest import events_of

ICHOR = "Ichor Reserves"
BLOOM = "Prismatic Bloom"
BURST = "Chromatic Burst"


@pytest.fixture
def dandy_battle(make_actor, make_battle):
    friend = make_actor("friend", ALLY, x=100, stats={Stat.ATK: 100}, energy=80)
    enemies = [make_actor("e0", x=150, max_hp=5000), make_actor("e1", x=200, max_hp=3000)]
    battle = make_battle([friend], enemies)
    dandy = battle.spawn("Dandy", ALLY, energy=80)
    return battle, battle.module_for(dandy), dandy, friend, enemies


def test_bloom_needs_ichor(dandy_battle) -> None:
    battle, _, dandy, _, enemies = dandy_battle
    dandy.energy = 100
    assert dandy.get_resource(ICHOR) == 0
    assert not battle.executor.execute(battle, dandy, Decision(BLOOM, Category.ULTIMATE, tuple(enemies)))
    assert dandy.energy == 100
    assert not dandy.statuses.has("form")


def test_bloom_transforms_and_instability_follows(dandy_battle) -> None:
    battle, module, dandy, _, enemies = dandy_battle
    dandy.energy = 100
    dandy.add_resource(ICHOR, 60)
    assert battle.executor.execute(battle, dandy, Decision(BLOOM, Category.ULTIMATE, tuple(enemies)))
    assert dandy.get_resource(ICHOR) == pytest.approx(10)
    assert dandy.energy == 0
    assert dandy.statuses.get("form", BLOOM).name == BLOOM
    for enemy in enemies:
        assert enemy.statuses.get("debuff_atk", "Discord Seed") is not None

    module.update_passives(dandy, 15.0, battle)
    assert not dandy.statuses.has("form")
    assert dandy.statuses.get("debuff_atk", "Instability").magnitude == pytest.approx(0.2)
    assert dandy.effective_stat(Stat.ATK) == pytest.approx(36)
    assert dandy.effective_stat(Stat.MAGIC_ATK) == pytest.approx(48)
    changes = [(e["from"], e["to"]) for e in events_of(battle, FORM_CHANGED)]
    assert changes == [(None, BLOOM), (BLOOM, None)]


def test_transformed_basic_stacks_seeds(dandy_battle) -> None:
    battle, _, dandy, _, enemies = dandy_battle
    target = enemies[0]
    assert battle.executor.execute(battle, dandy, Decision("Basic Attack", Category.BASIC, (target,)))
    assert not target.statuses.has("debuff_atk")

    dandy.apply_status(StatusRequest(type="form", name=BLOOM, duration=15, source=BLOOM))
    for _ in range(4):
        dandy.cooldowns.clear()
        assert battle.executor.execute(battle, dandy, Decision("Basic Attack", Category.BASIC, (target,)))
    seed = target.statuses.get("debuff_atk", "Discord Seed")
    assert seed.stack_count == 3
    assert seed.total_magnitude == pytest.approx(0.15)


def test_chromatic_burst_fires_six_elements_after_channel(dandy_battle) -> None:
    battle, _, dandy, _, enemies = dandy_battle
    target = enemies[0]
    assert battle.executor.execute(battle, dandy, Decision(BURST, Category.SKILL, (target,)))
    assert dandy.statuses.has("channel")
    for _ in range(11):
        battle.timeline.advance(0.1)
    assert events_of(battle, DAMAGE) == []

    for _ in range(9):
        battle.timeline.advance(0.1)
    hits = [e for e in events_of(battle, DAMAGE) if e["ability"] == BURST]
    assert len(hits) == 6
    assert not dandy.statuses.has("channel")
    resonance = target.statuses.get("vulnerability", "Prismatic Resonance")
    assert resonance.stack_count == 1
    assert resonance.magnitude == pytest.approx(0.07)


def test_kills_pay_dividends(dandy_battle) -> None:
    battle, module, dandy, friend, enemies = dandy_battle
    module.update_passives(dandy, 0.1, battle)
    enemies[0].current_hp = 0
    module.update_passives(dandy, 0.1, battle)

    assert dandy.get_resource(ICHOR) == pytest.approx(15)
    buffed = [a for a in (dandy, friend) if a.statuses.has("buff_atk", "Ichor Dividend")]
    assert len(buffed) == 1
    assert buffed[0].statuses.get("buff_atk", "Ichor Dividend").name == "Petals for Profit"

    module.update_passives(dandy, 0.1, battle)
    assert dandy.effective_stat(Stat.TENACITY) == pytest.approx(5)
    assert dandy.effective_stat(Stat.EVASION) == pytest.approx(0.05)
    assert dandy.get_resource(ICHOR) == pytest.approx(15)


def test_support_skills(dandy_battle) -> None:
    battle, _, dandy, friend, enemies = dandy_battle
    friend.current_hp = 300
    friend.energy = 0

    assert battle.executor.execute(battle, dandy, Decision("Inventory Management", Category.SKILL, (dandy,)))
    assert friend.current_hp == pytest.approx(318)
    assert friend.energy == pytest.approx(15)
    assert dandy.get_resource(ICHOR) == pytest.approx(10)

    assert battle.executor.execute(battle, dandy, Decision("Dandy's Bargain", Category.SKILL, (friend,)))
    assert friend.statuses.get("shield", "Dandy's Bargain").magnitude == pytest.approx(120)
    assert friend.statuses.get("energy_regen", "Dandy's Bargain").magnitude == pytest.approx(5)
    assert dandy.get_resource(ICHOR) == pytest.approx(15)

    assert battle.executor.execute(battle, dandy, Decision("Cheerful Zephyr", Category.SKILL, (enemies[0],)))
    assert friend.statuses.get("shield", "Cheerful Zephyr").magnitude == pytest.approx(60)
    assert friend.statuses.has("buff_speed", "Cheerful Zephyr")
    assert enemies[0].current_hp < enemies[0].max_hp


def test_policy_order(dandy_battle) -> None:
    battle, module, dandy, friend, enemies = dandy_battle

    def decide():
        return module.decide_action(dandy, battle.enemies_of(dandy), battle.allies_of(dandy), battle)

    friend.energy = 10
    assert decide().ability == "Inventory Management"

    friend.energy = 80
    assert decide().ability == BURST
    assert decide().targets == (enemies[0],)

    friend.current_hp = 800
    bargain = decide()
    assert bargain.ability == "Dandy's Bargain" and bargain.targets == (friend,)

    dandy.add_resource(ICHOR, 50)
    bloom = decide()
    assert bloom.ability == BLOOM and bloom.targets == tuple(enemies)
