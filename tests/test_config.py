from pathlib import Path

import pytest

from battle_runtime.config import CONFIG, AbilityConfig, BattleConfig, load_config


def test_config_module_loads_config():
    assert isinstance(CONFIG.battle, BattleConfig)
    assert isinstance(CONFIG.abilities, AbilityConfig)
    assert CONFIG.battle.tick_rate == 10
    assert CONFIG.battle.action_threshold == 100
    assert CONFIG.abilities.default_basic.cooldown == 1.0
    assert CONFIG.status_policies == {"vulnerability": "add-stack"}
    assert CONFIG.logging.module_levels["battle_runtime.systems.ability.ability_system"] == "WARNING"


def test_missing_file_uses_defaults(tmp_path: Path):
    config = load_config(tmp_path / "absent.yaml")
    assert config.battle.max_duration == 180
    assert config.battle.seed == 1337
    assert config.resources.default_cap == 999
    assert config.paths is None


def test_partial_file_overrides_only_given_keys(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "battle:\n  tick_rate: 20\nabilities:\n  default_basic:\n    base_damage: 3\n"
        "logging:\n  global_level: debug\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.battle.tick_rate == 20
    assert config.battle.action_threshold == 100
    assert config.abilities.default_basic.base_damage == 3
    assert config.abilities.default_basic.scale_pct == 0.25
    assert config.logging.global_level == "DEBUG"


def test_battle_config_drives_ability_resolution(tmp_path: Path):
    from battle_runtime.abilities.descriptor import AbilityDefinition, resolve_descriptor
    from battle_runtime.core.battle import Battle

    path = tmp_path / "config.yaml"
    path.write_text(
        "abilities:\n  level_scaling: 0.5\n  default_basic:\n    energy_gain: 4\n",
        encoding="utf-8",
    )
    config = load_config(path)
    battle = Battle(config=config, event_log=[])
    knuckles = battle.spawn("Knuckles", skill_levels={"Basic Attack": 3})
    module = battle.module_for(knuckles)

    descriptor = module.get_parsed_ability("Basic Attack", knuckles, battle)
    assert descriptor.base_damage == 28.0
    assert module.get_parsed_ability("Basic Attack", knuckles).base_damage == pytest.approx(16.8)

    bare = AbilityDefinition.from_dict({"name": "Poke", "kind": "poke", "category": "basic"})
    assert bare.energy_gain is None
    assert resolve_descriptor(bare, config=config.abilities).energy_gain == 4.0
    assert resolve_descriptor(bare).energy_gain == CONFIG.abilities.default_basic.energy_gain
