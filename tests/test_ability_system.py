import logging
import textwrap
from pathlib import Path

from battle_runtime.abilities.descriptor import CharacterDefinition
from battle_runtime.systems.ability.ability_system import AbilitySystem, characters_dir
from battle_runtime.config import load_config

MODULE_TEMPLATE = textwrap.dedent(
    """
    from enum import Enum

    from battle_runtime.abilities.base import CharacterModule
    from battle_runtime.systems.ai.decision_policy import PriorityPolicy


    class SampleKind(Enum):
        BASIC = "basic_attack"


    class Sample(CharacterModule):
        character = "Sample"
        Kind = SampleKind
        HANDLERS = {{SampleKind.BASIC: "basic_attack"}}
        VERSION = {version}

        def build_policy(self):
            return PriorityPolicy([], self.ability_name(SampleKind.BASIC))

        def basic_attack(self, battle, actor, decision, descriptor):
            return None
    """
)


def _definitions(kind: str = "basic_attack"):
    return {
        "Sample": CharacterDefinition.from_dict(
            {
                "character": "Sample",
                "max_hp": 10,
                "abilities": [{"name": "Basic Attack", "kind": kind, "category": "basic"}],
            }
        )
    }


def test_load_reload_and_unload(tmp_path: Path) -> None:
    path = tmp_path / "sample.py"
    path.write_text(MODULE_TEMPLATE.format(version=1), encoding="utf-8")
    system = AbilitySystem(search_dirs=[tmp_path], definitions=_definitions())
    assert system.characters["Sample"].VERSION == 1

    path.write_text(MODULE_TEMPLATE.format(version=20), encoding="utf-8")
    system.reload()
    assert system.characters["Sample"].VERSION == 20

    path.unlink()
    system.reload()
    assert "Sample" not in system.characters


def test_unchanged_file_keeps_instance(tmp_path: Path) -> None:
    (tmp_path / "sample.py").write_text(MODULE_TEMPLATE.format(version=1), encoding="utf-8")
    system = AbilitySystem(search_dirs=[tmp_path], definitions=_definitions())
    before = system.characters["Sample"]
    system.reload()
    assert system.characters["Sample"] is before


def test_unknown_kind_is_not_registered(tmp_path: Path, caplog) -> None:
    (tmp_path / "sample.py").write_text(MODULE_TEMPLATE.format(version=1), encoding="utf-8")
    with caplog.at_level(logging.ERROR):
        system = AbilitySystem(search_dirs=[tmp_path], definitions=_definitions("laser"))
    assert "Sample" not in system.characters
    assert "laser" in caplog.text


def test_broken_module_is_logged_and_skipped(tmp_path: Path, caplog) -> None:
    (tmp_path / "broken.py").write_text("def oops(:\n", encoding="utf-8")
    (tmp_path / "sample.py").write_text(MODULE_TEMPLATE.format(version=3), encoding="utf-8")
    with caplog.at_level(logging.ERROR):
        system = AbilitySystem(search_dirs=[tmp_path], definitions=_definitions())
    assert system.characters["Sample"].VERSION == 3
    assert "broken.py" in caplog.text


def test_missing_definition_is_skipped(tmp_path: Path) -> None:
    (tmp_path / "sample.py").write_text(MODULE_TEMPLATE.format(version=1), encoding="utf-8")
    system = AbilitySystem(search_dirs=[tmp_path], definitions={})
    assert system.characters == {}


def test_bundled_characters_are_registered() -> None:
    system = AbilitySystem()
    assert sorted(system.characters) == ["Aang", "Dandy", "Knuckles", "Ridley"]


def test_characters_dir_falls_back_to_bundled(tmp_path: Path) -> None:
    config_file = tmp_path / "config.yaml"
    config_file.write_text("paths:\n  characters: nowhere\n", encoding="utf-8")
    config = load_config(config_file)
    assert characters_dir(config, tmp_path).name == "characters"
    assert (characters_dir(config, tmp_path) / "knuckles.yaml").is_file()

    (tmp_path / "nowhere").mkdir()
    assert characters_dir(config, tmp_path) == tmp_path / "nowhere"
