import pytest

from battle_runtime.abilities.descriptor import Category, load_definitions
from battle_runtime.systems.ability.ability_system import AbilitySystem, characters_dir

BUNDLED = ("Aang", "Dandy", "Knuckles", "Ridley")


@pytest.fixture(scope="module")
def system() -> AbilitySystem:
    return AbilitySystem()


def test_bundled_definitions_load() -> None:
    definitions = load_definitions(characters_dir())
    assert sorted(definitions) == list(BUNDLED)
    for definition in definitions.values():
        assert definition.max_hp > 0
        assert definition.basic_ability() is not None


@pytest.mark.parametrize("character", BUNDLED)
def test_every_active_ability_has_a_handler(system: AbilitySystem, character: str) -> None:
    module = system.characters[character]
    definition = system.definition_for(character)
    for ability in definition.abilities.values():
        if ability.category is Category.PASSIVE:
            continue
        kind = module.Kind(ability.kind)
        assert callable(getattr(module, module.HANDLERS[kind]))


@pytest.mark.parametrize("character", BUNDLED)
def test_policies_only_name_known_abilities(system: AbilitySystem, character: str) -> None:
    module = system.characters[character]
    known = set(system.definition_for(character).abilities)
    assert {rule.ability for rule in module.policy.rules} <= known
