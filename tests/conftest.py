# tests/conftest.py
import random
from typing import Any, Callable, Dict, List, Optional

import pytest

from battle_runtime.core.actor import Actor
from battle_runtime.core.battle import ALLY, ENEMY, Battle
from battle_runtime.core.components.modifiers import Stat
from battle_runtime.persistence.event_log import select
from battle_runtime.systems.ability.ability_system import AbilitySystem


class RecordingUI:
    """UI manager double that remembers every cue it receives."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def show_floating_text(self, target: Any, text: Any, style: str = "") -> None:
        self.calls.append(("show_floating_text", target, text, style))

    def play_vfx(self, target: Any, keyword: str) -> None:
        self.calls.append(("play_vfx", target, keyword))

    def show_ability_name(self, actor: Any, name: str) -> None:
        self.calls.append(("show_ability_name", actor, name))

    def show_projectile(self, source: Any, target: Any, element: str) -> None:
        self.calls.append(("show_projectile", source, target, element))

    def announce(self, message: str) -> None:
        self.calls.append(("announce", message))

    def named(self, method: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == method]


@pytest.fixture
def ui() -> RecordingUI:
    return RecordingUI()


@pytest.fixture
def make_actor() -> Callable[..., Actor]:
    def _make(
        name: str = "dummy",
        team: str = ENEMY,
        *,
        max_hp: float = 1000.0,
        stats: Optional[Dict[Stat, float]] = None,
        **kwargs: Any,
    ) -> Actor:
        return Actor(name, team, max_hp=max_hp, stats=stats or {}, **kwargs)

    return _make


@pytest.fixture
def make_battle(ui: RecordingUI) -> Callable[..., Battle]:
    """Build a battle with a fresh ability system and an in-memory event log."""

    def _make(allies=(), enemies=(), *, seed: int = 7, abilities: Optional[AbilitySystem] = None) -> Battle:
        return Battle(
            allies,
            enemies,
            abilities=abilities if abilities is not None else AbilitySystem(),
            ui_manager=ui,
            event_log=[],
            seed=seed,
        )

    return _make


class FixedRandom(random.Random):
    """RNG whose ``random()`` always returns ``value``."""

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


def events_of(battle: Battle, event_type: str) -> List[Dict[str, Any]]:
    return [e["data"] for e in select(battle.event_log, event_type)]


__all__ = ["RecordingUI", "FixedRandom", "events_of", "ALLY", "ENEMY"]
