"""Simple configuration loader for battle_runtime."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


CONFIG_PATH = Path(__file__).resolve().parents[1] / "config.yaml"


@dataclass
class BattleConfig:
    """Configuration values for the battle section."""

    tick_rate: float = 10.0
    max_duration: float = 180.0
    action_threshold: float = 100.0
    combat_timeout: float = 5.0
    seed: int = 1337


@dataclass
class BasicStrikeConfig:
    """Parameters of the executor's default basic strike."""

    base_damage: float = 10.0
    scale_pct: float = 0.25
    scale_stat: str = "atk"
    element: str = "physical"
    cooldown: float = 1.0
    energy_gain: float = 10.0


@dataclass
class AbilityConfig:
    """Ability resolution and execution tuning."""

    level_scaling: float = 0.10
    crit_multiplier: float = 1.5
    default_basic: BasicStrikeConfig = field(default_factory=BasicStrikeConfig)


@dataclass
class ResourceConfig:
    """Custom resource pool defaults."""

    default_cap: float = 999.0


@dataclass
class LoggingConfig:
    """Logging levels applied by the CLI entry point."""

    global_level: str = "INFO"
    module_levels: Dict[str, str] = field(default_factory=dict)


@dataclass
class Config:
    """Top level configuration dataclass."""

    battle: BattleConfig
    abilities: AbilityConfig
    resources: ResourceConfig
    logging: LoggingConfig
    status_policies: Dict[str, str] = field(default_factory=dict)
    paths: Optional[Dict[str, str]] = None
    cache: Optional[Dict[str, Any]] = None


def _parse_config(data: dict[str, Any]) -> Config:
    """Convert raw ``data`` into :class:`Config`."""

    battle_data = data.get("battle", {}) or {}
    battle = BattleConfig(
        tick_rate=float(battle_data.get("tick_rate", 10.0)),
        max_duration=float(battle_data.get("max_duration", 180.0)),
        action_threshold=float(battle_data.get("action_threshold", 100.0)),
        combat_timeout=float(battle_data.get("combat_timeout", 5.0)),
        seed=int(battle_data.get("seed", 1337)),
    )

    ability_data = data.get("abilities", {}) or {}
    basic_data = ability_data.get("default_basic", {}) or {}
    basic = BasicStrikeConfig(
        base_damage=float(basic_data.get("base_damage", 10.0)),
        scale_pct=float(basic_data.get("scale_pct", 0.25)),
        scale_stat=str(basic_data.get("scale_stat", "atk")),
        element=str(basic_data.get("element", "physical")),
        cooldown=float(basic_data.get("cooldown", 1.0)),
        energy_gain=float(basic_data.get("energy_gain", 10.0)),
    )
    abilities = AbilityConfig(
        level_scaling=float(ability_data.get("level_scaling", 0.10)),
        crit_multiplier=float(ability_data.get("crit_multiplier", 1.5)),
        default_basic=basic,
    )

    resource_data = data.get("resources", {}) or {}
    resources = ResourceConfig(
        default_cap=float(resource_data.get("default_cap", 999.0)),
    )

    logging_data = data.get("logging", {}) or {}
    logging_cfg = LoggingConfig(
        global_level=str(logging_data.get("global_level", "INFO")).upper(),
        module_levels=dict(logging_data.get("module_levels") or {}),
    )

    policies = {
        str(kind): str(policy)
        for kind, policy in (data.get("status_policies") or {}).items()
    }

    paths = data.get("paths")
    cache = data.get("cache")

    return Config(
        battle=battle,
        abilities=abilities,
        resources=resources,
        logging=logging_cfg,
        status_policies=policies,
        paths=paths,
        cache=cache,
    )


def load_config(path: Path = CONFIG_PATH) -> Config:
    """Load configuration from ``path`` and return a :class:`Config`."""

    path = Path(path)
    if path.is_file():
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    else:
        raw = {}
    return _parse_config(raw)


# Load configuration at module import time.
CONFIG = load_config()


__all__ = [
    "CONFIG",
    "Config",
    "BattleConfig",
    "AbilityConfig",
    "BasicStrikeConfig",
    "ResourceConfig",
    "LoggingConfig",
    "load_config",
]
