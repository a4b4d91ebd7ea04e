"""Command line skirmish runner."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .abilities.descriptor import load_definitions
from .config import CONFIG_PATH, Config, load_config
from .core.battle import ALLY, ENEMY, Battle
from .systems.ability.ability_system import AbilitySystem, characters_dir

logger = logging.getLogger(__name__)

# Spacing of the starting formation, in world units.
ROW_SPACING = 60.0
FRONT_DISTANCE = 150.0


def configure_logging(config: Config) -> None:
    numeric_level = getattr(logging, config.logging.global_level, logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )
    for module_name, level_str in config.logging.module_levels.items():
        module_numeric_level = getattr(logging, str(level_str).upper(), None)
        if isinstance(module_numeric_level, int):
            logging.getLogger(module_name).setLevel(module_numeric_level)
        else:
            logger.warning("Invalid log level '%s' for module '%s' in config.", level_str, module_name)


def _names(raw: str) -> List[str]:
    return [name.strip() for name in raw.split(",") if name.strip()]


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="battle-runtime", description="Run a skirmish between characters.")
    p.add_argument("--allies", default="Knuckles,Dandy", help="Comma separated ally characters")
    p.add_argument("--enemies", default="Ridley,Aang", help="Comma separated enemy characters")
    p.add_argument("--duration", type=float, default=None, help="Battle time limit in seconds")
    p.add_argument("--seed", type=int, default=None, help="RNG seed (defaults to battle.seed)")
    p.add_argument("--event-log", default=None, help="JSON lines file receiving battle events (defaults to paths.event_log)")
    p.add_argument("--realtime", action="store_true", help="Pace ticks in wall-clock time")
    p.add_argument("--config", default=str(CONFIG_PATH), help="Path to config.yaml")
    return p


def build_battle(
    config: Config,
    config_path: Path,
    allies: Sequence[str],
    enemies: Sequence[str],
    seed: Optional[int] = None,
    event_log: Optional[str] = None,
) -> Battle:
    """Create a battle with both teams lined up facing each other."""

    definitions = load_definitions(characters_dir(config, config_path.parent))
    battle = Battle(
        abilities=AbilitySystem(definitions=definitions),
        config=config,
        event_log=event_log,
        seed=seed,
    )
    for index, name in enumerate(allies):
        battle.spawn(name, ALLY, x=0.0, y=index * ROW_SPACING)
    for index, name in enumerate(enemies):
        battle.spawn(name, ENEMY, x=FRONT_DISTANCE, y=index * ROW_SPACING)
    return battle


def print_summary(battle: Battle) -> None:
    print(f"Battle over at {battle.now:.1f}s after {battle.tick} ticks. Winner: {battle.winner or 'none'}")
    for actor in battle.actors:
        state = "down" if actor.is_dead else f"{actor.current_hp:.0f}/{actor.max_hp:.0f} HP"
        print(f"  [{actor.team}] {actor.name}: {state}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = list(argv) if argv is not None else sys.argv[1:]
    args = build_arg_parser().parse_args(argv)

    config_path = Path(args.config)
    config = load_config(config_path)
    configure_logging(config)

    event_log = args.event_log
    if event_log is None and (config.paths or {}).get("event_log"):
        event_log = str(config_path.parent / config.paths["event_log"])

    try:
        battle = build_battle(
            config,
            config_path,
            _names(args.allies),
            _names(args.enemies),
            seed=args.seed,
            event_log=event_log,
        )
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    logger.info("Starting battle: %s vs %s", args.allies, args.enemies)
    battle.run(max_duration=args.duration, realtime=args.realtime)
    print_summary(battle)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
