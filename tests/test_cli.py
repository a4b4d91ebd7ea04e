import json
from pathlib import Path

from battle_runtime.main import build_arg_parser, main


def test_parser_defaults() -> None:
    args = build_arg_parser().parse_args([])
    assert args.allies == "Knuckles,Dandy"
    assert args.enemies == "Ridley,Aang"
    assert args.duration is None
    assert not args.realtime


def test_short_skirmish_writes_event_log(tmp_path: Path, capsys) -> None:
    log_path = tmp_path / "events.jsonl"
    code = main(
        [
            "--allies", "Knuckles",
            "--enemies", "Aang",
            "--duration", "3",
            "--seed", "5",
            "--event-log", str(log_path),
        ]
    )
    assert code == 0
    out = capsys.readouterr().out
    assert "Battle over" in out
    assert "Knuckles" in out and "Aang" in out

    entries = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    assert entries[-1]["event_type"] == "BATTLE_END"


def test_unknown_character_is_an_error(tmp_path: Path, capsys) -> None:
    code = main(["--allies", "Nobody", "--event-log", str(tmp_path / "events.jsonl")])
    assert code == 2
    assert "Unknown character: Nobody" in capsys.readouterr().err
