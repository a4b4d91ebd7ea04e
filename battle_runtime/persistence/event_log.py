"""JSON-lines battle event log with size based gzip rotation."""

from __future__ import annotations

import gzip
import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..config import CONFIG, Config

logger = logging.getLogger(__name__)

ABILITY_USED = "ABILITY_USED"
DAMAGE = "DAMAGE"
HEAL = "HEAL"
SHIELD = "SHIELD"
STATUS_APPLIED = "STATUS_APPLIED"
STATUS_EXPIRED = "STATUS_EXPIRED"
RESOURCE_CHANGED = "RESOURCE_CHANGED"
DEATH = "DEATH"
FORM_CHANGED = "FORM_CHANGED"
BATTLE_END = "BATTLE_END"

EVENT_TYPES = (
    ABILITY_USED,
    DAMAGE,
    HEAL,
    SHIELD,
    STATUS_APPLIED,
    STATUS_EXPIRED,
    RESOURCE_CHANGED,
    DEATH,
    FORM_CHANGED,
    BATTLE_END,
)

DEFAULT_RETENTION_MB = 50

Event = Dict[str, Any]


def retention_bytes(config: Optional[Config] = None) -> int:
    """Rotation threshold in bytes from ``cache.log_retention_mb``."""

    cache = (config or CONFIG).cache or {}
    return int(cache.get("log_retention_mb", DEFAULT_RETENTION_MB)) * 1024 * 1024


def _rotate_log(path: Path) -> Path:
    """Move ``path`` aside as ``<stem>_<utc time><suffix>.gz``."""

    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    rotated = path.with_name(f"{path.stem}_{ts}{path.suffix}")
    path.rename(rotated)
    gz_path = rotated.with_suffix(rotated.suffix + ".gz")
    with open(rotated, "rb") as src, gzip.open(gz_path, "wb") as dst:
        shutil.copyfileobj(src, dst)
    rotated.unlink()
    logger.info("Rotated battle log to %s", gz_path)
    return gz_path


def _write(path: Path, event: Event, max_bytes: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and path.stat().st_size >= max_bytes:
        _rotate_log(path)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(event, ensure_ascii=False) + "\n")


def append_event(
    dest: str | Path | List[Event],
    tick: int,
    event_type: str,
    data: Any,
    max_bytes: Optional[int] = None,
) -> None:
    """Record one event in ``dest``: a JSON-lines file path or a list.

    List sinks keep ``data`` as given; file sinks serialise it and rotate
    once the file reaches ``max_bytes`` (default :func:`retention_bytes`).
    """

    event = {"tick": tick, "event_type": event_type, "data": data}
    if isinstance(dest, list):
        dest.append(event)
    else:
        _write(Path(dest), event, retention_bytes() if max_bytes is None else max_bytes)


def select(events: Iterable[Event], event_type: Optional[str] = None) -> Iterator[Event]:
    """Yield ``events`` whose type is ``event_type`` (all when ``None``)."""

    for event in events:
        if event_type is None or event.get("event_type") == event_type:
            yield event


def iter_events(path: str | Path, event_type: Optional[str] = None) -> Iterator[Event]:
    """Yield events from ``path`` in logged order, optionally one type only."""

    p = Path(path)
    if not p.exists():
        return
    yield from select(_read_lines(p), event_type)


def _read_lines(p: Path) -> Iterator[Event]:
    with p.open("r", encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Skipping malformed event on line %d of %s", lineno, p)


class EventLog:
    """File-backed event log for one battle."""

    def __init__(self, path: str | Path, max_bytes: Optional[int] = None) -> None:
        self.path = Path(path)
        self.max_bytes = max_bytes

    def append(self, tick: int, event_type: str, data: Any) -> None:
        append_event(self.path, tick, event_type, data, self.max_bytes)

    def of_type(self, event_type: str) -> List[Event]:
        return list(iter_events(self.path, event_type))

    def __iter__(self) -> Iterator[Event]:
        yield from iter_events(self.path)


__all__ = [
    "EventLog",
    "EVENT_TYPES",
    "append_event",
    "iter_events",
    "select",
    "ABILITY_USED",
    "DAMAGE",
    "HEAL",
    "SHIELD",
    "STATUS_APPLIED",
    "STATUS_EXPIRED",
    "RESOURCE_CHANGED",
    "DEATH",
    "FORM_CHANGED",
    "BATTLE_END",
]
