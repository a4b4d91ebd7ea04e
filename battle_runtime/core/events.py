"""Event dataclasses used by core systems."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Generator, Optional, Tuple

if TYPE_CHECKING:
    from .actor import Actor


# A suspended ability: yields the delay in seconds before it resumes.
AbilitySequence = Generator[float, None, None]


@dataclass(slots=True)
class AbilityUseEvent:
    """Record that an ability was used by an actor."""

    caster_id: int
    ability_name: str
    target_ids: Tuple[int, ...]
    time: float


@dataclass(order=True, slots=True)
class ScheduledEvent:
    """Deferred callback or suspended sequence step on the battle timeline."""

    due: float
    seq: int
    callback: Callable[[], Any] = field(compare=False)
    owner: Optional["Actor"] = field(default=None, compare=False)
    label: str = field(default="", compare=False)
    sequence: Optional[AbilitySequence] = field(default=None, compare=False)
    cancelled: bool = field(default=False, compare=False)


__all__ = ["AbilityUseEvent", "ScheduledEvent", "AbilitySequence"]
