"""Decision record returned by the AI hook."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

from .descriptor import Category

if TYPE_CHECKING:
    from ..core.actor import Actor


@dataclass(frozen=True)
class Decision:
    """Chosen ability, its category and the targets it was aimed at."""

    ability: Optional[str]
    type: Optional[Category] = None
    targets: Tuple["Actor", ...] = ()

    @classmethod
    def idle(cls) -> "Decision":
        return cls(ability=None, type=None, targets=())

    @property
    def is_idle(self) -> bool:
        return self.ability is None

    @property
    def primary(self) -> Optional["Actor"]:
        """First target still alive, if any."""

        for target in self.targets:
            if target.is_alive:
                return target
        return None


__all__ = ["Decision"]
