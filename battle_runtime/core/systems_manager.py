"""System registry and tick dispatcher."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List
import inspect

# Systems that do not declare a ``phase`` run after the built-in ones.
DEFAULT_PHASE = 100


def _phase(system: Any) -> int:
    return int(getattr(system, "phase", DEFAULT_PHASE))


def _arity(system: Any) -> int:
    """Number of positional parameters ``system.update`` accepts."""

    method = getattr(system, "update", None)
    if not callable(method):
        return -1
    params = [
        p
        for p in inspect.signature(method).parameters.values()
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    return len(params)


class SystemsManager:
    """Run battle systems once per step, ordered by their ``phase``.

    The passive driver (phase 0) always runs before the action loop
    (phase 1) whatever order they were registered in; systems sharing a
    phase keep their registration order.
    """

    def __init__(self) -> None:
        self._systems: List[Any] = []
        self._arity: Dict[int, int] = {}

    # ------------------------------------------------------------------
    # Registration API
    # ------------------------------------------------------------------
    def register(self, system: Any) -> None:
        """Add ``system`` unless it is already registered."""

        if system in self._systems:
            return
        phase = _phase(system)
        index = len(self._systems)
        for idx, other in enumerate(self._systems):
            if _phase(other) > phase:
                index = idx
                break
        self._systems.insert(index, system)
        self._arity[id(system)] = _arity(system)

    def unregister(self, system: Any) -> None:
        if system in self._systems:
            self._systems.remove(system)
            self._arity.pop(id(system), None)

    # ------------------------------------------------------------------
    # Tick dispatch
    # ------------------------------------------------------------------
    def update(self, *args: Any) -> None:
        """Call ``update`` on each system, passing as many trailing ``args``
        as its signature takes (``update()`` or ``update(dt)``)."""

        for system in list(self._systems):
            n = self._arity.get(id(system), -1)
            if n < 0:
                continue
            if n == 0:
                system.update()
            else:
                system.update(*args[-n:])

    def __iter__(self) -> Iterator[Any]:
        return iter(self._systems)

    def __len__(self) -> int:
        return len(self._systems)


__all__ = ["SystemsManager", "DEFAULT_PHASE"]
