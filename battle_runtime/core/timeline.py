"""Cooperative timeline for deferred effects and multi-step abilities."""

from __future__ import annotations

import heapq
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from .components.status_effects import EPSILON
from .events import AbilitySequence, ScheduledEvent

if TYPE_CHECKING:
    from .actor import Actor

logger = logging.getLogger(__name__)


class Timeline:
    """Single-threaded scheduler driven by the passive tick.

    Ability sequences are generators yielding the delay (seconds) until
    their next step. Every resume happens inside :meth:`advance`, so the
    order of effects only depends on simulation time and scheduling order.
    """

    def __init__(self) -> None:
        self.now: float = 0.0
        self._queue: List[ScheduledEvent] = []
        self._next_seq: int = 0
        # actor_id -> number of suspended sequences
        self._busy: Dict[int, int] = {}

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def schedule(
        self,
        delay: float,
        callback: Callable[[], Any],
        owner: Optional["Actor"] = None,
        label: str = "",
        sequence: Optional[AbilitySequence] = None,
    ) -> ScheduledEvent:
        """Run ``callback`` once ``delay`` seconds of simulation time pass.

        A delay of zero or less runs on the next :meth:`advance`.
        """

        event = ScheduledEvent(
            due=self.now + max(0.0, float(delay)),
            seq=self._next_seq,
            callback=callback,
            owner=owner,
            label=label,
            sequence=sequence,
        )
        self._next_seq += 1
        heapq.heappush(self._queue, event)
        return event

    def run_sequence(
        self, owner: "Actor", sequence: AbilitySequence, label: str = ""
    ) -> bool:
        """Run ``sequence`` up to its first suspension point.

        Returns ``True`` while the sequence is still pending.
        """

        self._busy[owner.actor_id] = self._busy.get(owner.actor_id, 0) + 1
        return self._resume(owner, sequence, label)

    def is_busy(self, owner: "Actor") -> bool:
        """Return ``True`` while ``owner`` has a suspended sequence."""

        return self._busy.get(owner.actor_id, 0) > 0

    def cancel(self, owner: "Actor") -> int:
        """Drop every pending step owned by ``owner``; returns how many."""

        dropped = 0
        for event in self._queue:
            if event.owner is owner and not event.cancelled:
                event.cancelled = True
                if event.sequence is not None:
                    event.sequence.close()
                dropped += 1
        self._busy.pop(owner.actor_id, None)
        return dropped

    # ------------------------------------------------------------------
    # Driving
    # ------------------------------------------------------------------
    def advance(self, dt: float) -> int:
        """Move time forward by ``dt`` and fire every event now due."""

        self.now += dt
        horizon = self._next_seq
        fired = 0
        while self._queue:
            head = self._queue[0]
            if head.due > self.now + EPSILON or head.seq >= horizon:
                break
            heapq.heappop(self._queue)
            if head.cancelled:
                continue
            if head.owner is not None and head.owner.is_dead:
                logger.debug("Skipping '%s': owner %s is gone.", head.label, head.owner.name)
                if head.sequence is not None:
                    head.sequence.close()
                    self._finish(head.owner)
                continue
            try:
                head.callback()
            except Exception as exc:
                logger.error("Scheduled event '%s' failed: %s", head.label, exc, exc_info=True)
            fired += 1
        return fired

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _resume(self, owner: "Actor", sequence: AbilitySequence, label: str) -> bool:
        try:
            delay = next(sequence)
        except StopIteration:
            self._finish(owner)
            return False
        except Exception as exc:
            logger.error("Ability sequence '%s' of %s failed: %s", label, owner.name, exc, exc_info=True)
            self._finish(owner)
            return False
        self.schedule(
            delay,
            lambda: self._resume(owner, sequence, label),
            owner=owner,
            label=label,
            sequence=sequence,
        )
        return True

    def _finish(self, owner: "Actor") -> None:
        left = self._busy.get(owner.actor_id, 0) - 1
        if left > 0:
            self._busy[owner.actor_id] = left
        else:
            self._busy.pop(owner.actor_id, None)


__all__ = ["Timeline"]
