"""Deterministic target selectors.

Every selector is a pure function over the given sequence. Ties resolve to
the earliest candidate in input order, and the input is never reordered.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

from ...core.components.modifiers import Stat

if TYPE_CHECKING:
    from ...core.actor import Actor


def _first_min(candidates: Sequence["Actor"], key: Callable[["Actor"], float]) -> Optional["Actor"]:
    best: Optional["Actor"] = None
    best_key = 0.0
    for actor in candidates:
        value = key(actor)
        if best is None or value < best_key:
            best, best_key = actor, value
    return best


def nearest(origin: "Actor", candidates: Sequence["Actor"]) -> Optional["Actor"]:
    """Closest candidate by Euclidean distance."""

    return _first_min(candidates, origin.distance_to)


def lowest_hp_fraction(candidates: Sequence["Actor"]) -> Optional["Actor"]:
    return _first_min(candidates, lambda a: a.hp_fraction)


def highest_max_hp(candidates: Sequence["Actor"]) -> Optional["Actor"]:
    return _first_min(candidates, lambda a: -a.max_hp)


def lowest_defense(candidates: Sequence["Actor"]) -> Optional["Actor"]:
    return _first_min(candidates, lambda a: a.effective_stat(Stat.DEF))


def within_radius(center: "Actor", candidates: Sequence["Actor"], radius: float) -> List["Actor"]:
    """Candidates no further than ``radius`` from ``center``, in input order."""

    return [a for a in candidates if center.distance_to(a) <= radius]


def densest_cluster(candidates: Sequence["Actor"], radius: float) -> List["Actor"]:
    """Largest group found around any candidate, centre first.

    The centre is the candidate with the most neighbours within ``radius``
    (itself included); the remaining members keep input order.
    """

    best: Optional["Actor"] = None
    best_count = 0
    for actor in candidates:
        count = len(within_radius(actor, candidates, radius))
        if count > best_count:
            best, best_count = actor, count
    if best is None:
        return []
    return [best] + [a for a in within_radius(best, candidates, radius) if a is not best]


__all__ = [
    "nearest",
    "lowest_hp_fraction",
    "highest_max_hp",
    "lowest_defense",
    "within_radius",
    "densest_cluster",
]
