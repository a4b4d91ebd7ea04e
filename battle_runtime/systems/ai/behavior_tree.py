"""Minimal behavior tree utilities for ability selection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, List, Optional

if TYPE_CHECKING:
    from ...abilities.decision import Decision
    from .decision_policy import DecisionContext


class Node:
    """Base behavior tree node."""
    def run(self, context: "DecisionContext") -> Optional["Decision"]:
        raise NotImplementedError

class Action(Node):
    """Execute ``func`` and return its result as the node's output."""
    def __init__(self, func: Callable[["DecisionContext"], Optional["Decision"]]) -> None:
        self.func = func

    def run(self, context: "DecisionContext") -> Optional["Decision"]:
        return self.func(context)

class Condition(Node):
    """Run ``child`` only while ``predicate`` holds."""
    def __init__(self, predicate: Callable[["DecisionContext"], bool], child: Node) -> None:
        self.predicate = predicate
        self.child = child

    def run(self, context: "DecisionContext") -> Optional["Decision"]:
        if not self.predicate(context):
            return None
        return self.child.run(context)

class Sequence(Node):
    """Run children in order until one fails (returns ``None``)."""
    def __init__(self, children: List[Node]) -> None:
        self.children = children

    def run(self, context: "DecisionContext") -> Optional["Decision"]:
        result: Optional["Decision"] = None
        for child in self.children:
            result = child.run(context)
            if result is None:
                return None
        return result

class Selector(Node):
    """Run children until one succeeds (returns non-``None``)."""
    def __init__(self, children: List[Node]) -> None:
        self.children = children

    def run(self, context: "DecisionContext") -> Optional["Decision"]:
        for child in self.children:
            result = child.run(context)
            if result is not None:
                return result
        return None

class BehaviorTree:
    """Container for a tree with a single ``root`` node."""
    def __init__(self, root: Node) -> None:
        self.root = root

    def run(self, context: "DecisionContext") -> Optional["Decision"]:
        return self.root.run(context)


__all__ = [
    "Node",
    "Action",
    "Condition",
    "Sequence",
    "Selector",
    "BehaviorTree",
]
