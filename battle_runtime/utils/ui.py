"""Best-effort forwarding of battle cues to an optional UI manager."""

from __future__ import annotations

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class UINotifier:
    """Forward visual cues to ``manager`` without ever affecting game state.

    A missing manager, or a manager lacking a method, turns the call into a
    no-op. Exceptions raised by the manager are logged and dropped.
    """

    def __init__(self, manager: Optional[Any] = None) -> None:
        self.manager = manager

    def _call(self, method_name: str, *args: Any) -> None:
        if self.manager is None:
            return
        method = getattr(self.manager, method_name, None)
        if not callable(method):
            return
        try:
            method(*args)
        except Exception as exc:
            logger.warning("UI call %s failed: %s", method_name, exc, exc_info=True)

    # ------------------------------------------------------------------
    # Cues
    # ------------------------------------------------------------------
    def show_floating_text(self, target: Any, text: Any, style: str = "") -> None:
        self._call("show_floating_text", target, text, style)

    def play_vfx(self, target: Any, keyword: str) -> None:
        self._call("play_vfx", target, keyword)

    def show_ability_name(self, actor: Any, name: str) -> None:
        self._call("show_ability_name", actor, name)

    def show_projectile(self, source: Any, target: Any, element: str) -> None:
        self._call("show_projectile", source, target, element)

    def announce(self, message: str) -> None:
        self._call("announce", message)


__all__ = ["UINotifier"]
