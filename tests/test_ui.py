import logging

from battle_runtime.utils.ui import UINotifier


class PartialUI:
    def __init__(self) -> None:
        self.texts = []

    def show_floating_text(self, target, text, style=""):
        self.texts.append((target, text, style))

    def play_vfx(self, target, keyword):
        raise RuntimeError("renderer gone")


def test_missing_manager_is_a_no_op() -> None:
    notifier = UINotifier()
    notifier.announce("hello")
    notifier.show_ability_name(None, "Punch")


def test_forwards_known_cues_and_skips_missing_ones() -> None:
    manager = PartialUI()
    notifier = UINotifier(manager)
    notifier.show_floating_text("hero", "+10", "heal")
    notifier.show_projectile("hero", "foe", "fire")
    assert manager.texts == [("hero", "+10", "heal")]


def test_failing_cue_is_logged_not_raised(caplog) -> None:
    notifier = UINotifier(PartialUI())
    with caplog.at_level(logging.WARNING):
        notifier.play_vfx("hero", "vfx-fire")
    assert "play_vfx" in caplog.text
    assert "renderer gone" in caplog.text
