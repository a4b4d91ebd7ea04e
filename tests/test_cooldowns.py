from battle_runtime.systems.ability.cooldowns import CooldownTracker


def test_cooldown_tracker_basic():
    cd = CooldownTracker()
    cd.start("Wing Buffet", 2)
    assert not cd.is_ready("Wing Buffet")
    cd.tick(1.0)
    assert cd.remaining("Wing Buffet") == 1.0
    cd.tick(1.0)
    assert cd.is_ready("Wing Buffet")
    assert "Wing Buffet" not in cd.timers


def test_float_drift_counts_as_finished():
    cd = CooldownTracker()
    cd.start("Basic Attack", 1.0)
    for _ in range(10):
        cd.tick(0.1)
    assert cd.is_ready("Basic Attack")


def test_zero_cooldown_is_ready_immediately():
    cd = CooldownTracker()
    cd.start("Jab", 0)
    assert cd.is_ready("Jab")


def test_clear_one_or_all():
    cd = CooldownTracker()
    cd.start("A", 5)
    cd.start("B", 5)
    cd.clear("A")
    assert cd.is_ready("A") and not cd.is_ready("B")
    cd.clear()
    assert cd.timers == {}


def test_remaining_tracks_elapsed_ticks():
    cd = CooldownTracker()
    cd.start("Flame Dash", 3.0)
    for n in range(1, 15):
        cd.tick(0.25)
        assert abs(cd.remaining("Flame Dash") - max(0.0, 3.0 - n * 0.25)) < 1e-9
    assert cd.is_ready("Flame Dash")
