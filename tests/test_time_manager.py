import time
import pytest

from battle_runtime.core.time_manager import TimeManager


def test_sleep_increments_counter():
    tm = TimeManager(tick_rate=50.0)
    start = time.perf_counter()
    tm.sleep_until_next_tick()
    elapsed = time.perf_counter() - start

    assert tm.tick_counter == 1
    # Expect roughly 20ms sleep; allow generous tolerance
    assert elapsed == pytest.approx(0.02, abs=0.015)


def test_advance_counts_without_sleeping():
    tm = TimeManager(tick_rate=10.0)
    assert tm.advance() == pytest.approx(0.1)
    tm.advance()
    assert tm.tick_counter == 2
    assert tm.elapsed == pytest.approx(0.2)


def test_tick_rate_must_be_positive():
    with pytest.raises(ValueError):
        TimeManager(tick_rate=0)
