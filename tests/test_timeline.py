from battle_runtime.core.timeline import Timeline


def test_schedule_fires_in_due_then_insertion_order(make_actor) -> None:
    tl = Timeline()
    fired = []
    tl.schedule(0.2, lambda: fired.append("late"))
    tl.schedule(0.1, lambda: fired.append("first"))
    tl.schedule(0.1, lambda: fired.append("second"))
    assert tl.advance(0.1) == 2
    assert fired == ["first", "second"]
    tl.advance(0.1)
    assert fired == ["first", "second", "late"]
    assert tl.advance(1.0) == 0


def test_zero_delay_scheduled_during_advance_waits_for_next_step() -> None:
    tl = Timeline()
    fired = []

    def chain() -> None:
        fired.append("outer")
        tl.schedule(0.0, lambda: fired.append("inner"))

    tl.schedule(0.0, chain)
    tl.advance(0.1)
    assert fired == ["outer"]
    tl.advance(0.1)
    assert fired == ["outer", "inner"]


def test_sequence_runs_first_step_immediately_and_marks_busy(make_actor) -> None:
    actor = make_actor()
    tl = Timeline()
    steps = []

    def seq():
        steps.append(tl.now)
        yield 0.5
        steps.append(tl.now)

    assert tl.run_sequence(actor, seq(), label="test")
    assert steps == [0.0]
    assert tl.is_busy(actor)
    for _ in range(4):
        tl.advance(0.1)
    assert len(steps) == 1
    tl.advance(0.1)
    assert len(steps) == 2
    assert not tl.is_busy(actor)


def test_dead_owner_sequence_is_closed_without_running(make_actor) -> None:
    actor = make_actor()
    tl = Timeline()
    steps = []

    def seq():
        try:
            yield 0.1
            steps.append("resumed")
        finally:
            steps.append("closed")

    tl.run_sequence(actor, seq())
    actor.current_hp = 0
    tl.advance(0.1)
    assert steps == ["closed"]
    assert not tl.is_busy(actor)


def test_cancel_drops_pending_steps(make_actor) -> None:
    actor = make_actor()
    other = make_actor("other")
    tl = Timeline()
    fired = []
    tl.schedule(0.1, lambda: fired.append("mine"), owner=actor)
    tl.schedule(0.1, lambda: fired.append("theirs"), owner=other)
    assert tl.cancel(actor) == 1
    tl.advance(0.1)
    assert fired == ["theirs"]


def test_failing_callback_does_not_stop_others(caplog) -> None:
    tl = Timeline()
    fired = []

    def boom() -> None:
        raise RuntimeError("bad step")

    tl.schedule(0.0, boom, label="boom")
    tl.schedule(0.0, lambda: fired.append("ok"))
    tl.advance(0.1)
    assert fired == ["ok"]
    assert "boom" in caplog.text
