"""
Tests for the session execution state machine.

Covers the advancing algorithm, boundary rest resolution, completion
percentage, timer isolation and timer-handle ownership.  All runs are
driven by a ManualClock, so every tick is explicit.
"""

import pytest

from rep_runner.core.clock import ManualClock
from rep_runner.core.config import ElapsedSource, RestPrecedence, RunnerSettings
from rep_runner.core.machine import (
    LEGAL_PHASES,
    SessionMachine,
    advance,
    completion_percent,
    resolve_rest,
)
from rep_runner.core.models import (
    Action,
    Boundary,
    ExecutionPosition,
    ExerciseTarget,
    Phase,
    SessionKind,
    SessionPlan,
)
from rep_runner.core.reporter import CompletionReporter

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _item(name: str = "pull_ups", sets: int = 1, rest: int | None = None) -> ExerciseTarget:
    return ExerciseTarget(exercise_id=name, display_name=name.replace("_", " "), set_count=sets, rest_seconds=rest)


def _classic(*items: ExerciseTarget, **kwargs) -> SessionPlan:
    return SessionPlan(id="classic", name="Classic", kind=SessionKind.CLASSIC, items=tuple(items), **kwargs)


def _circuit(*items: ExerciseTarget, rounds: int = 2, **kwargs) -> SessionPlan:
    return SessionPlan(
        id="circuit",
        name="Circuit",
        kind=SessionKind.CIRCUIT,
        round_count=rounds,
        items=tuple(items),
        **kwargs,
    )


def _machine(plan: SessionPlan, countdown: int = 3, **settings) -> tuple[SessionMachine, ManualClock, list]:
    clock = ManualClock()
    sunk: list = []
    cfg = RunnerSettings(countdown_seconds=countdown, **settings)
    reporter = CompletionReporter(sunk.append, elapsed_source=cfg.elapsed_source)
    machine = SessionMachine(plan, clock=clock, settings=cfg, reporter=reporter)
    return machine, clock, sunk


def _go_active(machine: SessionMachine, clock: ManualClock) -> None:
    machine.start()
    clock.tick(machine.timer.countdown_remaining)
    assert machine.phase is Phase.ACTIVE


def _confirm_until_finished(machine: SessionMachine, clock: ManualClock, limit: int = 500) -> int:
    """Confirm sets (skipping every rest) until finished; return the confirm count."""
    confirms = 0
    while not machine.finished:
        if machine.phase is Phase.RESTING:
            machine.skip_rest()
            continue
        assert machine.confirm_set()
        confirms += 1
        assert confirms <= limit
    return confirms


# =============================================================================
# Pure position math
# =============================================================================


class TestAdvance:
    def test_next_set_of_same_exercise(self):
        plan = _classic(_item(sets=3))
        nxt, boundary = advance(plan, ExecutionPosition(0, 0, 0))
        assert nxt.as_tuple() == (0, 0, 1, False)
        assert boundary is Boundary.SET

    def test_next_exercise_resets_set(self):
        plan = _classic(_item("a", sets=2), _item("b", sets=2))
        nxt, boundary = advance(plan, ExecutionPosition(0, 0, 1))
        assert nxt.as_tuple() == (0, 1, 0, False)
        assert boundary is Boundary.EXERCISE

    def test_next_round(self):
        plan = _circuit(_item("a"), _item("b"), rounds=2)
        nxt, boundary = advance(plan, ExecutionPosition(0, 1, 0))
        assert nxt.as_tuple() == (1, 0, 0, False)
        assert boundary is Boundary.ROUND

    def test_finish_keeps_position(self):
        plan = _circuit(_item("a"), _item("b"), rounds=2)
        nxt, boundary = advance(plan, ExecutionPosition(1, 1, 0))
        assert nxt.as_tuple() == (1, 1, 0, True)
        assert boundary is Boundary.FINISH

    def test_skip_exercise_ignores_remaining_sets(self):
        plan = _classic(_item("a", sets=5), _item("b", sets=2))
        nxt, boundary = advance(plan, ExecutionPosition(0, 0, 1), skip_exercise=True)
        assert nxt.as_tuple() == (0, 1, 0, False)
        assert boundary is Boundary.EXERCISE

    def test_zero_set_count_runs_once(self):
        plan = _classic(_item("a", sets=0), _item("b", sets=1))
        nxt, boundary = advance(plan, ExecutionPosition(0, 0, 0))
        assert nxt.as_tuple() == (0, 1, 0, False)
        assert boundary is Boundary.EXERCISE

    def test_classic_ignores_round_count(self):
        plan = _classic(_item("a"), round_count=4)
        assert plan.total_rounds == 1
        _, boundary = advance(plan, ExecutionPosition(0, 0, 0))
        assert boundary is Boundary.FINISH


class TestResolveRest:
    """Boundary rest: first positive value of the precedence chain."""

    def test_set_boundary_uses_item_rest(self):
        plan = _classic(_item(rest=90), inter_exercise_rest_seconds=30)
        assert resolve_rest(plan, plan.items[0], Boundary.SET) == 90

    def test_set_boundary_without_rest(self):
        plan = _classic(_item(rest=None), inter_exercise_rest_seconds=30)
        assert resolve_rest(plan, plan.items[0], Boundary.SET) == 0

    def test_exercise_boundary_session_precedence(self):
        plan = _classic(_item(rest=90), inter_exercise_rest_seconds=30)
        assert resolve_rest(plan, plan.items[0], Boundary.EXERCISE, RestPrecedence.SESSION) == 30

    def test_exercise_boundary_item_precedence(self):
        plan = _classic(_item(rest=90), inter_exercise_rest_seconds=30)
        assert resolve_rest(plan, plan.items[0], Boundary.EXERCISE, RestPrecedence.ITEM) == 90

    def test_zero_never_wins(self):
        plan = _classic(_item(rest=90), inter_exercise_rest_seconds=0)
        assert resolve_rest(plan, plan.items[0], Boundary.EXERCISE, RestPrecedence.SESSION) == 90

    def test_round_boundary_session_precedence(self):
        plan = _circuit(_item(rest=20), inter_exercise_rest_seconds=30, inter_round_rest_seconds=120)
        assert resolve_rest(plan, plan.items[0], Boundary.ROUND, RestPrecedence.SESSION) == 120

    def test_round_boundary_falls_back_to_inter_exercise(self):
        plan = _circuit(_item(rest=20), inter_exercise_rest_seconds=30)
        assert resolve_rest(plan, plan.items[0], Boundary.ROUND, RestPrecedence.SESSION) == 30

    def test_round_boundary_item_precedence(self):
        plan = _circuit(_item(rest=20), inter_round_rest_seconds=120)
        assert resolve_rest(plan, plan.items[0], Boundary.ROUND, RestPrecedence.ITEM) == 20

    def test_finish_never_rests(self):
        plan = _classic(_item(rest=90), inter_exercise_rest_seconds=30)
        assert resolve_rest(plan, plan.items[0], Boundary.FINISH) == 0


class TestCompletionPercent:
    def test_empty_plan_is_zero(self):
        plan = _classic()
        assert completion_percent(plan, ExecutionPosition(), finished=False) == 0

    def test_rounds_half_up(self):
        # 1 of 8 sets → 12.5 → 13
        plan = _classic(_item(sets=8))
        assert completion_percent(plan, ExecutionPosition(0, 0, 1), finished=False) == 13

    def test_capped_below_100_until_finished(self):
        # 199 of 200 sets → 99.5 would round to 100
        plan = _classic(_item(sets=200))
        assert completion_percent(plan, ExecutionPosition(0, 0, 199), finished=False) == 99

    def test_finished_is_exactly_100(self):
        plan = _classic(_item(sets=3))
        assert completion_percent(plan, ExecutionPosition(0, 0, 2, True), finished=True) == 100


# =============================================================================
# State machine
# =============================================================================


class TestTransitionTable:
    def test_every_action_has_legal_phases(self):
        assert set(LEGAL_PHASES) == set(Action)

    def test_reset_is_legal_everywhere(self):
        assert LEGAL_PHASES[Action.RESET] == frozenset(Phase)


class TestScenarios:
    def test_classic_three_sets_with_rest(self):
        plan = _classic(_item(sets=3, rest=60))
        machine, clock, sunk = _machine(plan)

        assert machine.start()
        assert machine.phase is Phase.COUNTDOWN
        seen = []
        for _ in range(3):
            seen.append(machine.timer.countdown_remaining)
            clock.tick()
        assert seen == [3, 2, 1]
        assert machine.phase is Phase.ACTIVE

        assert machine.confirm_set()
        assert machine.phase is Phase.RESTING
        assert machine.timer.rest_remaining_seconds == 60
        # Cursor still shows the set just done while resting
        assert machine.position.as_tuple() == (0, 0, 0, False)

        clock.tick(60)
        assert machine.phase is Phase.ACTIVE
        assert machine.position.set_index == 1

        assert machine.confirm_set()
        assert machine.phase is Phase.RESTING
        assert machine.skip_rest()
        assert machine.phase is Phase.ACTIVE
        assert machine.position.set_index == 2

        assert machine.confirm_set()
        assert machine.phase is Phase.FINISHED
        assert machine.finished

        assert len(sunk) == 1
        summary = sunk[0]
        assert summary.total_planned_sets == 3
        assert summary.total_exercises == 1
        assert summary.total_rounds == 1
        assert machine.summary is summary

    def test_circuit_without_rest_never_rests(self):
        plan = _circuit(_item("a"), _item("b"), rounds=2)
        machine, clock, sunk = _machine(plan)
        _go_active(machine, clock)

        phases = []
        confirms = 0
        while not machine.finished:
            machine.confirm_set()
            confirms += 1
            phases.append(machine.phase)

        assert confirms == 4
        assert Phase.RESTING not in phases
        assert len(sunk) == 1

    def test_empty_plan_stays_idle(self):
        machine, clock, sunk = _machine(_classic())

        assert machine.nothing_configured
        assert machine.percent == 0
        assert machine.start() is False
        assert machine.phase is Phase.IDLE
        assert machine.timer_handle is None
        assert machine.current_item is None
        clock.tick(5)
        assert machine.timer.is_zero()
        assert sunk == []

    def test_pause_freezes_elapsed(self):
        machine, clock, _ = _machine(_classic(_item(sets=2)))
        _go_active(machine, clock)
        clock.tick(5)
        assert machine.timer.elapsed_seconds == 5

        assert machine.pause()
        clock.tick(10)
        assert machine.timer.elapsed_seconds == 5
        assert machine.timer_handle is None

        assert machine.resume()
        clock.tick(2)
        assert machine.timer.elapsed_seconds == 7


class TestConfirmCounts:
    @pytest.mark.parametrize("set_counts", [(1,), (3,), (4, 4, 5), (2, 0, 3), (1, 1, 1, 1, 1, 1)])
    def test_classic_needs_sum_of_set_counts(self, set_counts):
        items = [_item(f"ex{i}", sets=n, rest=30) for i, n in enumerate(set_counts)]
        plan = _classic(*items, inter_exercise_rest_seconds=45)
        machine, clock, _ = _machine(plan)
        _go_active(machine, clock)

        expected = sum(max(1, n) for n in set_counts)
        assert _confirm_until_finished(machine, clock) == expected == plan.total_planned_sets

    @pytest.mark.parametrize("rounds,n_items", [(1, 1), (2, 3), (3, 6), (5, 2)])
    def test_circuit_needs_rounds_times_items(self, rounds, n_items):
        items = [_item(f"ex{i}", sets=1, rest=30) for i in range(n_items)]
        plan = _circuit(*items, rounds=rounds, inter_round_rest_seconds=120)
        machine, clock, _ = _machine(plan)
        _go_active(machine, clock)

        assert _confirm_until_finished(machine, clock) == rounds * n_items


class TestRestInsertion:
    def test_exercise_boundary_uses_session_rest(self):
        plan = _classic(_item("a", sets=1, rest=90), _item("b"), inter_exercise_rest_seconds=30)
        machine, clock, _ = _machine(plan)
        _go_active(machine, clock)

        machine.confirm_set()
        assert machine.phase is Phase.RESTING
        assert machine.timer.rest_remaining_seconds == 30
        assert machine.upcoming.as_tuple() == (0, 1, 0, False)
        assert machine.upcoming_item is plan.items[1]

    def test_item_precedence_setting(self):
        plan = _classic(_item("a", sets=1, rest=90), _item("b"), inter_exercise_rest_seconds=30)
        machine, clock, _ = _machine(plan, rest_precedence=RestPrecedence.ITEM)
        _go_active(machine, clock)

        machine.confirm_set()
        assert machine.timer.rest_remaining_seconds == 90

    def test_round_boundary_uses_round_rest(self):
        plan = _circuit(_item("a", rest=20), _item("b", rest=20), rounds=2,
                        inter_exercise_rest_seconds=30, inter_round_rest_seconds=120)
        machine, clock, _ = _machine(plan)
        _go_active(machine, clock)

        machine.confirm_set()
        assert machine.timer.rest_remaining_seconds == 30
        machine.skip_rest()
        machine.confirm_set()
        assert machine.timer.rest_remaining_seconds == 120
        clock.tick(120)
        assert machine.position.as_tuple() == (1, 0, 0, False)

    def test_no_rest_after_last_set(self):
        machine, clock, _ = _machine(_classic(_item(sets=1, rest=60)))
        _go_active(machine, clock)
        machine.confirm_set()
        assert machine.phase is Phase.FINISHED
        assert machine.timer.rest_remaining_seconds == 0

    def test_skip_exercise_crosses_exercise_boundary(self):
        plan = _classic(_item("a", sets=4, rest=60), _item("b", sets=2), inter_exercise_rest_seconds=15)
        machine, clock, _ = _machine(plan)
        _go_active(machine, clock)

        assert machine.skip_exercise()
        assert machine.phase is Phase.RESTING
        assert machine.timer.rest_remaining_seconds == 15
        machine.skip_rest()
        assert machine.position.as_tuple() == (0, 1, 0, False)

    def test_skip_exercise_on_last_exercise_finishes(self):
        machine, clock, sunk = _machine(_classic(_item("a", sets=4, rest=60)))
        _go_active(machine, clock)
        machine.confirm_set()
        machine.skip_rest()

        assert machine.skip_exercise()
        assert machine.finished
        assert len(sunk) == 1


class TestTimerIsolation:
    def test_elapsed_frozen_while_resting(self):
        machine, clock, _ = _machine(_classic(_item(sets=2, rest=60)))
        _go_active(machine, clock)
        clock.tick(4)
        machine.confirm_set()

        clock.tick(30)
        assert machine.timer.elapsed_seconds == 4
        assert machine.timer.rest_remaining_seconds == 30
        assert machine.timer.total_rest_seconds == 30

    def test_rest_remaining_frozen_while_active(self):
        machine, clock, _ = _machine(_classic(_item(sets=3, rest=60)))
        _go_active(machine, clock)
        machine.confirm_set()
        clock.tick(10)
        machine.skip_rest()

        remaining = machine.timer.rest_remaining_seconds
        clock.tick(25)
        assert machine.timer.rest_remaining_seconds == remaining
        assert machine.timer.total_rest_seconds == 10
        assert machine.timer.elapsed_seconds == 25

    def test_countdown_does_not_count_as_active(self):
        machine, clock, _ = _machine(_classic(_item()))
        machine.start()
        clock.tick(3)
        assert machine.timer.elapsed_seconds == 0

    def test_zero_countdown_goes_straight_to_active(self):
        machine, clock, _ = _machine(_classic(_item()), countdown=0)
        assert machine.start()
        assert machine.phase is Phase.ACTIVE


class TestIdempotence:
    def test_actions_after_finish_are_no_ops(self):
        machine, clock, sunk = _machine(_classic(_item(sets=2)))
        _go_active(machine, clock)
        _confirm_until_finished(machine, clock)
        position = machine.position

        assert machine.confirm_set() is False
        assert machine.skip_exercise() is False
        assert machine.pause() is False
        assert machine.position == position
        assert len(sunk) == 1

    def test_invalid_actions_are_ignored(self):
        machine, clock, _ = _machine(_classic(_item(sets=2, rest=30)))
        assert machine.pause() is False
        assert machine.resume() is False
        assert machine.confirm_set() is False
        assert machine.skip_rest() is False
        assert machine.phase is Phase.IDLE

        _go_active(machine, clock)
        assert machine.start() is False
        assert machine.resume() is False
        assert machine.phase is Phase.ACTIVE


class TestPercent:
    def test_monotonic_and_100_only_when_finished(self):
        plan = _circuit(_item("a", rest=10), _item("b", rest=10), _item("c"), rounds=3)
        machine, clock, _ = _machine(plan)
        _go_active(machine, clock)

        values = [machine.percent]
        while not machine.finished:
            if machine.phase is Phase.RESTING:
                clock.tick(machine.timer.rest_remaining_seconds)
            else:
                machine.confirm_set()
            values.append(machine.percent)
            if not machine.finished:
                assert machine.percent < 100

        assert values == sorted(values)
        assert values[-1] == 100

    def test_resting_counts_the_confirmed_set(self):
        machine, clock, _ = _machine(_classic(_item(sets=4, rest=60)))
        _go_active(machine, clock)
        machine.confirm_set()
        assert machine.phase is Phase.RESTING
        assert machine.percent == 25


class TestReset:
    @pytest.mark.parametrize("steps", [0, 1, 2, 3])
    def test_reset_returns_to_fresh_idle(self, steps):
        machine, clock, _ = _machine(_classic(_item(sets=3, rest=60)))
        _go_active(machine, clock)
        clock.tick(7)
        for _ in range(steps):
            if machine.phase is Phase.RESTING:
                clock.tick(5)
                machine.skip_rest()
            machine.confirm_set()

        assert machine.reset()
        assert machine.position.as_tuple() == (0, 0, 0, False)
        assert machine.timer.is_zero()
        assert machine.phase is Phase.IDLE
        assert machine.timer_handle is None
        assert machine.upcoming is None

    def test_reset_from_finished_allows_a_second_report(self):
        machine, clock, sunk = _machine(_classic(_item(sets=1)))
        _go_active(machine, clock)
        machine.confirm_set()
        assert len(sunk) == 1

        machine.reset()
        _go_active(machine, clock)
        machine.confirm_set()
        assert len(sunk) == 2

    def test_stale_handle_never_fires_after_reset(self):
        machine, clock, _ = _machine(_classic(_item(sets=2, rest=60)))
        _go_active(machine, clock)
        machine.confirm_set()
        handle = machine.timer_handle
        assert handle is not None and handle.active

        machine.reset()
        assert not handle.active
        clock.tick(120)
        assert machine.timer.is_zero()
        assert clock.pending == []


class TestHandleOwnership:
    def test_one_handle_per_timed_phase(self):
        machine, clock, _ = _machine(_classic(_item(sets=2, rest=5)))
        machine.start()
        assert len(clock.pending) == 1
        clock.tick(3)
        assert len(clock.pending) == 1  # countdown handle replaced by active handle
        machine.confirm_set()
        assert len(clock.pending) == 1
        clock.tick(5)
        assert machine.phase is Phase.ACTIVE
        assert len(clock.pending) == 1

    def test_finish_cancels_handle(self):
        machine, clock, _ = _machine(_classic(_item()))
        _go_active(machine, clock)
        machine.confirm_set()
        assert machine.timer_handle is None
        assert clock.pending == []

    def test_close_cancels_and_disables(self):
        machine, clock, _ = _machine(_classic(_item(sets=2)))
        _go_active(machine, clock)
        machine.close()
        assert machine.closed
        assert clock.pending == []
        assert machine.confirm_set() is False
        clock.tick(10)
        assert machine.timer.elapsed_seconds == 0


class TestCues:
    def test_cue_on_countdown_and_rest_expiry_only(self):
        calls = []
        clock = ManualClock()
        plan = _classic(_item(sets=3, rest=10))
        machine = SessionMachine(plan, clock=clock, cue=lambda: calls.append(clock.now()))
        machine.start()
        clock.tick(3)
        assert calls == [3.0]

        machine.confirm_set()
        clock.tick(10)
        assert calls == [3.0, 13.0]

        machine.confirm_set()
        machine.skip_rest()
        assert len(calls) == 2

    def test_failing_cue_is_ignored(self):
        def broken():
            raise OSError("no audio device")

        clock = ManualClock()
        machine = SessionMachine(_classic(_item()), clock=clock, cue=broken)
        machine.start()
        clock.tick(3)
        assert machine.phase is Phase.ACTIVE

    def test_cues_can_be_disabled(self):
        calls = []
        clock = ManualClock()
        settings = RunnerSettings(audible_cues=False)
        machine = SessionMachine(_classic(_item()), clock=clock, settings=settings, cue=lambda: calls.append(1))
        machine.start()
        clock.tick(3)
        assert calls == []


class TestElapsedSource:
    def test_rest_source_reports_cumulative_rest(self):
        plan = _classic(_item(sets=2, rest=40))
        machine, clock, sunk = _machine(plan, elapsed_source=ElapsedSource.REST)
        _go_active(machine, clock)
        clock.tick(8)
        machine.confirm_set()
        clock.tick(40)
        machine.confirm_set()
        assert sunk[0].elapsed_seconds == 40

    def test_active_source_reports_active_time(self):
        plan = _classic(_item(sets=2, rest=40))
        machine, clock, sunk = _machine(plan)
        _go_active(machine, clock)
        clock.tick(8)
        machine.confirm_set()
        clock.tick(40)
        clock.tick(3)
        machine.confirm_set()
        assert sunk[0].elapsed_seconds == 11
