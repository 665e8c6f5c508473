"""
Session execution state machine.

Drives a live workout through its rounds, exercises and sets:

    idle → countdown → active → resting → active → … → finished
                         ⇅
                       paused

The machine owns its position cursor, its phase and its clocks.  Timing is
delegated to a Clock: on entering a timed phase (countdown, active,
resting) the machine registers one repeating one-second handle, and it
cancels that handle on every exit from the phase, on reset and on close.

User actions that are not legal in the current phase are ignored (no-op),
see ``LEGAL_PHASES``.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable

from .clock import Clock, TimerHandle
from .config import TICK_SECONDS, RestPrecedence, RunnerSettings
from .models import (
    Action,
    Boundary,
    CompletionSummary,
    ExecutionPosition,
    ExerciseTarget,
    Phase,
    SessionPlan,
    TimerState,
)
from .reporter import CompletionReporter

logger = logging.getLogger(__name__)

# Phases in which each user action has an effect.
LEGAL_PHASES: dict[Action, frozenset[Phase]] = {
    Action.START: frozenset({Phase.IDLE}),
    Action.CONFIRM_SET: frozenset({Phase.ACTIVE}),
    Action.SKIP_EXERCISE: frozenset({Phase.ACTIVE}),
    Action.PAUSE: frozenset({Phase.ACTIVE}),
    Action.RESUME: frozenset({Phase.PAUSED}),
    Action.SKIP_REST: frozenset({Phase.RESTING}),
    Action.RESET: frozenset(Phase),
}

# Phases that own a running one-second handle.
TIMED_PHASES: frozenset[Phase] = frozenset({Phase.COUNTDOWN, Phase.ACTIVE, Phase.RESTING})

if set(LEGAL_PHASES) != set(Action):
    raise RuntimeError(f"Transition table is missing actions: {set(Action) - set(LEGAL_PHASES)}")


# =============================================================================
# Pure position math
# =============================================================================

def advance(
    plan: SessionPlan,
    position: ExecutionPosition,
    *,
    skip_exercise: bool = False,
) -> tuple[ExecutionPosition, Boundary]:
    """
    Compute the position after the current set.

    1. next set of the same exercise
    2. first set of the next exercise
    3. first exercise of the next round
    4. finished

    ``skip_exercise`` ignores the remaining sets of the current exercise.

    Returns:
        (next position, boundary crossed)
    """
    if position.finished or plan.is_empty:
        return replace(position, finished=True), Boundary.FINISH

    item = plan.items[position.exercise_index]
    if not skip_exercise and position.set_index + 1 < item.effective_set_count:
        return replace(position, set_index=position.set_index + 1), Boundary.SET

    if position.exercise_index + 1 < len(plan.items):
        return (
            ExecutionPosition(position.round_index, position.exercise_index + 1, 0),
            Boundary.EXERCISE,
        )

    if position.round_index + 1 < plan.total_rounds:
        return ExecutionPosition(position.round_index + 1, 0, 0), Boundary.ROUND

    return replace(position, finished=True), Boundary.FINISH


def _positive(value: int | None) -> int | None:
    return value if value is not None and value > 0 else None


def resolve_rest(
    plan: SessionPlan,
    item: ExerciseTarget,
    boundary: Boundary,
    precedence: RestPrecedence = RestPrecedence.SESSION,
) -> int:
    """
    Rest (seconds) to insert after crossing ``boundary`` from ``item``.

    Zero and missing values never win; the first positive value in the
    precedence chain is used, 0 if there is none.
    """
    if boundary is Boundary.FINISH:
        return 0

    item_rest = _positive(item.rest_seconds)
    if boundary is Boundary.SET:
        return item_rest or 0

    between_exercises = _positive(plan.inter_exercise_rest_seconds)
    between_rounds = _positive(plan.inter_round_rest_seconds)

    if boundary is Boundary.EXERCISE:
        if precedence is RestPrecedence.SESSION:
            chain = (between_exercises, item_rest)
        else:
            chain = (item_rest, between_exercises)
    else:
        if precedence is RestPrecedence.SESSION:
            chain = (between_rounds, between_exercises, item_rest)
        else:
            chain = (item_rest, between_rounds, between_exercises)

    return next((v for v in chain if v), 0)


def sets_done(plan: SessionPlan, position: ExecutionPosition) -> int:
    """Planned sets confirmed before ``position`` (the current set is not done)."""
    prior_exercises = sum(
        item.effective_set_count for item in plan.items[: position.exercise_index]
    )
    return position.round_index * plan.sets_per_round + prior_exercises + position.set_index


def completion_percent(plan: SessionPlan, position: ExecutionPosition, *, finished: bool) -> int:
    """
    Integer completion percentage, rounded half up.

    0 for an empty plan; exactly 100 only once finished.
    """
    total = plan.total_planned_sets
    if total == 0:
        return 0
    if finished:
        return 100
    done = min(sets_done(plan, position), total)
    return min((200 * done + total) // (2 * total), 99)


# =============================================================================
# State machine
# =============================================================================

class SessionMachine:
    """
    Live execution of one SessionPlan.

    Args:
        plan: The immutable plan to run
        clock: Tick source providing repeating one-second handles
        settings: Runner policies (countdown length, rest precedence, cues)
        reporter: Completion reporter, called once when the run finishes
        cue: Best-effort audible cue (countdown end, rest end)
    """

    def __init__(
        self,
        plan: SessionPlan,
        *,
        clock: Clock,
        settings: RunnerSettings | None = None,
        reporter: CompletionReporter | None = None,
        cue: Callable[[], None] | None = None,
    ):
        self.plan = plan
        self.settings = settings or RunnerSettings()
        self.reporter = reporter or CompletionReporter(
            elapsed_source=self.settings.elapsed_source
        )
        self._clock = clock
        self._cue = cue
        self._handle: TimerHandle | None = None
        self._closed = False
        self._new_run()

    def _new_run(self) -> None:
        self._position = ExecutionPosition.start()
        self._pending: ExecutionPosition | None = None
        self._phase = Phase.IDLE
        self.timer = TimerState()
        self.summary: CompletionSummary | None = None

    # ── Observable state ──────────────────────────────────────────────────

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def position(self) -> ExecutionPosition:
        return self._position

    @property
    def upcoming(self) -> ExecutionPosition | None:
        """Position the current rest leads to, None when not resting."""
        return self._pending

    @property
    def current_item(self) -> ExerciseTarget | None:
        if self.plan.is_empty:
            return None
        return self.plan.items[self._position.exercise_index]

    @property
    def upcoming_item(self) -> ExerciseTarget | None:
        if self._pending is None:
            return None
        return self.plan.items[self._pending.exercise_index]

    @property
    def nothing_configured(self) -> bool:
        """True when the plan has no exercises; the machine stays idle."""
        return self.plan.is_empty

    @property
    def finished(self) -> bool:
        return self._position.finished

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def percent(self) -> int:
        committed = self._pending or self._position
        return completion_percent(self.plan, committed, finished=self._position.finished)

    @property
    def timer_handle(self) -> TimerHandle | None:
        return self._handle

    def can(self, action: Action) -> bool:
        """Whether ``action`` would have an effect right now."""
        if self._closed or self._phase not in LEGAL_PHASES[action]:
            return False
        if action is Action.START and self.plan.is_empty:
            return False
        return True

    # ── User actions ──────────────────────────────────────────────────────

    def start(self) -> bool:
        """idle → countdown."""
        if not self._allowed(Action.START):
            return False
        self.timer.countdown_remaining = max(0, self.settings.countdown_seconds)
        if self.timer.countdown_remaining == 0:
            self._play_cue()
            self._enter(Phase.ACTIVE)
        else:
            self._enter(Phase.COUNTDOWN)
        return True

    def confirm_set(self) -> bool:
        """Mark the current set done and move on."""
        if not self._allowed(Action.CONFIRM_SET):
            return False
        self._step(skip_exercise=False)
        return True

    def skip_exercise(self) -> bool:
        """Drop the remaining sets of the current exercise."""
        if not self._allowed(Action.SKIP_EXERCISE):
            return False
        self._step(skip_exercise=True)
        return True

    def pause(self) -> bool:
        if not self._allowed(Action.PAUSE):
            return False
        self._enter(Phase.PAUSED)
        return True

    def resume(self) -> bool:
        if not self._allowed(Action.RESUME):
            return False
        self._enter(Phase.ACTIVE)
        return True

    def skip_rest(self) -> bool:
        if not self._allowed(Action.SKIP_REST):
            return False
        self._end_rest()
        return True

    def reset(self) -> bool:
        """Stop every clock and start over from a fresh idle run."""
        if not self._allowed(Action.RESET):
            return False
        self._cancel_handle()
        self._new_run()
        self.reporter.rearm()
        return True

    def close(self) -> None:
        """Tear down: cancel the owned timer; later actions are ignored."""
        self._cancel_handle()
        self._closed = True

    # ── Ticks ─────────────────────────────────────────────────────────────

    def tick(self) -> None:
        """One-second event: advance whichever clock the phase owns."""
        phase = self._phase
        if phase is Phase.ACTIVE:
            self.timer.elapsed_seconds += 1
        elif phase is Phase.RESTING:
            self.timer.total_rest_seconds += 1
            self.timer.rest_remaining_seconds = max(0, self.timer.rest_remaining_seconds - 1)
            if self.timer.rest_remaining_seconds == 0:
                self._play_cue()
                self._end_rest()
        elif phase is Phase.COUNTDOWN:
            self.timer.countdown_remaining = max(0, self.timer.countdown_remaining - 1)
            if self.timer.countdown_remaining == 0:
                self._play_cue()
                self._enter(Phase.ACTIVE)
        elif phase in (Phase.IDLE, Phase.PAUSED, Phase.FINISHED):
            pass
        else:
            raise AssertionError(f"Unhandled phase: {phase}")

    # ── Internals ─────────────────────────────────────────────────────────

    def _allowed(self, action: Action) -> bool:
        if self.can(action):
            return True
        logger.debug("Ignoring %s in phase %s", action.value, self._phase.value)
        return False

    def _step(self, *, skip_exercise: bool) -> None:
        item = self.plan.items[self._position.exercise_index]
        nxt, boundary = advance(self.plan, self._position, skip_exercise=skip_exercise)

        if boundary is Boundary.FINISH:
            self._commit(nxt)
            self._enter(Phase.FINISHED)
            self.summary = self.reporter.report(self.plan, self._position, self.timer)
            return

        rest = resolve_rest(self.plan, item, boundary, self.settings.rest_precedence)
        if rest > 0:
            self._pending = nxt
            self.timer.rest_remaining_seconds = rest
            self._enter(Phase.RESTING)
        else:
            self._commit(nxt)

    def _end_rest(self) -> None:
        if self._pending is not None:
            self._commit(self._pending)
        self._pending = None
        self.timer.rest_remaining_seconds = 0
        self._enter(Phase.ACTIVE)

    def _commit(self, position: ExecutionPosition) -> None:
        if not position.finished:
            assert 0 <= position.round_index < self.plan.total_rounds, position
            assert 0 <= position.exercise_index < len(self.plan.items), position
            item = self.plan.items[position.exercise_index]
            assert 0 <= position.set_index < item.effective_set_count, position
        self._position = position

    def _enter(self, phase: Phase) -> None:
        if phase is self._phase:
            return
        logger.debug("Phase %s → %s", self._phase.value, phase.value)
        self._cancel_handle()
        self._phase = phase
        if phase in TIMED_PHASES:
            self._handle = self._clock.every(TICK_SECONDS, self.tick)

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _play_cue(self) -> None:
        if not self.settings.audible_cues or self._cue is None:
            return
        try:
            self._cue()
        except Exception:
            logger.debug("Audible cue failed", exc_info=True)
