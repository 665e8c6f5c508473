"""
Completion reporting.

The reporter turns a finished run into a CompletionSummary and hands it to
a sink (history persistence) exactly once per run.  A failing sink is
logged and swallowed: the finished state the user sees must not depend on
a background write.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from .config import ElapsedSource
from .models import CompletionSummary, ExecutionPosition, SessionPlan, TimerState

logger = logging.getLogger(__name__)

CompletionSink = Callable[[CompletionSummary], None]


def build_summary(
    plan: SessionPlan,
    timer: TimerState,
    elapsed_source: ElapsedSource = ElapsedSource.ACTIVE,
    finished_at: datetime | None = None,
) -> CompletionSummary:
    """Package the final statistics of a run."""
    if elapsed_source is ElapsedSource.REST:
        elapsed = timer.total_rest_seconds
    else:
        elapsed = timer.elapsed_seconds

    return CompletionSummary(
        session_id=plan.slug or plan.id,
        session_name=plan.name,
        total_planned_sets=plan.total_planned_sets,
        total_exercises=plan.total_exercises,
        total_rounds=plan.total_rounds,
        elapsed_seconds=elapsed,
        finished_at=finished_at or datetime.now(),
        plan_id=plan.id,
    )


class CompletionReporter:
    """One-shot completion emitter; ``rearm()`` starts a new run."""

    def __init__(
        self,
        sink: CompletionSink | None = None,
        *,
        elapsed_source: ElapsedSource = ElapsedSource.ACTIVE,
        now: Callable[[], datetime] = datetime.now,
    ):
        self._sink = sink
        self._elapsed_source = elapsed_source
        self._now = now
        self._reported = False
        self.last_summary: CompletionSummary | None = None

    @property
    def reported(self) -> bool:
        return self._reported

    def rearm(self) -> None:
        self._reported = False
        self.last_summary = None

    def report(
        self,
        plan: SessionPlan,
        position: ExecutionPosition,
        timer: TimerState,
    ) -> CompletionSummary | None:
        """
        Emit the summary of a finished run.

        Returns:
            The summary, or None if the run is not finished or was already
            reported.
        """
        if not position.finished or self._reported:
            return None

        self._reported = True
        summary = build_summary(plan, timer, self._elapsed_source, self._now())
        self.last_summary = summary
        logger.info(
            "Session %s finished: %d sets, %d rounds, %ds",
            summary.session_id,
            summary.total_planned_sets,
            summary.total_rounds,
            summary.elapsed_seconds,
        )

        if self._sink is not None:
            try:
                self._sink(summary)
            except Exception:
                logger.exception("History hand-off failed for session %s", summary.session_id)

        return summary
