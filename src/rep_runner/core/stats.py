"""
History aggregates and completion status.

Aggregates (today / this week / this month / this year) are computed from
the local history cache.  Weeks run Monday to Sunday.

CompletionStatus answers "which sessions are done today / this week".  It is
read in two phases: the local cache answers immediately, then the
authoritative remote answer supersedes it on arrival (``reconcile``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Literal

from .models import DAY_NAMES, DayName, DayPlan, HistoryEntry, WeekPlan

StatusSource = Literal["local", "remote"]


@dataclass(frozen=True)
class PeriodStats:
    """Totals over one calendar period."""

    sessions_done: int = 0
    total_sets: int = 0
    total_duration_seconds: int = 0


def week_start(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def same_week(a: date, b: date) -> bool:
    return week_start(a) == week_start(b)


def _aggregate(entries: Iterable[HistoryEntry]) -> PeriodStats:
    sessions = sets = duration = 0
    for e in entries:
        sessions += 1
        sets += e.total_sets or 0
        duration += e.duration_seconds or 0
    return PeriodStats(sessions, sets, duration)


def day_stats(entries: Iterable[HistoryEntry], ref: date) -> PeriodStats:
    return _aggregate(e for e in entries if e.finished_dt.date() == ref)


def week_stats(entries: Iterable[HistoryEntry], ref: date) -> PeriodStats:
    return _aggregate(e for e in entries if same_week(e.finished_dt.date(), ref))


def month_stats(entries: Iterable[HistoryEntry], ref: date) -> PeriodStats:
    return _aggregate(
        e for e in entries
        if (e.finished_dt.year, e.finished_dt.month) == (ref.year, ref.month)
    )


def year_stats(entries: Iterable[HistoryEntry], ref: date) -> PeriodStats:
    return _aggregate(e for e in entries if e.finished_dt.year == ref.year)


def last_entry_for(entries: Iterable[HistoryEntry], session_id: str) -> HistoryEntry | None:
    """Most recent completion of ``session_id``, or None."""
    matching = [e for e in entries if e.session_id == session_id]
    if not matching:
        return None
    return max(matching, key=lambda e: e.finished_dt)


@dataclass(frozen=True)
class CompletionStatus:
    """Session ids completed today / this week, and where the answer came from."""

    done_today: frozenset[str] = field(default_factory=frozenset)
    done_this_week: frozenset[str] = field(default_factory=frozenset)
    source: StatusSource = "local"

    @classmethod
    def from_entries(cls, entries: Iterable[HistoryEntry], ref: date) -> "CompletionStatus":
        entries = list(entries)
        return cls(
            done_today=frozenset(
                e.session_id for e in entries if e.finished_dt.date() == ref
            ),
            done_this_week=frozenset(
                e.session_id for e in entries if same_week(e.finished_dt.date(), ref)
            ),
            source="local",
        )

    def reconcile(self, remote: "CompletionStatus | None") -> "CompletionStatus":
        """Authoritative answer wins; keep the local one if there is none."""
        if remote is None:
            return self
        return CompletionStatus(
            done_today=remote.done_today,
            done_this_week=remote.done_this_week,
            source="remote",
        )

    def is_done_today(self, session_id: str) -> bool:
        return session_id in self.done_today

    def is_done_this_week(self, session_id: str) -> bool:
        return session_id in self.done_this_week


def day_name(day: date | datetime) -> DayName:
    return DAY_NAMES[day.weekday()]


def day_plan_for(week: WeekPlan, day: date) -> DayPlan | None:
    """The week-plan entry for the weekday of ``day``."""
    return week.day_plan(day_name(day))
