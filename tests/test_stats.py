"""Tests for history aggregates and completion status."""

from datetime import date

from rep_runner.core.models import DayPlan, HistoryEntry, WeekPlan
from rep_runner.core.stats import (
    CompletionStatus,
    day_plan_for,
    day_stats,
    last_entry_for,
    month_stats,
    week_start,
    week_stats,
    year_stats,
)


def _entry(session_id: str, finished_at: str, sets: int = 10, duration: int = 600) -> HistoryEntry:
    return HistoryEntry(
        id=f"{session_id}-{finished_at}",
        session_id=session_id,
        finished_at=finished_at,
        duration_seconds=duration,
        total_sets=sets,
    )


# Wednesday 2026-02-18
REF = date(2026, 2, 18)

ENTRIES = [
    _entry("back_day", "2026-02-16T18:00:00"),  # Monday, same week
    _entry("leg_day", "2026-02-18T07:30:00", sets=6, duration=300),  # today
    _entry("back_day", "2026-02-18T19:00:00"),  # today
    _entry("pushup_routine", "2026-02-15T10:00:00"),  # Sunday, previous week
    _entry("leg_day", "2026-01-20T10:00:00"),  # previous month
    _entry("leg_day", "2025-12-30T10:00:00"),  # previous year
]


class TestPeriods:
    def test_week_starts_monday(self):
        assert week_start(REF) == date(2026, 2, 16)
        assert week_start(date(2026, 2, 22)) == date(2026, 2, 16)  # Sunday

    def test_day(self):
        stats = day_stats(ENTRIES, REF)
        assert stats.sessions_done == 2
        assert stats.total_sets == 16
        assert stats.total_duration_seconds == 900

    def test_week_excludes_previous_sunday(self):
        assert week_stats(ENTRIES, REF).sessions_done == 3

    def test_month(self):
        assert month_stats(ENTRIES, REF).sessions_done == 4

    def test_year(self):
        assert year_stats(ENTRIES, REF).sessions_done == 5

    def test_empty(self):
        assert day_stats([], REF).sessions_done == 0

    def test_last_entry_for(self):
        assert last_entry_for(ENTRIES, "leg_day").finished_at == "2026-02-18T07:30:00"
        assert last_entry_for(ENTRIES, "biceps_circuit") is None


class TestCompletionStatus:
    def test_from_entries(self):
        status = CompletionStatus.from_entries(ENTRIES, REF)
        assert status.done_today == {"leg_day", "back_day"}
        assert status.done_this_week == {"leg_day", "back_day"}
        assert not status.is_done_this_week("pushup_routine")
        assert status.source == "local"

    def test_remote_supersedes_local(self):
        local = CompletionStatus(done_today=frozenset({"a"}), done_this_week=frozenset({"a"}))
        remote = CompletionStatus(
            done_today=frozenset(),
            done_this_week=frozenset({"b"}),
            source="remote",
        )
        merged = local.reconcile(remote)
        assert merged.done_today == frozenset()
        assert merged.done_this_week == {"b"}
        assert merged.source == "remote"

    def test_missing_remote_keeps_local(self):
        local = CompletionStatus(done_today=frozenset({"a"}))
        assert local.reconcile(None) is local


class TestWeekPlan:
    def test_day_plan_for_weekday(self):
        week = WeekPlan(
            id="w",
            name="Week",
            days=(
                DayPlan(day="wednesday", session_id="leg_day", warmup_minutes=10),
                DayPlan(day="sunday", is_rest=True),
            ),
        )
        assert day_plan_for(week, REF).session_id == "leg_day"
        assert day_plan_for(week, date(2026, 2, 22)).is_rest
        assert day_plan_for(week, date(2026, 2, 17)) is None
