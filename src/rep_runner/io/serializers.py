"""
JSON serialization for rep-runner records.

Handles conversion between dataclasses and JSON-compatible dicts, for the
local history cache, the remote history endpoint and the week plan file.
"""

import json
import re
import uuid
from datetime import datetime
from typing import Any

from ..core.models import (
    DAY_NAMES,
    CompletionSummary,
    DayPlan,
    ExerciseTarget,
    HistoryEntry,
    SessionPlan,
    WeekPlan,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_timestamp(value: str) -> str:
    """
    Validate an ISO-8601 timestamp string.

    Args:
        value: Timestamp to validate (e.g. 2026-02-18T18:30:00)

    Returns:
        The timestamp unchanged

    Raises:
        ValidationError: If the timestamp is malformed
    """
    if not isinstance(value, str) or not re.match(r"^\d{4}-\d{2}-\d{2}", value):
        raise ValidationError(f"Invalid timestamp: {value!r}. Expected ISO-8601")
    try:
        datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp: {value}") from e
    return value


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Raises:
        ValidationError: If value is negative or not a number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def validate_day(day: str) -> str:
    if day not in DAY_NAMES:
        raise ValidationError(f"Invalid day: {day!r}. Must be one of {', '.join(DAY_NAMES)}")
    return day


# ---------------------------------------------------------------------------
# History entries
# ---------------------------------------------------------------------------


def history_entry_to_dict(entry: HistoryEntry) -> dict[str, Any]:
    """Convert HistoryEntry to a JSON-compatible dict."""
    return {
        "id": entry.id,
        "session_id": entry.session_id,
        "finished_at": entry.finished_at,
        "duration_seconds": entry.duration_seconds,
        "total_sets": entry.total_sets,
        "total_rounds": entry.total_rounds,
        "total_exercises": entry.total_exercises,
    }


def dict_to_history_entry(data: dict[str, Any]) -> HistoryEntry:
    """
    Convert dict to HistoryEntry.

    Raises:
        ValidationError: If data is invalid
    """
    session_id = data.get("session_id")
    if not isinstance(session_id, str) or not session_id:
        raise ValidationError(f"Invalid session_id: {session_id!r}")

    validate_timestamp(data.get("finished_at"))
    validate_non_negative(data.get("duration_seconds", 0), "duration_seconds")
    validate_non_negative(data.get("total_sets", 0), "total_sets")
    validate_non_negative(data.get("total_rounds", 1), "total_rounds")
    validate_non_negative(data.get("total_exercises", 0), "total_exercises")

    return HistoryEntry(
        id=str(data.get("id") or uuid.uuid4().hex),
        session_id=session_id,
        finished_at=data["finished_at"],
        duration_seconds=int(data.get("duration_seconds", 0)),
        total_sets=int(data.get("total_sets", 0)),
        total_rounds=int(data.get("total_rounds", 1)),
        total_exercises=int(data.get("total_exercises", 0)),
    )


def entry_to_json_line(entry: HistoryEntry) -> str:
    """Serialize a history entry to a single JSON line (no trailing newline)."""
    return json.dumps(history_entry_to_dict(entry), separators=(",", ":"))


def json_line_to_entry(line: str) -> HistoryEntry:
    """
    Deserialize a JSON line to a HistoryEntry.

    Raises:
        ValidationError: If JSON is invalid or data validation fails
    """
    try:
        data = json.loads(line.strip())
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("History line must be a JSON object")
    return dict_to_history_entry(data)


def summary_to_history_entry(summary: CompletionSummary) -> HistoryEntry:
    """Local cache record for a finished run."""
    return HistoryEntry(
        id=uuid.uuid4().hex,
        session_id=summary.session_id,
        finished_at=summary.finished_at.isoformat(timespec="seconds"),
        duration_seconds=summary.elapsed_seconds,
        total_sets=summary.total_planned_sets,
        total_rounds=summary.total_rounds,
        total_exercises=summary.total_exercises,
    )


def summary_to_submission(summary: CompletionSummary) -> dict[str, Any]:
    """
    Payload for the remote history endpoint (camelCase wire format).

    ``finishedAt`` is epoch milliseconds, as the endpoint expects.
    """
    return {
        "sessionId": summary.plan_id or summary.session_id,
        "elapsedSeconds": summary.elapsed_seconds,
        "totalSets": summary.total_planned_sets,
        "totalExercises": summary.total_exercises,
        "totalRounds": summary.total_rounds,
        "finishedAt": int(summary.finished_at.timestamp() * 1000),
    }


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


def _item_to_dict(item: ExerciseTarget) -> dict[str, Any]:
    d: dict[str, Any] = {
        "exercise_id": item.exercise_id,
        "display_name": item.display_name,
        "muscle_group": item.muscle_group,
        "sets": item.set_count,
        "rest_seconds": item.rest_seconds,
    }
    if item.rep_target.is_timed:
        d["reps"] = {"type": "time", "seconds": item.rep_target.seconds}
    else:
        d["reps"] = item.rep_target.value
    if item.note:
        d["note"] = item.note
    return d


def session_plan_to_dict(plan: SessionPlan) -> dict[str, Any]:
    """Convert SessionPlan to a JSON-compatible dict (snake_case, YAML shape)."""
    return {
        "id": plan.id,
        "slug": plan.slug,
        "name": plan.name,
        "kind": plan.kind.value,
        "rounds": plan.total_rounds,
        "inter_exercise_rest_seconds": plan.inter_exercise_rest_seconds,
        "inter_round_rest_seconds": plan.inter_round_rest_seconds,
        "estimated_duration_minutes": plan.estimated_duration_minutes,
        "notes": plan.notes,
        "total_planned_sets": plan.total_planned_sets,
        "items": [_item_to_dict(item) for item in plan.items],
    }


def dict_to_week_plan(data: dict[str, Any]) -> WeekPlan:
    """
    Convert dict to WeekPlan.

    Raises:
        ValidationError: If a day is unknown or listed twice
    """
    days: list[DayPlan] = []
    seen: set[str] = set()
    for raw in data.get("days") or []:
        day = validate_day(str(raw.get("day", "")).lower())
        if day in seen:
            raise ValidationError(f"Day listed twice in week plan: {day}")
        seen.add(day)
        is_rest = bool(raw.get("is_rest", False))
        session_id = raw.get("session_id")
        warmup = raw.get("warmup_minutes")
        days.append(
            DayPlan(
                day=day,  # type: ignore[arg-type]
                session_id=None if is_rest or not session_id or session_id == "-" else str(session_id),
                warmup_minutes=int(warmup) if warmup is not None and not is_rest else None,
                warmup_description=raw.get("warmup_description") or None,
                is_rest=is_rest,
            )
        )

    return WeekPlan(
        id=str(data.get("id") or "week"),
        name=str(data.get("name") or "Week plan"),
        description=data.get("description") or None,
        days=tuple(days),
    )
