"""
Raw session data -> SessionPlan.

Accepts both the remote store's wire shape (camelCase, e.g. ``roundCount``,
``restBetweenExercisesSeconds``, ``exerciseName``) and the snake_case shape
used by the bundled YAML plans.  Only defensive defaults are applied: a
malformed field falls back to its default instead of raising, and an empty
item list yields an empty (but runnable) plan.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from .config import DEFAULT_ROUND_COUNT, DEFAULT_SET_COUNT
from .models import ExerciseTarget, RepTarget, SessionKind, SessionPlan


class PlanFormatError(ValueError):
    """Raised when raw session data is not a mapping at all."""


_TIME_TARGET = re.compile(r"^\s*(\d+)\s*(?:s|sec|secs|seconds?)\s*$", re.IGNORECASE)


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    """Return the first present, non-None value among *keys*."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _int_or(value: Any, default: int | None) -> int | None:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _rest_or_none(value: Any) -> int | None:
    rest = _int_or(value, None)
    if rest is None or rest < 0:
        return None
    return rest


def parse_rep_target(raw: Any) -> RepTarget:
    """
    Normalise a rep target.

    Examples:
        12                          → reps "12"
        "max" / "8-12"              → reps "max" / "8-12"
        "30s"                       → time 30
        {"type": "reps", "value": 10}
        {"type": "time", "seconds": 7}
    """
    if raw is None:
        return RepTarget()
    if isinstance(raw, Mapping):
        if raw.get("type") == "time":
            return RepTarget(kind="time", seconds=_int_or(raw.get("seconds"), 0))
        value = raw.get("value")
        return RepTarget(kind="reps", value=str(value) if value is not None else None)
    if isinstance(raw, bool):
        return RepTarget()
    if isinstance(raw, (int, float)):
        return RepTarget(kind="reps", value=str(int(raw)))

    text = str(raw).strip()
    m = _TIME_TARGET.match(text)
    if m:
        return RepTarget(kind="time", seconds=int(m.group(1)))
    return RepTarget(kind="reps", value=text or None)


def load_item(raw: Mapping[str, Any], index: int = 0) -> ExerciseTarget:
    """Convert one raw item; ``index`` only feeds the fallback exercise id."""
    exercise_id = _first(raw, "exerciseId", "exercise_id", "id")
    name = _first(raw, "exerciseName", "displayName", "display_name", "name")
    set_count = _int_or(_first(raw, "setCount", "set_count", "sets"), DEFAULT_SET_COUNT)

    return ExerciseTarget(
        exercise_id=str(exercise_id) if exercise_id is not None else f"item_{index + 1}",
        display_name=str(name) if name is not None else str(exercise_id or f"Exercise {index + 1}"),
        set_count=set_count if set_count is not None else DEFAULT_SET_COUNT,
        rep_target=parse_rep_target(_first(raw, "repTarget", "rep_target", "reps")),
        rest_seconds=_rest_or_none(_first(raw, "restSeconds", "rest_seconds", "rest")),
        muscle_group=_first(raw, "muscleGroup", "muscle_group") or None,
        note=_first(raw, "note") or None,
    )


def load(raw: Mapping[str, Any]) -> SessionPlan:
    """
    Build a SessionPlan from raw session data.

    Args:
        raw: Session record from the plan supply (remote JSON or YAML file)

    Returns:
        Immutable SessionPlan

    Raises:
        PlanFormatError: If ``raw`` is not a mapping
    """
    if not isinstance(raw, Mapping):
        raise PlanFormatError(f"Session data must be a mapping, got {type(raw).__name__}")

    kind_raw = str(_first(raw, "kind", "type") or SessionKind.CLASSIC.value).lower()
    kind = SessionKind.CIRCUIT if kind_raw == SessionKind.CIRCUIT.value else SessionKind.CLASSIC

    round_count = _int_or(_first(raw, "roundCount", "round_count", "rounds"), DEFAULT_ROUND_COUNT)
    if round_count is None or round_count < 1:
        round_count = DEFAULT_ROUND_COUNT

    raw_items = raw.get("items")
    if not isinstance(raw_items, (list, tuple)):
        raw_items = ()
    items = tuple(
        load_item(item, i)
        for i, item in enumerate(raw_items)
        if isinstance(item, Mapping)
    )

    plan_id = _first(raw, "id", "slug") or "session"
    return SessionPlan(
        id=str(plan_id),
        slug=str(_first(raw, "slug", "id") or plan_id),
        name=str(_first(raw, "name") or plan_id),
        kind=kind,
        round_count=round_count,
        inter_exercise_rest_seconds=_rest_or_none(
            _first(raw, "interExerciseRestSeconds", "restBetweenExercisesSeconds",
                   "inter_exercise_rest_seconds")
        ),
        inter_round_rest_seconds=_rest_or_none(
            _first(raw, "interRoundRestSeconds", "restBetweenRoundsSeconds",
                   "inter_round_rest_seconds")
        ),
        estimated_duration_minutes=_int_or(
            _first(raw, "estimatedDurationMinutes", "estimated_duration_minutes"), None
        ),
        notes=_first(raw, "notes") or None,
        items=items,
    )
