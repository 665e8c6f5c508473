"""
Data models for rep-runner.

Plan records are frozen: a SessionPlan is loaded once and shared by every
run started from it.  Execution records (position, phase, timers) belong to
one SessionMachine and are only mutated by it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal

RepKind = Literal["reps", "time"]
DayName = Literal[
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"
]

DAY_NAMES: tuple[DayName, ...] = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)


class SessionKind(str, Enum):
    """Classic = sets per exercise; circuit = rounds over all exercises."""

    CLASSIC = "classic"
    CIRCUIT = "circuit"


class Phase(str, Enum):
    """Execution phase of a live session."""

    IDLE = "idle"
    COUNTDOWN = "countdown"
    ACTIVE = "active"
    RESTING = "resting"
    PAUSED = "paused"
    FINISHED = "finished"


class Action(str, Enum):
    """User actions accepted by the state machine."""

    START = "start"
    CONFIRM_SET = "confirm_set"
    SKIP_EXERCISE = "skip_exercise"
    PAUSE = "pause"
    RESUME = "resume"
    SKIP_REST = "skip_rest"
    RESET = "reset"


class Boundary(str, Enum):
    """The boundary crossed by one advance of the cursor."""

    SET = "set"
    EXERCISE = "exercise"
    ROUND = "round"
    FINISH = "finish"


@dataclass(frozen=True)
class RepTarget:
    """
    Performance goal for one set.

    Either a repetition goal (``kind="reps"``, value like "12", "max" or
    "8-12") or a hold/work duration (``kind="time"``, seconds).
    """

    kind: RepKind = "reps"
    value: str | None = None
    seconds: int | None = None

    @property
    def is_timed(self) -> bool:
        return self.kind == "time"

    @property
    def label(self) -> str:
        if self.kind == "time":
            return f"{self.seconds or 0}s"
        if not self.value:
            return "free reps"
        if self.value == "max" or self.value.replace("-", "").isdigit():
            return f"{self.value} reps"
        return self.value

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class ExerciseTarget:
    """One line item within a session."""

    exercise_id: str
    display_name: str
    set_count: int
    rep_target: RepTarget = field(default_factory=RepTarget)
    rest_seconds: int | None = None  # None or 0 = no timed rest
    muscle_group: str | None = None
    note: str | None = None

    @property
    def effective_set_count(self) -> int:
        """Set count used for all position math; a zero count runs once."""
        return max(1, self.set_count)

    @property
    def has_rest(self) -> bool:
        return bool(self.rest_seconds and self.rest_seconds > 0)


@dataclass(frozen=True)
class SessionPlan:
    """
    Immutable description of a workout.

    ``round_count`` is only meaningful for circuits; classic sessions always
    run one round.  ``inter_exercise_rest_seconds`` / ``inter_round_rest_seconds``
    are optional session-level overrides used at exercise/round boundaries.
    """

    id: str
    name: str
    kind: SessionKind = SessionKind.CLASSIC
    slug: str = ""
    round_count: int = 1
    inter_exercise_rest_seconds: int | None = None
    inter_round_rest_seconds: int | None = None
    estimated_duration_minutes: int | None = None
    notes: str | None = None
    items: tuple[ExerciseTarget, ...] = ()

    @property
    def total_rounds(self) -> int:
        if self.kind is SessionKind.CIRCUIT:
            return max(1, self.round_count)
        return 1

    @property
    def total_exercises(self) -> int:
        return len(self.items)

    @property
    def sets_per_round(self) -> int:
        return sum(item.effective_set_count for item in self.items)

    @property
    def total_planned_sets(self) -> int:
        return self.total_rounds * self.sets_per_round

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class ExecutionPosition:
    """Cursor into a plan: 0-based round, exercise and set indices."""

    round_index: int = 0
    exercise_index: int = 0
    set_index: int = 0
    finished: bool = False

    @classmethod
    def start(cls) -> "ExecutionPosition":
        return cls(0, 0, 0, False)

    def as_tuple(self) -> tuple[int, int, int, bool]:
        return (self.round_index, self.exercise_index, self.set_index, self.finished)


@dataclass
class TimerState:
    """
    Clocks of one run.

    Only one of them advances at a time, matching the current phase:
    elapsed (ACTIVE), rest countdown + rest accumulator (RESTING),
    start countdown (COUNTDOWN).
    """

    elapsed_seconds: int = 0
    rest_remaining_seconds: int = 0
    total_rest_seconds: int = 0
    countdown_remaining: int = 0

    def is_zero(self) -> bool:
        return (
            self.elapsed_seconds == 0
            and self.rest_remaining_seconds == 0
            and self.total_rest_seconds == 0
            and self.countdown_remaining == 0
        )


@dataclass(frozen=True)
class CompletionSummary:
    """Final statistics of one finished run, handed off exactly once."""

    session_id: str
    session_name: str
    total_planned_sets: int
    total_exercises: int
    total_rounds: int
    elapsed_seconds: int
    finished_at: datetime
    plan_id: str = ""  # identifier in the plan supply; may differ from session_id


@dataclass
class HistoryEntry:
    """A completed session as kept in the local history cache."""

    id: str
    session_id: str  # plan slug (falls back to plan id)
    finished_at: str  # ISO-8601 local timestamp
    duration_seconds: int
    total_sets: int
    total_rounds: int = 1
    total_exercises: int = 0

    def __post_init__(self) -> None:
        """Validate entry data."""
        if not self.session_id:
            raise ValueError("session_id must be non-empty")
        if self.duration_seconds < 0:
            raise ValueError("duration_seconds must be non-negative")
        if self.total_sets < 0:
            raise ValueError("total_sets must be non-negative")
        # Raises ValueError on malformed timestamps
        datetime.fromisoformat(self.finished_at)

    @property
    def finished_dt(self) -> datetime:
        """Finish time as naive local time; offset timestamps are converted."""
        dt = datetime.fromisoformat(self.finished_at)
        if dt.tzinfo is not None:
            dt = dt.astimezone().replace(tzinfo=None)
        return dt


@dataclass(frozen=True)
class DayPlan:
    """One day of the weekly plan: warm-up, main session, or rest."""

    day: DayName
    session_id: str | None = None
    warmup_minutes: int | None = None
    warmup_description: str | None = None
    is_rest: bool = False


@dataclass(frozen=True)
class WeekPlan:
    """A weekly training plan (seven DayPlan entries)."""

    id: str
    name: str
    description: str | None = None
    days: tuple[DayPlan, ...] = ()

    def day_plan(self, day: DayName) -> DayPlan | None:
        for d in self.days:
            if d.day == day:
                return d
        return None
