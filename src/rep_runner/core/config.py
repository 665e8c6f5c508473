"""
Configuration constants for the session runner.

All adjustable parameters are centralized here.  Deployment-level policy
(rest precedence, which clock feeds the reported duration) can be
overridden from runner.yaml, see core/engine/config_loader.py.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Final

# =============================================================================
# TIMING
# =============================================================================

TICK_SECONDS: Final[int] = 1  # All clocks advance in whole seconds
COUNTDOWN_SECONDS: Final[int] = 3  # 3-2-1 before the first set
LIVE_POLL_SECONDS: Final[float] = 0.25  # CLI sleep slice while a countdown is hot

# =============================================================================
# PLAN DEFAULTS
# =============================================================================

DEFAULT_ROUND_COUNT: Final[int] = 1
DEFAULT_SET_COUNT: Final[int] = 1

# =============================================================================
# STORAGE
# =============================================================================

DATA_DIR_ENV: Final[str] = "REP_RUNNER_HOME"
DEFAULT_DATA_DIR_NAME: Final[str] = ".rep-runner"
HISTORY_FILE_NAME: Final[str] = "history.jsonl"
SETTINGS_FILE_NAME: Final[str] = "runner.yaml"

# =============================================================================
# REMOTE STORE (authoritative history / plan lookup)
# =============================================================================

API_HISTORY_PATH: Final[str] = "/api/history"
API_SESSIONS_PATH: Final[str] = "/api/sessions/all"
API_SESSION_DETAIL_PATH: Final[str] = "/api/sessions/detail"
DEFAULT_REMOTE_TIMEOUT_SECONDS: Final[float] = 5.0


# =============================================================================
# POLICIES
# =============================================================================

class RestPrecedence(str, Enum):
    """
    Which rest value wins when crossing an exercise or round boundary.

    SESSION: session-level inter-exercise / inter-round values, when defined,
             override the item's own rest.
    ITEM:    the item's own non-zero rest overrides the session-level values.

    Rest between two sets of the same exercise always uses the item's rest.
    """

    SESSION = "session"
    ITEM = "item"


class ElapsedSource(str, Enum):
    """Which clock is reported as the session duration on completion."""

    ACTIVE = "active"  # wall-clock time spent in the active phase
    REST = "rest"  # cumulative rest time


@dataclass(frozen=True)
class RunnerSettings:
    """Deployment settings for the runner and its collaborators."""

    countdown_seconds: int = COUNTDOWN_SECONDS
    rest_precedence: RestPrecedence = RestPrecedence.SESSION
    elapsed_source: ElapsedSource = ElapsedSource.ACTIVE
    audible_cues: bool = True
    remote_base_url: str | None = None
    remote_timeout_seconds: float = DEFAULT_REMOTE_TIMEOUT_SECONDS
    remote_token: str | None = None
