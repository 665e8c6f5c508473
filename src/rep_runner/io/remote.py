"""
HTTP client for the authoritative store.

Endpoints:
    POST /api/history                     record a finished session
    GET  /api/history                     {sessionsDoneToday, sessionsDoneThisWeek}
    GET  /api/sessions/all                {sessions: [{id, slug, name, type, ...}]}
    GET  /api/sessions/detail?sessionId=  {id, name, items: [...]}
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from ..core import plan_loader
from ..core.config import (
    API_HISTORY_PATH,
    API_SESSION_DETAIL_PATH,
    API_SESSIONS_PATH,
    DEFAULT_REMOTE_TIMEOUT_SECONDS,
    RunnerSettings,
)
from ..core.models import CompletionSummary, SessionPlan
from ..core.stats import CompletionStatus
from .serializers import summary_to_submission

logger = logging.getLogger(__name__)


class RemoteError(Exception):
    """Raised when the remote store cannot be reached or answers with an error."""

    pass


class HistoryApiClient:
    """
    Thin wrapper around a ``requests.Session``.

    Args:
        base_url: Store root, e.g. ``https://example.org``
        timeout: Per-request timeout in seconds
        token: Optional bearer token
        session: Injected session (tests)
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_REMOTE_TIMEOUT_SECONDS,
        token: str | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_settings(cls, settings: RunnerSettings) -> "HistoryApiClient | None":
        """Client for the configured store, None when no store is configured."""
        if not settings.remote_base_url:
            return None
        return cls(
            settings.remote_base_url,
            timeout=settings.remote_timeout_seconds,
            token=settings.remote_token,
        )

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise RemoteError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            raise RemoteError(
                f"{method} {path} failed: {response.status_code} {response.reason}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteError(f"{method} {path} returned invalid JSON") from exc

    # ── History ───────────────────────────────────────────────────────────

    def submit(self, summary: CompletionSummary) -> None:
        """POST one completion record."""
        self._request("POST", API_HISTORY_PATH, json=summary_to_submission(summary))
        logger.info("Recorded %s on %s", summary.session_id, self.base_url)

    def fetch_completion_status(self) -> CompletionStatus:
        """Sessions done today / this week according to the store."""
        data = self._request("GET", API_HISTORY_PATH)
        if not isinstance(data, dict):
            raise RemoteError("History status must be a JSON object")
        return CompletionStatus(
            done_today=frozenset(str(s) for s in data.get("sessionsDoneToday") or []),
            done_this_week=frozenset(str(s) for s in data.get("sessionsDoneThisWeek") or []),
            source="remote",
        )

    # ── Plans ─────────────────────────────────────────────────────────────

    def list_sessions(self) -> list[dict[str, Any]]:
        data = self._request("GET", API_SESSIONS_PATH)
        sessions = data.get("sessions") if isinstance(data, dict) else None
        return [s for s in sessions or [] if isinstance(s, dict)]

    def fetch_plan(self, slug: str) -> SessionPlan:
        """
        Resolve ``slug`` through the session list, then load its detail.

        Raises:
            RemoteError: If the slug is unknown or a request fails
        """
        sessions = self.list_sessions()
        found = next((s for s in sessions if s.get("slug") == slug), None)
        if found is None:
            available = ", ".join(str(s.get("slug")) for s in sessions) or "none"
            raise RemoteError(f"Unknown session '{slug}'. Available: {available}")

        detail = self._request(
            "GET", API_SESSION_DETAIL_PATH, params={"sessionId": found.get("id")}
        )
        if not isinstance(detail, dict):
            raise RemoteError(f"Session detail for '{slug}' must be a JSON object")

        # The detail endpoint omits list-level fields (slug, type, duration).
        merged = {**found, **detail}
        return plan_loader.load(merged)
