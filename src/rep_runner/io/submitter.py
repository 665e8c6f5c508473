"""
History hand-off for finished sessions.

The local JSONL cache is written first so that ``history`` / ``done``
reflect the run immediately, then the record is posted to the remote store
when one is configured.  Neither failure reaches the caller.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterator

from ..core.models import CompletionSummary
from ..core.stats import CompletionStatus
from .history_store import HistoryStore
from .remote import HistoryApiClient, RemoteError
from .serializers import ValidationError, summary_to_history_entry

logger = logging.getLogger(__name__)


class HistorySubmitter:
    """CompletionSink that writes locally, then remotely."""

    def __init__(self, store: HistoryStore, client: HistoryApiClient | None = None):
        self.store = store
        self.client = client
        self.local_ok: bool | None = None
        self.remote_ok: bool | None = None

    def __call__(self, summary: CompletionSummary) -> None:
        self.submit(summary)

    def submit(self, summary: CompletionSummary) -> None:
        try:
            self.store.append_entry(summary_to_history_entry(summary))
            self.local_ok = True
        except (OSError, ValueError) as exc:
            self.local_ok = False
            logger.warning("Could not write local history: %s", exc)

        if self.client is None:
            return
        try:
            self.client.submit(summary)
            self.remote_ok = True
        except RemoteError as exc:
            self.remote_ok = False
            logger.warning("Could not record session remotely: %s", exc)


def read_completion_status(
    store: HistoryStore,
    client: HistoryApiClient | None,
    today: date,
) -> Iterator[CompletionStatus]:
    """
    Two-phase completion status.

    Yields the local answer first, then (if a remote store is configured)
    the reconciled answer, where the remote one supersedes.
    """
    try:
        local = CompletionStatus.from_entries(store.load_history(), today)
    except ValidationError as exc:
        logger.warning("Local history unreadable: %s", exc)
        local = CompletionStatus()
    yield local

    if client is None:
        return
    try:
        remote = client.fetch_completion_status()
    except RemoteError as exc:
        logger.warning("Remote history unavailable, keeping local status: %s", exc)
        remote = None
    yield local.reconcile(remote)
