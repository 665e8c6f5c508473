"""
JSONL-based local cache of completed sessions.

Handles reading, writing, and managing the history file.  The remote
history endpoint is authoritative; this file answers immediately and keeps
working offline.
"""

import json
import logging
from pathlib import Path

from ..core.config import HISTORY_FILE_NAME
from ..core.engine.config_loader import get_data_dir
from ..core.models import HistoryEntry
from .serializers import ValidationError, dict_to_history_entry, entry_to_json_line

logger = logging.getLogger(__name__)


class HistoryStore:
    """
    Manages completed sessions stored in JSONL format.

    The history file contains one JSON object per line, one line per
    finished session.
    """

    def __init__(self, history_path: str | Path):
        """
        Initialize the history store.

        Args:
            history_path: Path to the JSONL history file
        """
        self.history_path = Path(history_path)

    def exists(self) -> bool:
        """Check if the history file exists."""
        return self.history_path.exists()

    def init(self) -> None:
        """
        Initialize empty history file if it doesn't exist.

        Creates parent directories if needed.
        """
        self.history_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.history_path.exists():
            self.history_path.touch()

    def load_history(self) -> list[HistoryEntry]:
        """
        Load all entries from the history file.

        A missing file is an empty history.

        Returns:
            List of HistoryEntry, sorted by finish time

        Raises:
            ValidationError: If a line cannot be parsed
        """
        if not self.history_path.exists():
            return []

        entries: list[HistoryEntry] = []

        with open(self.history_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                try:
                    entries.append(dict_to_history_entry(json.loads(line)))
                except (json.JSONDecodeError, ValidationError, ValueError) as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.history_path}: {e}"
                    ) from e

        entries.sort(key=lambda e: e.finished_dt)

        return entries

    def append_entry(self, entry: HistoryEntry) -> None:
        """
        Append an entry to the history file.

        Creates the file (and its directory) on first write.
        """
        self.init()
        with open(self.history_path, "a", encoding="utf-8") as f:
            f.write(entry_to_json_line(entry) + "\n")
        logger.debug("Appended %s to %s", entry.session_id, self.history_path)

    def _write_entries(self, entries: list[HistoryEntry]) -> None:
        with open(self.history_path, "w", encoding="utf-8") as f:
            for entry in entries:
                f.write(entry_to_json_line(entry) + "\n")

    def get_latest_entry(self) -> HistoryEntry | None:
        """Most recent entry, or None if there is no history."""
        entries = self.load_history()
        return entries[-1] if entries else None

    def delete_entry_at(self, index: int) -> HistoryEntry:
        """
        Delete the entry at the given 0-based index in sorted history.

        Returns:
            The removed entry

        Raises:
            IndexError: If index is out of range
        """
        entries = self.load_history()
        if index < 0 or index >= len(entries):
            raise IndexError(f"Entry index {index} out of range (0-{len(entries) - 1})")
        removed = entries.pop(index)
        self._write_entries(entries)
        return removed

    def clear_history(self) -> None:
        """
        Clear all history (dangerous - use with caution).
        """
        if self.history_path.exists():
            self.history_path.write_text("")


def get_default_history_path() -> Path:
    """Default history file: <data dir>/history.jsonl."""
    return get_data_dir() / HISTORY_FILE_NAME


def get_default_store() -> HistoryStore:
    """
    Get a HistoryStore with the default path.

    Returns:
        HistoryStore instance
    """
    return HistoryStore(get_default_history_path())
