"""
YAML → SessionPlan supply.

Loads session plans from individual YAML files in the bundled
``src/rep_runner/plans/`` directory.  Each file (e.g. back_day.yaml) holds
one session in the shape accepted by ``core.plan_loader.load``.

User overrides: place matching files in ``<data dir>/plans/``.  A user file
is deep-merged over the bundled plan, so only changed keys need to be
listed (``items`` is replaced as a whole).  A user file with no bundled
counterpart is a new plan.

The weekly schedule is read the same way from ``week.yaml``.
"""

from __future__ import annotations

import importlib.resources
import logging
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..core import plan_loader
from ..core.engine.config_loader import _deep_merge, get_data_dir
from ..core.models import SessionPlan, WeekPlan
from .serializers import ValidationError, dict_to_week_plan

logger = logging.getLogger(__name__)

WEEK_FILE_NAME = "week.yaml"


class PlanLoadError(Exception):
    """Raised when a plan cannot be found, read or fetched."""

    pass


def _read_yaml(path: Path) -> dict[str, Any]:
    """
    Load a single YAML mapping.

    Raises:
        PlanLoadError: If the file cannot be read or is not a mapping
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        raise PlanLoadError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise PlanLoadError(f"{path} does not contain a session mapping")
    return data


def get_bundled_plans_dir() -> Path | None:
    """Return path to the bundled plans/ data directory, or None if not found."""
    try:
        ref = importlib.resources.files("rep_runner").joinpath("plans")
        with importlib.resources.as_file(ref) as p:
            return p if p.is_dir() else None
    except (ModuleNotFoundError, FileNotFoundError):
        candidate = Path(__file__).parent.parent / "plans"
        return candidate if candidate.is_dir() else None


def get_user_plans_dir() -> Path:
    return get_data_dir() / "plans"


class PlanStore:
    """
    Session plans keyed by slug.

    Args:
        bundled_dir: Directory of packaged plans (None for no bundled plans)
        user_dir: Directory of user plans/overrides (need not exist)
    """

    def __init__(self, bundled_dir: Path | None, user_dir: Path | None = None):
        self.bundled_dir = Path(bundled_dir) if bundled_dir is not None else None
        self.user_dir = Path(user_dir) if user_dir is not None else None

    def _files(self) -> dict[str, tuple[Path | None, Path | None]]:
        """{slug: (bundled file, user file)}; slugs are file stems."""
        files: dict[str, tuple[Path | None, Path | None]] = {}
        if self.bundled_dir is not None and self.bundled_dir.is_dir():
            for p in sorted(self.bundled_dir.glob("*.yaml")):
                files[p.stem] = (p, None)
        if self.user_dir is not None and self.user_dir.is_dir():
            for p in sorted(self.user_dir.glob("*.yaml")):
                bundled, _ = files.get(p.stem, (None, None))
                files[p.stem] = (bundled, p)
        return files

    def slugs(self) -> list[str]:
        return sorted(self._files())

    def _raw(self, slug: str, bundled: Path | None, user: Path | None) -> dict[str, Any]:
        raw: dict[str, Any] = {}
        if bundled is not None:
            raw = _read_yaml(bundled)
        if user is not None:
            raw = _deep_merge(raw, _read_yaml(user))
        raw.setdefault("slug", slug)
        raw.setdefault("id", slug)
        return raw

    def get(self, slug: str) -> SessionPlan:
        """
        Load one plan.

        Raises:
            PlanLoadError: If the slug is unknown or its file is unreadable
        """
        files = self._files()
        if slug not in files:
            available = ", ".join(sorted(files)) or "none"
            raise PlanLoadError(f"Unknown session '{slug}'. Available: {available}")
        bundled, user = files[slug]
        plan = plan_loader.load(self._raw(slug, bundled, user))
        logger.debug("Loaded plan %s (%d items)", slug, len(plan.items))
        return plan

    def list_plans(self) -> list[SessionPlan]:
        """All readable plans, sorted by name; unreadable files are skipped with a warning."""
        plans: list[SessionPlan] = []
        for slug, (bundled, user) in self._files().items():
            try:
                plans.append(plan_loader.load(self._raw(slug, bundled, user)))
            except PlanLoadError as exc:
                warnings.warn(f"rep-runner: skipping plan '{slug}' ({exc})", stacklevel=2)
        return sorted(plans, key=lambda p: p.name.lower())


def load_week_plan(path: Path | None = None) -> WeekPlan | None:
    """
    Load the weekly schedule.

    Looks for ``<data dir>/week.yaml`` first, then the bundled week.yaml,
    unless an explicit path is given.  Returns None if none is readable.
    """
    candidates: list[Path] = []
    if path is not None:
        candidates.append(Path(path))
    else:
        candidates.append(get_data_dir() / WEEK_FILE_NAME)
        bundled = get_bundled_plans_dir()
        if bundled is not None:
            candidates.append(bundled.parent / WEEK_FILE_NAME)

    for candidate in candidates:
        if not candidate.exists():
            continue
        try:
            return dict_to_week_plan(_read_yaml(candidate))
        except (PlanLoadError, ValidationError) as exc:
            warnings.warn(f"rep-runner: ignoring week plan {candidate} ({exc})", stacklevel=2)
    return None


def get_default_plan_store(plans_dir: Path | None = None) -> PlanStore:
    """
    PlanStore over the bundled plans and the user's plans dir.

    ``plans_dir`` replaces the user dir (CLI ``--plans-dir``).
    """
    return PlanStore(get_bundled_plans_dir(), plans_dir or get_user_plans_dir())
