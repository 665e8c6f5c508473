"""
YAML → RunnerSettings loader.

Loads runner settings from runner.yaml (bundled with the package) and
optionally merges user overrides from <data dir>/runner.yaml, where the
data dir is ``$REP_RUNNER_HOME`` or ``~/.rep-runner``.

Usage:
    from rep_runner.core.engine.config_loader import load_settings
    settings = load_settings()
    settings.rest_precedence  # RestPrecedence.SESSION

If the bundled YAML cannot be parsed, the dataclass defaults from config.py
are used (no crash).  If the user override file exists but has parse
errors, a warning is issued and the file is ignored.
"""

from __future__ import annotations

import importlib.resources
import os
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..config import (
    DATA_DIR_ENV,
    DEFAULT_DATA_DIR_NAME,
    SETTINGS_FILE_NAME,
    ElapsedSource,
    RestPrecedence,
    RunnerSettings,
)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; warn and return {} on parse errors."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"rep-runner: ignoring {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _enum_or_default(enum_cls: type, raw: Any, default: Any) -> Any:
    if raw is None:
        return default
    try:
        return enum_cls(str(raw).lower())
    except ValueError:
        valid = ", ".join(m.value for m in enum_cls)
        warnings.warn(
            f"rep-runner: unknown {enum_cls.__name__} {raw!r} (valid: {valid}); "
            f"using {default.value!r}",
            stacklevel=3,
        )
        return default


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_data_dir() -> Path:
    """Return the per-user data directory (history, user plans, settings)."""
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / DEFAULT_DATA_DIR_NAME


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled runner.yaml, or None if not found."""
    try:
        ref = importlib.resources.files("rep_runner").joinpath(SETTINGS_FILE_NAME)
        with importlib.resources.as_file(ref) as p:
            return p if p.exists() else None
    except (ModuleNotFoundError, FileNotFoundError):
        candidate = Path(__file__).parent.parent.parent / SETTINGS_FILE_NAME
        return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return <data dir>/runner.yaml if it exists, else None."""
    p = get_data_dir() / SETTINGS_FILE_NAME
    return p if p.exists() else None


def load_config_dict() -> dict[str, Any]:
    """
    Load and merge raw configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/rep_runner/runner.yaml
    2. User override at <data dir>/runner.yaml

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            config = _deep_merge(config, user_cfg)

    return config


def settings_from_dict(config: dict[str, Any]) -> RunnerSettings:
    """Convert the ``runner`` and ``remote`` sections to RunnerSettings."""
    defaults = RunnerSettings()
    runner = config.get("runner") or {}
    remote = config.get("remote") or {}

    countdown = runner.get("countdown_seconds", defaults.countdown_seconds)
    timeout = remote.get("timeout_seconds", defaults.remote_timeout_seconds)

    return RunnerSettings(
        countdown_seconds=max(0, int(countdown)),
        rest_precedence=_enum_or_default(
            RestPrecedence, runner.get("rest_precedence"), defaults.rest_precedence
        ),
        elapsed_source=_enum_or_default(
            ElapsedSource, runner.get("elapsed_source"), defaults.elapsed_source
        ),
        audible_cues=bool(runner.get("audible_cues", defaults.audible_cues)),
        remote_base_url=remote.get("base_url") or None,
        remote_timeout_seconds=float(timeout),
        remote_token=remote.get("token") or None,
    )


def load_settings() -> RunnerSettings:
    """Load merged settings (bundled + user override)."""
    return settings_from_dict(load_config_dict())
