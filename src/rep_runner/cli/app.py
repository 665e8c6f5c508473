"""Shared Typer app object, shared option types, and store utilities."""

from dataclasses import replace
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.config import RunnerSettings
from ..core.engine.config_loader import load_settings
from ..io.history_store import HistoryStore, get_default_history_path
from ..io.plan_store import PlanStore, get_default_plan_store
from ..io.remote import HistoryApiClient

# Shared option types used across commands
HistoryPathOption = Annotated[
    Optional[Path],
    typer.Option("--history-path", "-p", help="Path to history JSONL file"),
]
PlansDirOption = Annotated[
    Optional[Path],
    typer.Option("--plans-dir", help="Directory of user session plans (YAML)"),
]
RemoteUrlOption = Annotated[
    Optional[str],
    typer.Option("--remote-url", help="Base URL of the remote history store"),
]

app = typer.Typer(
    name="rep-runner",
    help="Guided street-workout sessions: live set/rest timer, history and weekly plan.",
    no_args_is_help=False,
    invoke_without_command=True,
)


def get_store(history_path: Path | None) -> HistoryStore:
    """Get history store from path or default."""
    if history_path is None:
        history_path = get_default_history_path()
    return HistoryStore(history_path)


def get_plan_store(plans_dir: Path | None) -> PlanStore:
    return get_default_plan_store(plans_dir)


def get_settings(remote_url: str | None = None) -> RunnerSettings:
    """Settings from runner.yaml, with the --remote-url override applied."""
    settings = load_settings()
    if remote_url:
        settings = replace(settings, remote_base_url=remote_url)
    return settings


def get_client(settings: RunnerSettings) -> HistoryApiClient | None:
    return HistoryApiClient.from_settings(settings)
