"""History commands: history, stats, done, delete-record."""

import json
from datetime import date
from typing import Annotated, Optional

import typer

from ...core.models import HistoryEntry
from ...core.stats import day_stats, month_stats, week_stats, year_stats
from ...io.history_store import HistoryStore
from ...io.serializers import ValidationError, history_entry_to_dict
from ...io.submitter import read_completion_status
from .. import views
from ..app import (
    HistoryPathOption,
    PlansDirOption,
    RemoteUrlOption,
    app,
    get_client,
    get_plan_store,
    get_settings,
    get_store,
)
from .plans import DateOption, parse_date_option


def load_history_or_exit(store: HistoryStore) -> list[HistoryEntry]:
    try:
        return store.load_history()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


@app.command()
def history(
    history_path: HistoryPathOption = None,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-l", help="Limit number of sessions to show"),
    ] = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
) -> None:
    """
    Display completed sessions as a table.
    """
    entries = load_history_or_exit(get_store(history_path))

    if limit is not None:
        entries = entries[-limit:] if limit > 0 else []

    if json_out:
        print(json.dumps([history_entry_to_dict(e) for e in entries], indent=2))
        return

    views.print_history(entries)


@app.command()
def stats(
    history_path: HistoryPathOption = None,
    on_date: DateOption = None,
) -> None:
    """
    Sessions, sets and time for today, this week, this month and this year.
    """
    ref = parse_date_option(on_date)
    entries = load_history_or_exit(get_store(history_path))

    views.print_stats([
        ("Today", day_stats(entries, ref)),
        ("This week", week_stats(entries, ref)),
        ("This month", month_stats(entries, ref)),
        ("This year", year_stats(entries, ref)),
    ])


@app.command()
def done(
    history_path: HistoryPathOption = None,
    plans_dir: PlansDirOption = None,
    remote_url: RemoteUrlOption = None,
) -> None:
    """
    Sessions completed today and this week.

    The local history answers first; the remote store, when configured,
    supersedes it.
    """
    store = get_store(history_path)
    client = get_client(get_settings(remote_url))

    names: dict[str, str] = {}
    for plan in get_plan_store(plans_dir).list_plans():
        names[plan.slug] = plan.name
        names.setdefault(plan.id, plan.name)

    for status in read_completion_status(store, client, date.today()):
        views.print_completion_status(status, names)


@app.command("delete-record")
def delete_record(
    record_id: Annotated[
        int,
        typer.Argument(help="Entry ID to delete (see # column in history)"),
    ],
    history_path: HistoryPathOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """
    Remove a completed session from the local history.

    Use 'history' to see entry IDs in the # column.
    """
    store = get_store(history_path)
    entries = load_history_or_exit(store)

    if not entries:
        views.print_error("No sessions in history.")
        raise typer.Exit(1)

    if record_id < 1 or record_id > len(entries):
        views.print_error(f"Record ID must be between 1 and {len(entries)}")
        raise typer.Exit(1)

    target = entries[record_id - 1]
    views.console.print(
        f"Entry to delete: [bold]{target.session_id}[/bold] ({target.finished_at})"
    )

    if not force and not views.confirm_action("Delete this entry?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    store.delete_entry_at(record_id - 1)
    views.print_success(f"Deleted entry #{record_id}: {target.session_id} ({target.finished_at})")
