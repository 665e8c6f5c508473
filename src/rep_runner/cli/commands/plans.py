"""Plan commands: sessions, show, today, advice."""

import json
from datetime import date, datetime
from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.stats import CompletionStatus, day_plan_for
from ...core.technique import advise_for
from ...io.plan_store import PlanLoadError, load_week_plan
from ...io.serializers import ValidationError, session_plan_to_dict
from .. import views
from ..app import HistoryPathOption, PlansDirOption, app, get_plan_store, get_store

DateOption = Annotated[
    Optional[str],
    typer.Option("--date", "-d", help="Reference date YYYY-MM-DD (default: today)"),
]


def parse_date_option(value: str | None) -> date:
    """--date value → date; exits with an error on a malformed value."""
    if value is None:
        return date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        views.print_error(f"Invalid date: {value}. Use YYYY-MM-DD")
        raise typer.Exit(1)


def _local_status(history_path: Path | None, ref: date) -> CompletionStatus | None:
    try:
        return CompletionStatus.from_entries(get_store(history_path).load_history(), ref)
    except ValidationError as e:
        views.print_warning(str(e))
        return None


@app.command()
def sessions(
    plans_dir: PlansDirOption = None,
    history_path: HistoryPathOption = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
) -> None:
    """
    List the available sessions.
    """
    plans = get_plan_store(plans_dir).list_plans()

    if json_out:
        print(json.dumps([session_plan_to_dict(p) for p in plans], indent=2))
        return

    views.print_plan_list(plans, _local_status(history_path, date.today()))


@app.command()
def show(
    slug: Annotated[str, typer.Argument(help="Session slug (see 'sessions')")],
    plans_dir: PlansDirOption = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
) -> None:
    """
    Show a session's exercises, targets, rests and technique cues.
    """
    try:
        plan = get_plan_store(plans_dir).get(slug)
    except PlanLoadError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(session_plan_to_dict(plan), indent=2))
        return

    views.print_plan_detail(plan)


@app.command()
def today(
    plans_dir: PlansDirOption = None,
    history_path: HistoryPathOption = None,
    on_date: DateOption = None,
) -> None:
    """
    Show today's entry of the weekly plan: warm-up and main session.
    """
    ref = parse_date_option(on_date)
    week = load_week_plan()
    if week is None:
        views.print_error("No weekly plan found.")
        raise typer.Exit(1)

    day_plan = day_plan_for(week, ref)
    plan = None
    if day_plan is not None and day_plan.session_id is not None:
        try:
            plan = get_plan_store(plans_dir).get(day_plan.session_id)
        except PlanLoadError as e:
            views.print_warning(str(e))

    views.console.print(f"[dim]{week.name}[/dim]")
    views.print_day_plan(day_plan, plan, _local_status(history_path, ref))


@app.command()
def advice(
    name: Annotated[str, typer.Argument(help="Exercise name, e.g. 'Pull-ups'")],
    muscle_group: Annotated[
        Optional[str],
        typer.Option("--muscle-group", "-m", help="Muscle group, e.g. back"),
    ] = None,
) -> None:
    """
    Technique description and coaching cues for an exercise.
    """
    views.print_advice(name, advise_for(name, muscle_group))
