"""
CLI entry point using Typer.

Provides commands for guided workouts:
- sessions / show: browse the available session plans
- run: live session screen (countdown, sets, rests)
- today: today's entry of the weekly plan
- advice: technique cues for an exercise
- history / stats / done: completed sessions
- delete-record: remove a history entry
"""

from typing import Annotated

import typer

from . import views
from .app import app, get_plan_store, get_store
from .commands import history as history_cmd
from .commands import plans as plans_cmd
from .commands import run as run_cmd
from .logging_setup import configure_logging


def _menu_run(ctx: typer.Context) -> None:
    """Pick a session by number and run it."""
    plans = get_plan_store(None).list_plans()
    if not plans:
        views.print_error("No sessions available.")
        raise typer.Exit(1)

    for i, plan in enumerate(plans, 1):
        views.console.print(f"  \\[{i}] {plan.name} [dim]({plan.slug})[/dim]")

    raw = views.console.input("Session # (Enter to cancel): ").strip()
    if not raw:
        views.print_info("Cancelled.")
        return
    try:
        index = int(raw)
    except ValueError:
        views.print_error("Enter a number")
        raise typer.Exit(1)
    if index < 1 or index > len(plans):
        views.print_error(f"Enter a number between 1 and {len(plans)}")
        raise typer.Exit(1)

    ctx.invoke(run_cmd.run, slug=plans[index - 1].slug)


def _menu_advice(ctx: typer.Context) -> None:
    name = views.console.input("Exercise name: ").strip()
    if not name:
        views.print_info("Cancelled.")
        return
    ctx.invoke(plans_cmd.advice, name=name)


def _menu_delete_record(ctx: typer.Context) -> None:
    """Interactive delete helper called from the main menu."""
    store = get_store(None)
    entries = history_cmd.load_history_or_exit(store)
    if not entries:
        views.print_info("No sessions to delete.")
        return

    views.print_history(entries)
    raw = views.console.input("Delete entry # (Enter to cancel): ").strip()
    if not raw:
        views.print_info("Cancelled.")
        return
    try:
        record_id = int(raw)
    except ValueError:
        views.print_error("Enter a number")
        raise typer.Exit(1)

    ctx.invoke(history_cmd.delete_record, record_id=record_id)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """
    Guided street-workout sessions. Run without a command for interactive mode.
    """
    configure_logging(verbose)

    if ctx.invoked_subcommand is not None:
        return  # A sub-command was given, let it handle things

    # ── Interactive main menu ───────────────────────────────────────────────
    views.console.print()
    views.console.print("[bold cyan]rep-runner[/bold cyan]: guided workout sessions")
    views.console.print()

    menu = {
        "1": ("today",         "Today's plan"),
        "2": ("sessions",      "List sessions"),
        "3": ("run",           "Run a session"),
        "4": ("history",       "Show history"),
        "5": ("stats",         "Stats"),
        "6": ("done",          "Completed today / this week"),
        "a": ("advice",        "Technique advice"),
        "d": ("delete-record", "Delete a history entry"),
        "0": ("quit",          "Quit"),
    }

    for key, (_, desc) in menu.items():
        views.console.print(f"  \\[{key}] {desc}")

    views.console.print()
    try:
        choice = views.console.input("Choose [1]: ").strip() or "1"
    except EOFError:
        raise typer.Exit(0)

    if choice == "0":
        raise typer.Exit(0)

    cmd_map = {k: v[0] for k, v in menu.items()}
    chosen = cmd_map.get(choice)

    if chosen is None:
        views.print_error(f"Unknown choice: {choice}")
        raise typer.Exit(1)

    # Invoke the chosen sub-command via typer
    if chosen == "today":
        ctx.invoke(plans_cmd.today)
    elif chosen == "sessions":
        ctx.invoke(plans_cmd.sessions)
    elif chosen == "run":
        _menu_run(ctx)
    elif chosen == "history":
        ctx.invoke(history_cmd.history)
    elif chosen == "stats":
        ctx.invoke(history_cmd.stats)
    elif chosen == "done":
        ctx.invoke(history_cmd.done)
    elif chosen == "advice":
        _menu_advice(ctx)
    elif chosen == "delete-record":
        _menu_delete_record(ctx)


if __name__ == "__main__":
    app()
