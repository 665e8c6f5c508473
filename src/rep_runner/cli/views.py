"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of plans, the live runner screen,
history and completion status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from ..core.models import (
    CompletionSummary,
    DayPlan,
    HistoryEntry,
    Phase,
    SessionKind,
    SessionPlan,
)
from ..core.stats import CompletionStatus, PeriodStats
from ..core.technique import TechniqueAdvice, advise_for

if TYPE_CHECKING:
    from ..core.machine import SessionMachine

console = Console()
err_console = Console(stderr=True)

PHASE_STYLE: dict[Phase, str] = {
    Phase.IDLE: "dim",
    Phase.COUNTDOWN: "bold yellow",
    Phase.ACTIVE: "bold green",
    Phase.RESTING: "bold cyan",
    Phase.PAUSED: "bold magenta",
    Phase.FINISHED: "bold green",
}

KEY_HELP = (
    "[bold]Enter[/bold] start/confirm/resume  [bold]s[/bold] skip exercise  "
    "[bold]p[/bold] pause  [bold]r[/bold] reset  [bold]q[/bold] quit  "
    "[bold]Ctrl+C[/bold] skip rest"
)


def format_duration(seconds: int) -> str:
    """12 → '0:12', 754 → '12:34', 3725 → '1:02:05'."""
    seconds = max(0, int(seconds))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def progress_bar(percent: int, width: int = 20) -> str:
    filled = round(width * max(0, min(percent, 100)) / 100)
    return "█" * filled + "░" * (width - filled)


def _fmt_rest(seconds: int | None) -> str:
    return f"{seconds}s" if seconds else "-"


def _kind_label(plan: SessionPlan) -> str:
    if plan.kind is SessionKind.CIRCUIT:
        return f"circuit × {plan.total_rounds}"
    return "classic"


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


def format_plan_list_table(
    plans: list[SessionPlan],
    status: CompletionStatus | None = None,
) -> Table:
    """
    Create a Rich table listing the available sessions.

    Args:
        plans: Plans to list
        status: Optional completion status for the "Done" column

    Returns:
        Rich Table object
    """
    table = Table(title="Sessions")

    table.add_column("Slug", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Type", style="magenta")
    table.add_column("Exercises", justify="right")
    table.add_column("Sets", justify="right")
    table.add_column("~Min", justify="right")
    if status is not None:
        table.add_column("Done", justify="center")

    for plan in plans:
        row = [
            plan.slug,
            plan.name,
            _kind_label(plan),
            str(plan.total_exercises),
            str(plan.total_planned_sets),
            str(plan.estimated_duration_minutes or "-"),
        ]
        if status is not None:
            if status.is_done_today(plan.slug) or status.is_done_today(plan.id):
                row.append("[green]today[/green]")
            elif status.is_done_this_week(plan.slug) or status.is_done_this_week(plan.id):
                row.append("[blue]week[/blue]")
            else:
                row.append("")
        table.add_row(*row)

    return table


def print_plan_list(plans: list[SessionPlan], status: CompletionStatus | None = None) -> None:
    if not plans:
        console.print("[yellow]No sessions available.[/yellow]")
        return
    console.print(format_plan_list_table(plans, status))


def format_plan_table(plan: SessionPlan) -> Table:
    """Items of one plan with sets, targets, rests and the technique category."""
    table = Table(title=f"{plan.name} ({_kind_label(plan)})")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="bold")
    table.add_column("Group", style="magenta")
    table.add_column("Sets", justify="right")
    table.add_column("Target", justify="right", style="green")
    table.add_column("Rest", justify="right")
    table.add_column("Technique", style="cyan")

    for i, item in enumerate(plan.items, 1):
        table.add_row(
            str(i),
            item.display_name,
            item.muscle_group or "-",
            str(item.effective_set_count),
            item.rep_target.label,
            _fmt_rest(item.rest_seconds),
            advise_for(item.display_name, item.muscle_group).category,
        )

    return table


def print_plan_detail(plan: SessionPlan, with_cues: bool = True) -> None:
    """
    Print a plan with its items and, optionally, the coaching cues per item.

    Args:
        plan: Plan to display
        with_cues: Also list each item's technique cues
    """
    console.print()
    if plan.is_empty:
        console.print(f"[bold]{plan.name}[/bold]")
        console.print("[yellow]No exercises configured for this session.[/yellow]")
        return

    console.print(format_plan_table(plan))

    extras = []
    if plan.inter_exercise_rest_seconds:
        extras.append(f"rest between exercises {plan.inter_exercise_rest_seconds}s")
    if plan.inter_round_rest_seconds:
        extras.append(f"rest between rounds {plan.inter_round_rest_seconds}s")
    extras.append(f"{plan.total_planned_sets} sets total")
    if plan.estimated_duration_minutes:
        extras.append(f"~{plan.estimated_duration_minutes} min")
    console.print("  " + ", ".join(extras), style="dim")

    if plan.notes:
        console.print(f"  [italic]{plan.notes}[/italic]")

    if not with_cues:
        return

    console.print()
    seen: set[str] = set()
    for item in plan.items:
        if item.exercise_id in seen:
            continue
        seen.add(item.exercise_id)
        advice = advise_for(item.display_name, item.muscle_group)
        cues = " · ".join(advice.cues)
        console.print(f"  [bold]{item.display_name}[/bold] [dim]({advice.category})[/dim]: {cues}")
        if item.note:
            console.print(f"    [italic]{item.note}[/italic]")


def print_advice(name: str, advice: TechniqueAdvice) -> None:
    console.print()
    console.print(f"[bold]{name}[/bold] [dim]({advice.category})[/dim]")
    console.print(advice.description)
    for cue in advice.cues:
        console.print(f"  • {cue}")


def print_day_plan(
    day_plan: DayPlan | None,
    plan: SessionPlan | None,
    status: CompletionStatus | None = None,
) -> None:
    """Print today's entry of the weekly plan."""
    if day_plan is None:
        console.print("[yellow]Nothing planned today.[/yellow]")
        return

    console.print(f"[bold cyan]{day_plan.day.capitalize()}[/bold cyan]")
    if day_plan.is_rest:
        console.print("Rest day.")
    if day_plan.warmup_minutes:
        console.print(f"Warm-up: {day_plan.warmup_minutes} min")
    if day_plan.warmup_description:
        console.print(f"  [italic]{day_plan.warmup_description}[/italic]")

    if day_plan.session_id is None:
        if not day_plan.is_rest:
            console.print("No main session planned.")
        return

    if plan is None:
        console.print(f"Session: {day_plan.session_id} [yellow](not found)[/yellow]")
        return

    done = status is not None and (
        status.is_done_today(plan.slug) or status.is_done_today(plan.id)
    )
    mark = " [green]✓ done[/green]" if done else ""
    console.print(f"Session: [bold]{plan.name}[/bold] ({plan.slug}){mark}")
    console.print(
        f"  {plan.total_exercises} exercises, {plan.total_planned_sets} sets"
        + (f", ~{plan.estimated_duration_minutes} min" if plan.estimated_duration_minutes else "")
    )
    if not done:
        console.print(f"  Start it with: [bold]rep-runner run {plan.slug}[/bold]")


# ---------------------------------------------------------------------------
# Live runner
# ---------------------------------------------------------------------------


def _phase_line(machine: "SessionMachine") -> str:
    phase = machine.phase
    timer = machine.timer
    if phase is Phase.COUNTDOWN:
        return f"Get ready... {timer.countdown_remaining}"
    if phase is Phase.RESTING:
        return f"Rest {format_duration(timer.rest_remaining_seconds)}"
    if phase is Phase.PAUSED:
        return "Paused"
    if phase is Phase.FINISHED:
        return "Session complete"
    if phase is Phase.IDLE:
        return "Ready"
    return "Go"


def timed_line(machine: "SessionMachine") -> str:
    """One-line status for countdown/rest (non-interactive output)."""
    line = _phase_line(machine)
    nxt = machine.upcoming_item
    if machine.phase is Phase.RESTING and nxt is not None:
        line += f"  next: {nxt.display_name} ({nxt.rep_target.label})"
    return line


def render_runner(machine: "SessionMachine") -> Group:
    """Renderable for the live session screen."""
    plan = machine.plan
    pos = machine.position
    item = machine.current_item
    phase = machine.phase

    header = Text()
    header.append(plan.name, style="bold")
    header.append(f"  [{phase.value}]", style=PHASE_STYLE[phase])

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="dim")
    table.add_column()

    if item is not None and not machine.finished:
        if plan.total_rounds > 1:
            table.add_row("Round", f"{pos.round_index + 1}/{plan.total_rounds}")
        table.add_row(
            "Exercise",
            f"{item.display_name} ({pos.exercise_index + 1}/{plan.total_exercises})",
        )
        table.add_row("Set", f"{pos.set_index + 1}/{item.effective_set_count}")
        table.add_row("Target", item.rep_target.label)
        if item.note:
            table.add_row("Note", item.note)

    table.add_row("Status", Text(_phase_line(machine), style=PHASE_STYLE[phase]))
    nxt = machine.upcoming_item
    if phase is Phase.RESTING and nxt is not None:
        table.add_row("Next", f"{nxt.display_name} ({nxt.rep_target.label})")
    table.add_row("Active", format_duration(machine.timer.elapsed_seconds))
    table.add_row("Rested", format_duration(machine.timer.total_rest_seconds))
    table.add_row("Progress", f"{progress_bar(machine.percent)} {machine.percent}%")

    return Group(header, table)


def print_runner_state(machine: "SessionMachine") -> None:
    console.print()
    console.print(render_runner(machine))


def print_summary(summary: CompletionSummary) -> None:
    console.print()
    console.print(f"[bold green]Session complete: {summary.session_name}[/bold green]")
    console.print(f"  Sets:      {summary.total_planned_sets}")
    console.print(f"  Exercises: {summary.total_exercises}")
    console.print(f"  Rounds:    {summary.total_rounds}")
    console.print(f"  Duration:  {format_duration(summary.elapsed_seconds)}")


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


def format_history_table(entries: list[HistoryEntry]) -> Table:
    """
    Create a Rich table displaying completed sessions.

    Args:
        entries: History entries to display

    Returns:
        Rich Table object
    """
    table = Table(title="Session History")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Finished", style="cyan")
    table.add_column("Session", style="magenta")
    table.add_column("Sets", justify="right")
    table.add_column("Rounds", justify="right")
    table.add_column("Duration", justify="right", style="bold")

    for i, entry in enumerate(entries, 1):
        table.add_row(
            str(i),
            entry.finished_dt.strftime("%Y-%m-%d %H:%M"),
            entry.session_id,
            str(entry.total_sets),
            str(entry.total_rounds),
            format_duration(entry.duration_seconds),
        )

    return table


def print_history(entries: list[HistoryEntry]) -> None:
    """
    Print session history to console.

    Args:
        entries: Entries to display
    """
    if not entries:
        console.print("[yellow]No sessions recorded yet.[/yellow]")
        return

    console.print(format_history_table(entries))


def print_stats(periods: list[tuple[str, PeriodStats]]) -> None:
    table = Table(title="Training stats")
    table.add_column("Period", style="cyan")
    table.add_column("Sessions", justify="right", style="bold")
    table.add_column("Sets", justify="right")
    table.add_column("Time", justify="right")

    for label, stats in periods:
        table.add_row(
            label,
            str(stats.sessions_done),
            str(stats.total_sets),
            format_duration(stats.total_duration_seconds),
        )

    console.print(table)


def print_completion_status(status: CompletionStatus, names: dict[str, str] | None = None) -> None:
    """Print the sessions done today / this week, labelled with the answer's source."""
    names = names or {}

    def _label(ids: frozenset[str]) -> str:
        if not ids:
            return "-"
        return ", ".join(sorted(names.get(i, i) for i in ids))

    source = "remote" if status.source == "remote" else "local cache"
    console.print(f"[bold]Completed sessions[/bold] [dim]({source})[/dim]")
    console.print(f"  Today:     {_label(status.done_today)}")
    console.print(f"  This week: {_label(status.done_this_week)}")


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} \\[y/N]: ")
    return response.lower() in ("y", "yes")
