"""Live session screen: run."""

from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer
from rich.live import Live

from ...core.clock import Clock, MonotonicClock
from ...core.config import LIVE_POLL_SECONDS
from ...core.machine import SessionMachine
from ...core.models import Phase, SessionPlan
from ...core.reporter import CompletionReporter
from ...io.audio import BeepCue
from ...io.plan_store import PlanLoadError
from ...io.remote import HistoryApiClient, RemoteError
from ...io.submitter import HistorySubmitter
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


def make_clock() -> Clock:
    """Tick source for live runs."""
    return MonotonicClock()


def _load_plan(slug: str, plans_dir: Path | None, client: HistoryApiClient | None) -> SessionPlan:
    """
    Load a plan, offering a retry on failure.

    The remote store is asked first when configured; the local plan files
    are the fallback.
    """
    while True:
        try:
            if client is not None:
                try:
                    return client.fetch_plan(slug)
                except RemoteError as e:
                    views.print_warning(f"{e}; trying local plans")
            return get_plan_store(plans_dir).get(slug)
        except PlanLoadError as e:
            views.print_error(str(e))

        try:
            retry = views.confirm_action("Retry?")
        except EOFError:
            retry = False
        if not retry:
            raise typer.Exit(1)


def _handle_key(machine: SessionMachine, key: str) -> bool:
    """Apply one keypress; False means quit."""
    if key == "q":
        return False

    if key == "":
        if machine.phase is Phase.IDLE:
            done = machine.start()
        elif machine.phase is Phase.PAUSED:
            done = machine.resume()
        else:
            done = machine.confirm_set()
    elif key == "s":
        done = machine.skip_exercise()
    elif key == "p":
        done = machine.pause()
    elif key == "r":
        done = machine.reset()
        if done:
            views.print_info("Session reset.")
    else:
        views.print_warning(f"Unknown key: {key!r}")
        return True

    if not done:
        views.print_info(f"Not available while {machine.phase.value}.")
    return True


def _wait_timed(machine: SessionMachine, clock: Clock) -> None:
    """Let a countdown or rest run out; Ctrl+C skips a rest."""
    phase = machine.phase
    try:
        if views.console.is_terminal:
            with Live(
                views.render_runner(machine),
                console=views.console,
                refresh_per_second=4,
                transient=True,
            ) as live:
                while machine.phase is phase:
                    clock.sleep(LIVE_POLL_SECONDS)
                    live.update(views.render_runner(machine))
        else:
            last = None
            while machine.phase is phase:
                line = views.timed_line(machine)
                if line != last:
                    views.console.print(line)
                    last = line
                clock.sleep(LIVE_POLL_SECONDS)
    except KeyboardInterrupt:
        if machine.phase is not Phase.RESTING:
            raise
        machine.skip_rest()
        views.print_info("Rest skipped.")


def _drive(machine: SessionMachine, clock: Clock) -> None:
    """Single event loop: block on input, or let timed phases run."""
    views.console.print(views.KEY_HELP)
    while not machine.finished:
        if machine.phase in (Phase.COUNTDOWN, Phase.RESTING):
            _wait_timed(machine, clock)
            continue

        views.print_runner_state(machine)
        try:
            key = views.console.input("> ").strip().lower()
        except EOFError:
            key = "q"
        clock.pump()
        if not _handle_key(machine, key):
            views.print_info("Session abandoned.")
            return


@app.command()
def run(
    slug: Annotated[str, typer.Argument(help="Session slug (see 'sessions')")],
    plans_dir: PlansDirOption = None,
    history_path: HistoryPathOption = None,
    no_sound: Annotated[
        bool,
        typer.Option("--no-sound", help="Disable the countdown/rest bell"),
    ] = False,
    remote_url: RemoteUrlOption = None,
) -> None:
    """
    Run a session: countdown, sets, rests, until the last set is confirmed.

    The finished session is written to the local history (and to the remote
    store, when configured).
    """
    settings = get_settings(remote_url)
    if no_sound:
        settings = replace(settings, audible_cues=False)
    client = get_client(settings)

    plan = _load_plan(slug, plans_dir, client)

    store = get_store(history_path)
    submitter = HistorySubmitter(store, client)
    reporter = CompletionReporter(submitter, elapsed_source=settings.elapsed_source)
    clock = make_clock()
    machine = SessionMachine(
        plan,
        clock=clock,
        settings=settings,
        reporter=reporter,
        cue=BeepCue(views.console, settings.audible_cues),
    )

    if machine.nothing_configured:
        views.print_warning(f"Session '{slug}' has no exercises configured.")
        raise typer.Exit(0)

    views.print_plan_detail(plan, with_cues=False)
    try:
        _drive(machine, clock)
    finally:
        machine.close()

    if machine.summary is None:
        return

    views.print_summary(machine.summary)
    if submitter.local_ok:
        views.print_success(f"Saved to {store.history_path}")
    elif submitter.local_ok is False:
        views.print_warning("Could not save the session to the local history.")
    if submitter.remote_ok is False:
        views.print_warning("Could not record the session on the remote store.")
