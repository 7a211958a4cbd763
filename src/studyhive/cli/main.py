"""CLI entry point for the StudyHive study timer.

Uses Click to expose the ``studyhive`` command group.  This module is the
composition root: it builds a :class:`StudyTimer` with its store, scheduler,
clock and alert collaborators, and renders its state in the terminal.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

import studyhive
from studyhive.core.alerts import ConsoleNotifier, NullNotifier, SilentAudio, TerminalBell
from studyhive.core.clock import SystemClock
from studyhive.core.scheduler import Scheduler
from studyhive.core.store import DEFAULT_CONFIG_DIR, JsonFileStore
from studyhive.core.timer import StudyTimer, TimerMode, format_time

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(filename)s:%(lineno)d] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_MODE_CHOICES = {
    "focus": TimerMode.FOCUS,
    "short-break": TimerMode.SHORT_BREAK,
    "long-break": TimerMode.LONG_BREAK,
}
_MODE_TITLES = {
    TimerMode.FOCUS: "Focus Time",
    TimerMode.SHORT_BREAK: "Short Break",
    TimerMode.LONG_BREAK: "Long Break",
}


def build_timer(config_dir: Path, quiet: bool = False) -> StudyTimer:
    """Wire a :class:`StudyTimer` to its file store and terminal alerts."""
    return StudyTimer(
        store=JsonFileStore(config_dir),
        scheduler=Scheduler(),
        clock=SystemClock(),
        notifier=NullNotifier() if quiet else ConsoleNotifier(),
        audio=SilentAudio() if quiet else TerminalBell(),
    )


def _format_minutes(minutes: int) -> str:
    return f"{minutes // 60}h {minutes % 60}m"


def _render(timer: StudyTimer) -> None:
    """Redraw the countdown line in place."""
    line = f"{_MODE_TITLES[timer.mode]}  {format_time(timer.time_left)}"
    if timer.is_paused:
        line += " (paused)"
    elif not timer.is_active:
        line += " (idle)"
    click.echo(f"\r{line:<32}", nl=False)


@click.group()
@click.version_option(version=studyhive.__version__, prog_name="studyhive")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="STUDYHIVE_CONFIG_DIR",
    default=DEFAULT_CONFIG_DIR,
    show_default=True,
    help="Directory holding timer settings and statistics.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def cli(ctx: click.Context, config_dir: Path, verbose: bool) -> None:
    """studyhive: a Pomodoro-style study timer."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    ctx.obj = config_dir


@cli.command()
@click.option(
    "--mode",
    type=click.Choice(list(_MODE_CHOICES)),
    default="focus",
    show_default=True,
    help="Interval to start with.",
)
@click.option("--task", default=None, help="Task to work on during the focus session.")
@click.pass_obj
def start(config_dir: Path, mode: str, task: str | None) -> None:
    """Run the timer in the foreground until the interval completes."""
    timer = build_timer(config_dir)
    if timer.settings.notifications_enabled and not timer.request_notification_permission():
        click.echo("Notifications are not available.", err=True)

    timer.switch_mode(_MODE_CHOICES[mode])
    if task:
        timer.add_task(task)
    timer.subscribe(_render)
    timer.start()

    try:
        timer.run()
    except KeyboardInterrupt:
        timer.stop()
        click.echo("\nTimer stopped early.", err=True)
        sys.exit(1)
    click.echo()


@cli.command()
@click.pass_obj
def status(config_dir: Path) -> None:
    """Show session statistics."""
    timer = build_timer(config_dir, quiet=True)
    click.echo(f"Focus sessions completed: {timer.sessions_completed}")
    click.echo(f"Total focus time: {_format_minutes(timer.total_focus_minutes)}")
    click.echo(f"Focus time today: {_format_minutes(timer.todays_focus_minutes)}")
    click.echo(f"Tasks completed: {len(timer.completed_tasks)}")


@cli.command()
@click.option("--clear", is_flag=True, help="Forget all completed tasks.")
@click.pass_obj
def tasks(config_dir: Path, clear: bool) -> None:
    """List completed tasks, most recent first."""
    timer = build_timer(config_dir, quiet=True)
    if clear:
        timer.clear_completed_tasks()
        click.echo("Completed tasks cleared")
        return

    completed = timer.completed_tasks
    if not completed:
        click.echo("No completed tasks")
        return
    for task in completed:
        click.echo(f"{task.completed_at}  {task.duration_minutes:>3} min  {task.label}")


@cli.command()
@click.option("--focus", type=click.IntRange(1, 60), help="Focus duration in minutes.")
@click.option("--short-break", type=click.IntRange(1, 30), help="Short break in minutes.")
@click.option("--long-break", type=click.IntRange(1, 60), help="Long break in minutes.")
@click.option("--interval", type=click.IntRange(min=1), help="Focus sessions per long break.")
@click.option("--auto-start-breaks/--no-auto-start-breaks", default=None)
@click.option("--auto-start-focus/--no-auto-start-focus", default=None)
@click.option("--sound/--no-sound", default=None)
@click.option("--notifications/--no-notifications", default=None)
@click.pass_obj
def settings(
    config_dir: Path,
    focus: int | None,
    short_break: int | None,
    long_break: int | None,
    interval: int | None,
    auto_start_breaks: bool | None,
    auto_start_focus: bool | None,
    sound: bool | None,
    notifications: bool | None,
) -> None:
    """Change timer settings, then print the settings in effect."""
    timer = build_timer(config_dir, quiet=True)
    changes = {
        "focus_duration": focus,
        "short_break_duration": short_break,
        "long_break_duration": long_break,
        "long_break_interval": interval,
        "auto_start_breaks": auto_start_breaks,
        "auto_start_focus": auto_start_focus,
        "sound_enabled": sound,
        "notifications_enabled": notifications,
    }
    changes = {name: value for name, value in changes.items() if value is not None}
    if changes:
        timer.update_settings(**changes)

    for name, value in timer.settings.to_dict().items():
        click.echo(f"{name}: {value}")
