"""Notification and sound collaborators for timer completion alerts."""

from __future__ import annotations

import click


class ConsoleNotifier:
    """Shows notifications as a line on the terminal."""

    def __init__(self, err: bool = False) -> None:
        self._err = err

    def request_permission(self) -> bool:
        return True

    def show(self, title: str, body: str) -> None:
        # Start on a fresh line; the countdown redraws in place without one.
        click.echo(f"\n{title}: {body}", err=self._err)


class NullNotifier:
    """Notifier for environments where notifications are not permitted."""

    def request_permission(self) -> bool:
        return False

    def show(self, title: str, body: str) -> None:
        pass


class TerminalBell:
    """Plays the completion tone by ringing the terminal bell."""

    def play_tone(self) -> None:
        click.echo("\a", nl=False)


class SilentAudio:
    def play_tone(self) -> None:
        pass
