"""Tests for the terminal alert collaborators and the system clock."""

from datetime import datetime, timezone

import pytest

from studyhive.core.alerts import ConsoleNotifier, NullNotifier, SilentAudio, TerminalBell
from studyhive.core.clock import SystemClock


class TestNotifiers:
    def test_console_notifier_prints_title_and_body(self, capsys: pytest.CaptureFixture[str]) -> None:
        notifier = ConsoleNotifier()
        assert notifier.request_permission() is True

        notifier.show("StudyHive Timer", "Break time over! Ready to focus?")

        assert "StudyHive Timer: Break time over! Ready to focus?" in capsys.readouterr().out

    def test_console_notifier_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        ConsoleNotifier(err=True).show("StudyHive Timer", "done")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "StudyHive Timer: done" in captured.err

    def test_null_notifier_is_denied_and_silent(self, capsys: pytest.CaptureFixture[str]) -> None:
        notifier = NullNotifier()
        assert notifier.request_permission() is False
        notifier.show("StudyHive Timer", "done")
        assert capsys.readouterr().out == ""


class TestAudio:
    def test_terminal_bell_rings(self, capsys: pytest.CaptureFixture[str]) -> None:
        TerminalBell().play_tone()
        assert capsys.readouterr().out == "\a"

    def test_silent_audio(self, capsys: pytest.CaptureFixture[str]) -> None:
        SilentAudio().play_tone()
        assert capsys.readouterr().out == ""


class TestSystemClock:
    def test_now_is_timezone_aware(self) -> None:
        assert SystemClock().now().tzinfo is not None

    def test_day_key_is_calendar_date(self) -> None:
        timestamp = datetime(2026, 10, 16, 23, 59, tzinfo=timezone.utc)
        assert SystemClock().day_key(timestamp) == "2026-10-16"
