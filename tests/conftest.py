"""Shared fakes for driving the study timer deterministically."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from studyhive.core.scheduler import Scheduler
from studyhive.core.store import MemoryStore
from studyhive.core.timer import StudyTimer


class FakeTime:
    """Monotonic clock that only moves when something sleeps on it."""

    def __init__(self) -> None:
        self.now = 0.0

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


class FakeClock:
    def __init__(self, current: datetime) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current

    def day_key(self, timestamp: datetime) -> str:
        return timestamp.date().isoformat()

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self, granted: bool = True) -> None:
        self.granted = granted
        self.shown: list[tuple[str, str]] = []

    def request_permission(self) -> bool:
        return self.granted

    def show(self, title: str, body: str) -> None:
        self.shown.append((title, body))


class RecordingAudio:
    def __init__(self) -> None:
        self.tones = 0

    def play_tone(self) -> None:
        self.tones += 1


@pytest.fixture()
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture()
def scheduler(fake_time: FakeTime) -> Scheduler:
    return Scheduler(timefunc=fake_time.monotonic, delayfunc=fake_time.sleep)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 16, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def audio() -> RecordingAudio:
    return RecordingAudio()


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def make_timer(
    store: MemoryStore,
    scheduler: Scheduler,
    clock: FakeClock,
    notifier: RecordingNotifier,
    audio: RecordingAudio,
) -> Callable[..., StudyTimer]:
    """Return a factory building timers on the shared fakes.

    Keyword arguments override individual collaborators.
    """

    def factory(**overrides: object) -> StudyTimer:
        collaborators = {
            "store": store,
            "scheduler": scheduler,
            "clock": clock,
            "notifier": notifier,
            "audio": audio,
        }
        collaborators.update(overrides)
        return StudyTimer(**collaborators)

    return factory
