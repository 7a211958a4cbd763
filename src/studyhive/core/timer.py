"""Study timer core: a focus/break state machine with persisted statistics."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Mapping, Protocol

from studyhive.core.scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)


class TimerMode(Enum):
    """The kind of interval being timed."""

    FOCUS = "focus"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"


class Activity(Enum):
    """Whether the countdown is idle, running or paused."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


SETTINGS_KEY = "timer_settings"
STATS_KEY = "timer_stats"
TODAY_KEY = "timer_today"

NOTIFICATION_TITLE = "StudyHive Timer"
FOCUS_COMPLETE_MESSAGE = "Focus session complete! Time for a break."
BREAK_COMPLETE_MESSAGE = "Break time over! Ready to focus?"

_TICK_INTERVAL = 1.0
_AUTO_START_DELAY = 1.0
_MAX_TASK_LENGTH = 100

# Accepted (min, max) for integer settings; None means unbounded.
_INT_BOUNDS: dict[str, tuple[int, int | None]] = {
    "focus_duration": (1, 60),
    "short_break_duration": (1, 30),
    "long_break_duration": (1, 60),
    "long_break_interval": (1, None),
}
_BOOL_FIELDS = frozenset(
    {"auto_start_breaks", "auto_start_focus", "sound_enabled", "notifications_enabled"}
)
_DURATION_FIELDS = {
    TimerMode.FOCUS: "focus_duration",
    TimerMode.SHORT_BREAK: "short_break_duration",
    TimerMode.LONG_BREAK: "long_break_duration",
}


class Store(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class Clock(Protocol):
    def now(self) -> datetime: ...

    def day_key(self, timestamp: datetime) -> str: ...


class Notifier(Protocol):
    def request_permission(self) -> bool: ...

    def show(self, title: str, body: str) -> None: ...


class Audio(Protocol):
    def play_tone(self) -> None: ...


def format_time(seconds: int) -> str:
    """Format *seconds* as ``MM:SS``."""
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def _coerce_int(value: Any, low: int, high: int | None) -> int | None:
    """Return *value* as an int within bounds, or ``None`` if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and value.strip().isdecimal():
        number = int(value)
    else:
        return None
    if number < low or (high is not None and number > high):
        return None
    return number


def _non_negative_int(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return 0


@dataclass(frozen=True)
class TimerSettings:
    """Durations (minutes) and behaviour switches for the timer."""

    focus_duration: int = 25
    short_break_duration: int = 5
    long_break_duration: int = 15
    long_break_interval: int = 4
    auto_start_breaks: bool = False
    auto_start_focus: bool = False
    sound_enabled: bool = True
    notifications_enabled: bool = True

    def duration_for(self, mode: TimerMode) -> int:
        """Return the configured length of *mode* in minutes."""
        return getattr(self, _DURATION_FIELDS[mode])

    def merged(self, changes: Mapping[str, Any]) -> TimerSettings:
        """Return a copy with *changes* applied.

        Invalid values (wrong type, non-numeric, out of range) keep the
        current value; unknown names are ignored.  Never raises.
        """
        accepted: dict[str, Any] = {}
        for name, value in changes.items():
            if name in _INT_BOUNDS:
                coerced = _coerce_int(value, *_INT_BOUNDS[name])
            elif name in _BOOL_FIELDS:
                coerced = value if isinstance(value, bool) else None
            else:
                logger.warning("Ignoring unknown timer setting %r", name)
                continue

            if coerced is None:
                logger.warning(
                    "Ignoring invalid value %r for %s; keeping %r", value, name, getattr(self, name)
                )
                continue
            accepted[name] = coerced
        return replace(self, **accepted)

    @classmethod
    def from_dict(cls, data: Any) -> TimerSettings:
        """Build settings from a stored blob, falling back to the defaults."""
        if not isinstance(data, Mapping):
            if data is not None:
                logger.warning("Stored timer settings are not a mapping; using defaults")
            return cls()
        return cls().merged(data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CompletedTask:
    """A task label finished during a focus session."""

    id: int
    label: str
    completed_at: str
    duration_minutes: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> CompletedTask | None:
        """Rebuild a stored record; returns ``None`` when it is malformed."""
        try:
            return cls(
                id=int(data["id"]),
                label=str(data["label"]),
                completed_at=str(data["completed_at"]),
                duration_minutes=int(data["duration_minutes"]),
            )
        except (KeyError, TypeError, ValueError, OverflowError):
            logger.warning("Skipping malformed completed task record: %r", data)
            return None


class StudyTimer:
    """Pomodoro-style study timer.

    Owns the countdown, the focus/short-break/long-break cycle, session
    statistics and the current task.  Time advances only through one-second
    ticks queued on the injected :class:`Scheduler`; at most one tick is ever
    pending, and it exists only while the timer is running and not paused.

    Settings and statistics are written to *store* whenever they change and
    reloaded on construction.
    """

    def __init__(
        self,
        store: Store,
        scheduler: Scheduler,
        clock: Clock,
        notifier: Notifier,
        audio: Audio,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._clock = clock
        self._notifier = notifier
        self._audio = audio

        self._tick_task: ScheduledTask | None = None
        self._auto_start_task: ScheduledTask | None = None
        self._listeners: list[Callable[[StudyTimer], None]] = []

        self._settings = TimerSettings()
        self._mode = TimerMode.FOCUS
        self._is_active = False
        self._is_paused = False
        self._sessions_completed = 0
        self._total_focus_minutes = 0
        self._todays_focus_minutes = 0
        self._today = ""
        self._current_task: str | None = None
        self._completed_tasks: list[CompletedTask] = []

        self._load()
        self._time_left = self._full_duration(self._mode)

    # -- state ---------------------------------------------------------------

    @property
    def settings(self) -> TimerSettings:
        return self._settings

    @property
    def mode(self) -> TimerMode:
        return self._mode

    @property
    def time_left(self) -> int:
        """Seconds remaining in the current interval."""
        return self._time_left

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def activity(self) -> Activity:
        if not self._is_active:
            return Activity.IDLE
        return Activity.PAUSED if self._is_paused else Activity.RUNNING

    @property
    def is_running(self) -> bool:
        return self._is_active and not self._is_paused

    @property
    def is_focus_mode(self) -> bool:
        return self._mode is TimerMode.FOCUS

    @property
    def is_break_mode(self) -> bool:
        return self._mode is not TimerMode.FOCUS

    @property
    def sessions_completed(self) -> int:
        return self._sessions_completed

    @property
    def total_focus_minutes(self) -> int:
        return self._total_focus_minutes

    @property
    def todays_focus_minutes(self) -> int:
        return self._todays_focus_minutes

    @property
    def current_task(self) -> str | None:
        return self._current_task

    @property
    def completed_tasks(self) -> list[CompletedTask]:
        """Completed tasks, most recent first."""
        return list(self._completed_tasks)

    def progress(self) -> float:
        """Return how much of the current interval has elapsed, in percent."""
        total = self._full_duration(self._mode)
        return max(0.0, min(100.0, (total - self._time_left) / total * 100))

    # -- actions -------------------------------------------------------------

    def start(self) -> None:
        """Begin or resume the countdown.  Does nothing if already running."""
        self._cancel_auto_start()
        if self.is_running:
            return
        self._is_active = True
        self._is_paused = False
        self._schedule_tick()
        logger.debug("Started %s with %d seconds left", self._mode.value, self._time_left)
        self._emit_change()

    def pause(self) -> None:
        """Toggle between running and paused.  Does nothing while idle."""
        self._cancel_auto_start()
        if not self._is_active:
            return
        if self._is_paused:
            self._is_paused = False
            self._schedule_tick()
        else:
            self._is_paused = True
            self._cancel_tick()
        action = "Paused" if self._is_paused else "Resumed"
        logger.debug("%s %s at %d seconds left", action, self._mode.value, self._time_left)
        self._emit_change()

    def stop(self) -> None:
        """Stop the countdown and rewind the current mode to its full length."""
        self._cancel_auto_start()
        self._enter_mode(self._mode)
        self._emit_change()

    def reset(self) -> None:
        """Stop and go back to an idle focus interval."""
        self._cancel_auto_start()
        self._enter_mode(TimerMode.FOCUS)
        self._emit_change()

    def switch_mode(self, mode: TimerMode | str) -> None:
        """Make *mode* current, idle, with its full duration left."""
        self._cancel_auto_start()
        self._enter_mode(TimerMode(mode))
        self._emit_change()

    def update_settings(self, **changes: Any) -> None:
        """Merge *changes* into the settings and persist them.

        While idle, the countdown is rewritten to the (possibly new) length of
        the current mode; a running or paused countdown is left alone.
        """
        self._settings = self._settings.merged(changes)
        self._persist(SETTINGS_KEY, self._settings.to_dict())
        if not self._is_active:
            self._time_left = self._full_duration(self._mode)
        self._emit_change()

    def add_task(self, label: str | None) -> None:
        """Set the task worked on during the next focus session."""
        label = (label or "").strip()[:_MAX_TASK_LENGTH].rstrip()
        self._current_task = label or None
        self._emit_change()

    def clear_completed_tasks(self) -> None:
        self._completed_tasks = []
        self._save_stats()
        self._emit_change()

    def request_notification_permission(self) -> bool:
        try:
            return bool(self._notifier.request_permission())
        except Exception:
            logger.warning("Notification permission request failed", exc_info=True)
            return False

    def run(self) -> None:
        """Drive the scheduler until no tick or deferred start is pending."""
        self._scheduler.run()

    def subscribe(self, listener: Callable[[StudyTimer], None]) -> Callable[[], None]:
        """Call *listener* with the timer after every state change.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- countdown -----------------------------------------------------------

    def _tick(self) -> None:
        self._tick_task = None
        if not self.is_running or self._time_left == 0:
            return
        self._time_left -= 1
        if self._time_left == 0:
            self._complete()
        else:
            self._schedule_tick()
        self._emit_change()

    def _complete(self) -> None:
        """Finish the current interval and move on to the next mode."""
        completed = self._mode
        self._is_active = False
        self._is_paused = False

        if completed is TimerMode.FOCUS:
            self._record_focus_session()
            if self._sessions_completed % self._settings.long_break_interval == 0:
                next_mode = TimerMode.LONG_BREAK
            else:
                next_mode = TimerMode.SHORT_BREAK
            auto_start = self._settings.auto_start_breaks
            message = FOCUS_COMPLETE_MESSAGE
        else:
            next_mode = TimerMode.FOCUS
            auto_start = self._settings.auto_start_focus
            message = BREAK_COMPLETE_MESSAGE

        self._enter_mode(next_mode)
        logger.debug("Completed %s interval, next is %s", completed.value, next_mode.value)

        if auto_start:
            self._auto_start_task = self._scheduler.call_later(_AUTO_START_DELAY, self.start)
        if self._settings.notifications_enabled:
            self._alert(self._notifier.show, NOTIFICATION_TITLE, message)
        if self._settings.sound_enabled:
            self._alert(self._audio.play_tone)
        self._save_stats()

    def _record_focus_session(self) -> None:
        minutes = self._settings.focus_duration
        now = self._clock.now()
        self._roll_over_day(now)

        self._sessions_completed += 1
        self._total_focus_minutes += minutes
        self._todays_focus_minutes += minutes

        if self._current_task:
            task = CompletedTask(
                id=int(now.timestamp() * 1000),
                label=self._current_task,
                completed_at=now.isoformat(),
                duration_minutes=minutes,
            )
            self._completed_tasks.insert(0, task)
            self._current_task = None

    def _enter_mode(self, mode: TimerMode) -> None:
        self._cancel_tick()
        self._mode = mode
        self._is_active = False
        self._is_paused = False
        self._time_left = self._full_duration(mode)

    def _full_duration(self, mode: TimerMode) -> int:
        return self._settings.duration_for(mode) * 60

    def _schedule_tick(self) -> None:
        if self._tick_task is not None and self._tick_task.active:
            return
        self._tick_task = self._scheduler.call_later(_TICK_INTERVAL, self._tick)

    def _cancel_tick(self) -> None:
        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None

    def _cancel_auto_start(self) -> None:
        if self._auto_start_task is not None:
            self._auto_start_task.cancel()
            self._auto_start_task = None

    def _alert(self, action: Callable[..., None], *args: Any) -> None:
        """Invoke a notification or sound collaborator, ignoring failures."""
        try:
            action(*args)
        except Exception:
            logger.warning("Completion alert failed", exc_info=True)

    def _emit_change(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # -- persistence ---------------------------------------------------------

    def _load(self) -> None:
        """Restore settings and statistics, falling back to defaults."""
        self._settings = TimerSettings.from_dict(self._store.get(SETTINGS_KEY))

        stats = self._store.get(STATS_KEY)
        if isinstance(stats, Mapping):
            self._total_focus_minutes = _non_negative_int(stats.get("total_focus_minutes"))
            self._sessions_completed = _non_negative_int(stats.get("sessions_completed"))
            records = stats.get("completed_tasks")
            if isinstance(records, list):
                self._completed_tasks = [
                    task for task in map(CompletedTask.from_dict, records) if task is not None
                ]
        elif stats is not None:
            logger.warning("Stored timer stats are not a mapping; starting from zero")

        today = self._store.get(TODAY_KEY)
        self._today = self._clock.day_key(self._clock.now())
        if isinstance(today, Mapping) and today.get("date") == self._today:
            self._todays_focus_minutes = _non_negative_int(today.get("focus_minutes"))
        else:
            self._todays_focus_minutes = 0
            self._persist(TODAY_KEY, {"date": self._today, "focus_minutes": 0})

    def _roll_over_day(self, now: datetime) -> None:
        day = self._clock.day_key(now)
        if day != self._today:
            logger.debug("New day %s; resetting today's focus minutes", day)
            self._today = day
            self._todays_focus_minutes = 0

    def _save_stats(self) -> None:
        self._persist(
            STATS_KEY,
            {
                "total_focus_minutes": self._total_focus_minutes,
                "sessions_completed": self._sessions_completed,
                "completed_tasks": [task.to_dict() for task in self._completed_tasks],
                "last_updated": self._clock.now().isoformat(),
            },
        )
        self._persist(TODAY_KEY, {"date": self._today, "focus_minutes": self._todays_focus_minutes})

    def _persist(self, key: str, value: Any) -> None:
        try:
            self._store.set(key, value)
        except OSError:
            logger.warning("Could not persist %s", key, exc_info=True)
