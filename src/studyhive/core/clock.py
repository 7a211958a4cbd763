"""Wall-clock collaborator used for timestamps and day rollover."""

from datetime import datetime


class SystemClock:
    """Reads the local system time."""

    def now(self) -> datetime:
        return datetime.now().astimezone()

    def day_key(self, timestamp: datetime) -> str:
        """Return the calendar day of *timestamp* as ``YYYY-MM-DD``."""
        return timestamp.date().isoformat()
