"""Wall-clock access behind a small object so it can be replaced in tests."""

from __future__ import annotations

import time
from datetime import datetime, timedelta


class Clock:
    """Gives the current time and sleeps for a duration."""

    def now(self) -> datetime:
        """Return the current local time."""
        return datetime.now()

    def sleep(self, duration: timedelta | float) -> None:
        """Block for *duration* (a timedelta or seconds); non-positive durations return at once."""
        seconds = duration.total_seconds() if isinstance(duration, timedelta) else float(duration)
        if seconds > 0:
            time.sleep(seconds)