"""
Countdown timer for a single exam session.

States: stopped -> running <-> paused. Remaining time is computed lazily from
the clock and never goes below zero.
"""

import time
from datetime import timedelta
from typing import Callable, Optional

STOPPED = "stopped"
RUNNING = "running"
PAUSED = "paused"


class Timer:
    """Tracks elapsed and remaining time with pause/resume support."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.duration = timedelta(0)
        self._start: Optional[float] = None
        self._paused_at: Optional[float] = None
        self.running = False

    @property
    def state(self) -> str:
        if self._start is None:
            return STOPPED
        return RUNNING if self.running else PAUSED

    @property
    def duration_minutes(self) -> int:
        return int(self.duration.total_seconds() // 60)

    def start(self, duration_minutes: int):
        """Start (or restart) the countdown from the full duration."""
        self.duration = timedelta(minutes=duration_minutes)
        self._start = self._clock()
        self._paused_at = None
        self.running = True

    def pause(self) -> bool:
        if not self.running:
            return False
        self._paused_at = self._clock()
        self.running = False
        return True

    def resume(self) -> bool:
        if self.running or self._start is None:
            return False
        self._start += self._clock() - self._paused_at
        self._paused_at = None
        self.running = True
        return True

    def elapsed(self) -> timedelta:
        if self._start is None:
            return timedelta(0)
        end = self._clock() if self.running else self._paused_at
        return timedelta(seconds=end - self._start)

    def remaining(self) -> timedelta:
        """Get the remaining time; frozen while paused, zero before start."""
        if self._start is None:
            return timedelta(0)
        return max(self.duration - self.elapsed(), timedelta(0))

    def is_expired(self) -> bool:
        return self._start is not None and self.remaining() <= timedelta(0)

    def restore(self, duration_minutes: int, remaining: timedelta):
        """Rebuild a paused timer that holds `remaining` out of `duration_minutes`."""
        self.duration = timedelta(minutes=duration_minutes)
        remaining = min(max(remaining, timedelta(0)), self.duration)
        now = self._clock()
        self._start = now - (self.duration - remaining).total_seconds()
        self._paused_at = now
        self.running = False

    def format_remaining(self) -> str:
        """Format remaining time as HH:MM:SS."""
        total_seconds = int(self.remaining().total_seconds())
        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        seconds = total_seconds % 60
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
