"""Countdown shown between sets.

A RestTimer runs at most one countdown. Instead of taking a completion
callback it publishes a RestFinished event to its subscribers, after its own
state has already settled.
"""

import logging
import time
from typing import Callable, List, Literal

from pydantic import BaseModel

logger = logging.getLogger(__name__)

TimerState = Literal["idle", "running"]


class RestFinished(BaseModel):
    """Published once per countdown that ends by expiring or being skipped."""

    reason: Literal["expired", "skipped"]
    total: int


class RestTimerSnapshot(BaseModel):
    state: TimerState
    remaining: int
    total: int


Listener = Callable[[RestFinished], None]


class RestTimer:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._listeners: List[Listener] = []
        self.state: TimerState = "idle"
        self.remaining = 0
        self.total = 0
        self._last_tick_at: float | None = None
        self._generation = 0

    @property
    def is_running(self) -> bool:
        return self.state == "running"

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register listener for RestFinished; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self, seconds: int) -> None:
        """Begin a countdown, discarding any countdown already running."""
        if seconds <= 0:
            raise ValueError(f"Rest period must be positive, got {seconds}")
        if self.is_running:
            logger.debug("Replacing running rest countdown (%s left)", self.remaining)
        self._generation += 1
        self.state = "running"
        self.total = seconds
        self.remaining = seconds
        self._last_tick_at = self._clock()

    def tick(self) -> None:
        """Account for one elapsed second."""
        if not self.is_running:
            return
        self.remaining -= 1
        if self._last_tick_at is None:
            self._last_tick_at = self._clock()
        self._last_tick_at += 1
        if self.remaining <= 0:
            self._finish("expired")

    def catch_up(self) -> int:
        """Apply a tick for every whole second elapsed since the last one.

        Returns the number of ticks applied.
        """
        if not self.is_running or self._last_tick_at is None:
            return 0
        elapsed = int(self._clock() - self._last_tick_at)
        generation = self._generation
        applied = 0
        # Stop if a listener started a fresh countdown
        while applied < elapsed and self.is_running and generation == self._generation:
            self.tick()
            applied += 1
        return applied

    def skip(self) -> None:
        """End the rest now, with the same event as natural expiry."""
        if not self.is_running:
            return
        self._finish("skipped")

    def close(self) -> None:
        """Dismiss the countdown without publishing anything."""
        if not self.is_running:
            return
        self.state = "idle"
        self.remaining = 0
        self._last_tick_at = None

    def snapshot(self) -> RestTimerSnapshot:
        return RestTimerSnapshot(
            state=self.state, remaining=self.remaining, total=self.total
        )

    def _finish(self, reason: Literal["expired", "skipped"]) -> None:
        self.state = "idle"
        self.remaining = 0
        self._last_tick_at = None
        event = RestFinished(reason=reason, total=self.total)
        # Copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(event)
