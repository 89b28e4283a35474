# Speed-level progression: a countdown-gated state machine advanced once per tick.
from __future__ import annotations

from enum import Enum
import logging
import math

try:
    from .events import COUNTDOWN_STARTED, SPEED_INCREASED
except ImportError:
    from events import COUNTDOWN_STARTED, SPEED_INCREASED

logger = logging.getLogger(__name__)

# 21 levels, one per million coins in the supply cap.
MAX_SPEED_LEVEL = 21
MIN_TICK_MS = 30
SATS_PER_SPEED_LEVEL = 2
SPEED_CHANGE_INTERVAL_MS = 10_000
COUNTDOWN_MS = 5000


class CountdownState(Enum):
    IDLE = "idle"
    COUNTING_DOWN = "counting_down"


def speed_for_level(initial_speed_ms: int, speed_increment_ms: int, speed_level: int) -> int:
    """Tick period for a speed level, floored at MIN_TICK_MS."""
    return max(MIN_TICK_MS, initial_speed_ms - (speed_level - 1) * speed_increment_ms)


class SpeedProgression:
    """Tracks speed level and the cosmetic countdown that precedes each increase."""

    def __init__(self, initial_speed_ms: int, speed_increment_ms: int) -> None:
        self.initial_speed_ms = initial_speed_ms
        self.speed_increment_ms = speed_increment_ms
        self.reset()

    def reset(self) -> None:
        self.speed_level = 1
        self.current_speed_ms = self.initial_speed_ms
        self.state = CountdownState.IDLE
        self.countdown_started_ms = 0
        self.countdown_remaining_ms: int | None = None
        self.last_change_ms = 0
        self.sats_since_change = 0

    @property
    def capped(self) -> bool:
        return self.speed_level >= MAX_SPEED_LEVEL

    @property
    def countdown_seconds(self) -> int | None:
        """Whole seconds left on the countdown display, or None when idle."""
        if self.countdown_remaining_ms is None:
            return None
        return max(0, math.ceil(self.countdown_remaining_ms / 1000))

    def record_sat(self) -> None:
        self.sats_since_change += 1

    def _should_start_countdown(self, now_ms: int) -> bool:
        if self.capped:
            return False
        if self.sats_since_change >= SATS_PER_SPEED_LEVEL * self.speed_level:
            return True
        return now_ms - self.last_change_ms >= SPEED_CHANGE_INTERVAL_MS

    def advance(self, now_ms: int) -> list[str]:
        """Step the state machine to `now_ms`; returns the transitions taken."""
        transitions: list[str] = []
        if self.state is CountdownState.IDLE:
            if self._should_start_countdown(now_ms):
                self.state = CountdownState.COUNTING_DOWN
                self.countdown_started_ms = now_ms
                self.countdown_remaining_ms = COUNTDOWN_MS
                transitions.append(COUNTDOWN_STARTED)
            return transitions

        elapsed = now_ms - self.countdown_started_ms
        self.countdown_remaining_ms = max(0, COUNTDOWN_MS - elapsed)
        if elapsed >= COUNTDOWN_MS:
            self._increase_speed(now_ms)
            transitions.append(SPEED_INCREASED)
        return transitions

    def _increase_speed(self, now_ms: int) -> None:
        self.speed_level = min(MAX_SPEED_LEVEL, self.speed_level + 1)
        self.current_speed_ms = speed_for_level(
            self.initial_speed_ms, self.speed_increment_ms, self.speed_level
        )
        self.state = CountdownState.IDLE
        self.countdown_remaining_ms = None
        self.last_change_ms = now_ms
        self.sats_since_change = 0
        logger.info(
            "speed increased to level %d/%d (%dms per tick)",
            self.speed_level,
            MAX_SPEED_LEVEL,
            self.current_speed_ms,
        )
