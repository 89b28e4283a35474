# Fixed-delay scheduler that drives SnakeGame through a Tk-style timer root.
from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

try:
    from .game_logic import Difficulty, GameSnapshot, SnakeGame, TickResult
except ImportError:
    from game_logic import Difficulty, GameSnapshot, SnakeGame, TickResult

logger = logging.getLogger(__name__)


class TimerRoot(Protocol):
    """The slice of tkinter.Tk the loop needs."""

    def after(self, ms: int, func: Callable[[], Any]) -> Any: ...

    def after_cancel(self, id: Any) -> None: ...


class GameLoop:
    """Owns the single pending tick callback and re-reads the tick period before each reschedule."""

    def __init__(
        self,
        root: TimerRoot,
        game: SnakeGame,
        on_frame: Callable[[TickResult], None] | None = None,
    ) -> None:
        self.root = root
        self.game = game
        self.on_frame = on_frame
        self.after_id: Any | None = None  # timer id for the next tick

    @property
    def scheduled(self) -> bool:
        return self.after_id is not None

    def _cancel_loop(self) -> None:
        """Cancel scheduled tick callback if one exists."""
        if self.after_id is not None:
            self.root.after_cancel(self.after_id)
            self.after_id = None

    def _schedule(self, delay_ms: int) -> None:
        self._cancel_loop()
        self.after_id = self.root.after(delay_ms, self.tick)

    def start(self, difficulty: Difficulty | str = Difficulty.NORMAL) -> GameSnapshot:
        """Start a fresh run and begin ticking after one period."""
        self._cancel_loop()
        snapshot = self.game.start(difficulty)
        self._schedule(snapshot.current_speed_ms)
        return snapshot

    def restart(self) -> GameSnapshot:
        """Cancel any pending tick and begin a new chain."""
        self._cancel_loop()
        snapshot = self.game.restart()
        self._schedule(snapshot.current_speed_ms)
        return snapshot

    def toggle_pause(self) -> None:
        """Pause/resume without losing current board state."""
        if not self.game.running:
            return
        self.game.toggle_pause()
        if self.game.paused:
            self._cancel_loop()
            logger.debug("paused")
        else:
            self._schedule(0)
            logger.debug("resumed")

    def stop(self) -> None:
        self._cancel_loop()

    def tick(self) -> TickResult | None:
        """Single frame of the game loop; reschedules itself while running."""
        self.after_id = None
        if not self.game.running or self.game.paused:
            return None

        result = self.game.tick()
        if self.on_frame is not None:
            self.on_frame(result)

        if self.game.running and not self.game.paused:
            self._schedule(self.game.progression.current_speed_ms)
        return result
