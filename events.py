# Named game events that audio/UI collaborators can subscribe to.
from __future__ import annotations

from collections import defaultdict
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

SAT_COLLECTED = "sat-collected"
FIAT_HIT = "fiat-hit"
DO_COLLECTED = "do-collected"
LEVEL_UP = "level-up"
COUNTDOWN_STARTED = "countdown-started"
SPEED_INCREASED = "speed-increased"
TIP_ROTATED = "tip-rotated"
GAME_OVER = "game-over"

EVENT_NAMES = (
    SAT_COLLECTED,
    FIAT_HIT,
    DO_COLLECTED,
    LEVEL_UP,
    COUNTDOWN_STARTED,
    SPEED_INCREASED,
    TIP_ROTATED,
    GAME_OVER,
)

Handler = Callable[..., Any]


class EventBus:
    """Synchronous publish/subscribe hub. Handlers run in subscription order."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, name: str, handler: Handler) -> None:
        if name not in EVENT_NAMES:
            raise ValueError(f"Unknown event name: {name!r}")
        self._handlers[name].append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._handlers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, name: str, **payload: Any) -> None:
        """Call every handler for `name`; handler errors reach the caller."""
        logger.debug("event %s %s", name, payload)
        for handler in list(self._handlers.get(name, ())):
            handler(**payload)
