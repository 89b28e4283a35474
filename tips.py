# Rotating Bitcoin tips shown alongside the board, timed by simulated game time.
from __future__ import annotations

import logging
from typing import Sequence

logger = logging.getLogger(__name__)

WELCOME_TIP = "Welcome to SnakeSats! Learn Bitcoin while you play!"

BITCOIN_TIPS = (
    "Stack sats regularly - consistency beats timing!",
    "Self-custody is key - not your keys, not your coins!",
    "DCA (Dollar Cost Average) reduces emotional trading",
    "Cold storage keeps your Bitcoin safe from hackers",
    "Avoid FOMO - stick to your investment plan",
    "Bitcoin is scarce - only 21 million will ever exist",
    "Lightning Network enables fast, cheap transactions",
    "Bitcoin is global money for the internet age",
    "Long-term thinking beats short-term speculation",
    "Hardware wallets provide maximum security",
    "Market cycles are normal - stay the course",
    "Bitcoin is the future of money",
)

FIRST_TIP_DELAY_MS = 3000
TIP_INTERVAL_MS = 8000


class TipRotator:
    """Cycles through tips: first after a short delay, then at a fixed interval."""

    def __init__(
        self,
        tips: Sequence[str] = BITCOIN_TIPS,
        first_delay_ms: int = FIRST_TIP_DELAY_MS,
        interval_ms: int = TIP_INTERVAL_MS,
    ) -> None:
        if not tips:
            raise ValueError("tips cannot be empty.")
        self.tips = tuple(tips)
        self.first_delay_ms = first_delay_ms
        self.interval_ms = interval_ms
        self.reset()

    def reset(self) -> None:
        self.current = WELCOME_TIP
        self.index = 0
        self.next_due_ms = self.first_delay_ms

    def advance(self, now_ms: int) -> str | None:
        """Return the new tip if one is due at `now_ms`, else None."""
        if now_ms < self.next_due_ms:
            return None
        tip = self.tips[self.index]
        self.index = (self.index + 1) % len(self.tips)
        self.current = tip
        self.next_due_ms = now_ms + self.interval_ms
        logger.debug("tip rotated at %dms: %s", now_ms, tip)
        return tip
