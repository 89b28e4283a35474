# Best-score persistence: the only state that survives across runs.
from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Protocol

logger = logging.getLogger(__name__)

BEST_SCORE_KEY = "snakeSatsBestScore"

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_SCORES_PATH = os.path.join(BASE_DIR, "scores", "best_score.json")


class BestScoreStore(Protocol):
    def load(self) -> int: ...

    def save(self, score: int) -> None: ...


class MemoryBestScoreStore:
    """Keeps the best score for the lifetime of the process."""

    def __init__(self, score: int = 0) -> None:
        self.score = score

    def load(self) -> int:
        return self.score

    def save(self, score: int) -> None:
        self.score = int(score)


class JsonBestScoreStore:
    """Best score kept in a small JSON file keyed by BEST_SCORE_KEY."""

    def __init__(self, path: str = DEFAULT_SCORES_PATH, key: str = BEST_SCORE_KEY) -> None:
        self.path = path
        self.key = key

    def _read(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable best-score file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> int:
        value = self._read().get(self.key, 0)
        try:
            return max(0, int(value))
        except (TypeError, ValueError, OverflowError):
            logger.warning("Ignoring bad best score %r in %s", value, self.path)
            return 0

    def save(self, score: int) -> None:
        """Replace the file atomically through a temp file in the same directory."""
        data = self._read()
        data[self.key] = int(score)
        parent = os.path.dirname(self.path) or "."
        os.makedirs(parent, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=parent, prefix=".best_score.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
