# Headless helpers: board encoding, a greedy autopilot, and episode simulation.
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np

try:
    from .game_logic import (
        DIRECTIONS,
        OPPOSITES,
        Difficulty,
        GameOverReason,
        GameSnapshot,
        Position,
        SnakeConfig,
        SnakeGame,
        TickResult,
        Vector,
    )
except ImportError:
    from game_logic import (
        DIRECTIONS,
        OPPOSITES,
        Difficulty,
        GameOverReason,
        GameSnapshot,
        Position,
        SnakeConfig,
        SnakeGame,
        TickResult,
        Vector,
    )

EMPTY_CELL = 0.0
SAT_CELL = 0.5
DO_CELL = 0.75
FIAT_CELL = -1.0
BODY_CELL = -0.5
HEAD_CELL = 1.0


def encode_board_state(snapshot: GameSnapshot) -> np.ndarray:
    """
    Board encoding indexed [row, column]:
    - 0.0: empty
    - 0.5: sat
    - 0.75: do
    - -1.0: fiat
    - -0.5: snake body
    - 1.0: snake head
    """
    board = np.full((snapshot.grid_height, snapshot.grid_width), EMPTY_CELL, dtype=np.float32)

    for x, y in snapshot.sats:
        board[y, x] = SAT_CELL
    for x, y in snapshot.dos:
        board[y, x] = DO_CELL
    for x, y in snapshot.fiats:
        board[y, x] = FIAT_CELL

    for idx, (x, y) in enumerate(snapshot.snake):
        board[y, x] = HEAD_CELL if idx == 0 else BODY_CELL

    return board


def _is_collision(game: SnakeGame, x: int, y: int) -> bool:
    if x < 0 or x >= game.config.grid_width or y < 0 or y >= game.config.grid_height:
        return True
    return (x, y) in game.snake_set


def nearest_target(game: SnakeGame) -> Position | None:
    """Closest sat or do by Manhattan distance from the head."""
    targets = game.sats | game.dos
    if not targets:
        return None
    hx, hy = game.snake[0]
    return min(targets, key=lambda t: (abs(t[0] - hx) + abs(t[1] - hy), t))


def autopilot_direction(game: SnakeGame) -> Vector:
    """Greedy pick: safe moves first, fiat-free moves preferred, then closest to target."""
    hx, hy = game.snake[0]
    target = nearest_target(game)
    candidates: list[tuple[int, int, Vector]] = []

    for direction in DIRECTIONS.values():
        if OPPOSITES[direction] == game.direction:
            continue
        nx, ny = hx + direction[0], hy + direction[1]
        if _is_collision(game, nx, ny):
            continue
        hits_fiat = int((nx, ny) in game.fiats)
        distance = 0 if target is None else abs(target[0] - nx) + abs(target[1] - ny)
        candidates.append((hits_fiat, distance, direction))

    if not candidates:
        # Boxed in; keep heading and accept the crash.
        return game.direction
    candidates.sort(key=lambda c: (c[0], c[1]))
    return candidates[0][2]


@dataclass
class EpisodeResult:
    score: int
    level: int
    speed_level: int
    ticks: int
    sats_collected: int
    fiat_hits: int
    reason: GameOverReason | None


def make_game(seed: int | None = None, grid_size: int = 20) -> SnakeGame:
    return SnakeGame(SnakeConfig(grid_width=grid_size, grid_height=grid_size, seed=seed))


def run_episode(
    game: SnakeGame,
    difficulty: Difficulty | str = Difficulty.NORMAL,
    max_ticks: int = 2000,
    render_step: Callable[[TickResult, int], None] | None = None,
) -> EpisodeResult:
    """Play one run with the autopilot until game over or `max_ticks`."""
    game.start(difficulty)
    ticks = 0
    for step in range(max_ticks):
        game.queue_direction(autopilot_direction(game))
        result = game.tick()
        ticks = step + 1
        if render_step is not None:
            render_step(result, step)
        if result.game_over:
            break

    return EpisodeResult(
        score=game.score,
        level=game.level,
        speed_level=game.progression.speed_level,
        ticks=ticks,
        sats_collected=game.sats_collected,
        fiat_hits=game.fiat_hits,
        reason=game.game_over_reason,
    )


def chunked_mean(values: list[float], chunk_size: int) -> tuple[np.ndarray, np.ndarray]:
    """Compute mean value per fixed-size chunk."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")

    arr = np.asarray(values, dtype=np.float32)
    if arr.size == 0:
        empty = np.array([], dtype=np.float32)
        return empty, empty

    x_end: list[float] = []
    means: list[float] = []
    for start in range(0, arr.size, chunk_size):
        chunk = arr[start : start + chunk_size]
        x_end.append(float(start + chunk.size))
        means.append(float(np.mean(chunk)))

    return np.asarray(x_end, dtype=np.float32), np.asarray(means, dtype=np.float32)
