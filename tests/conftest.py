import pytest

from game_logic import SnakeConfig, SnakeGame
from storage import MemoryBestScoreStore


@pytest.fixture
def store():
    return MemoryBestScoreStore()


@pytest.fixture
def game(store):
    return SnakeGame(SnakeConfig(seed=1234), best_scores=store)


@pytest.fixture
def freeze_spawns():
    """Stop the random spawn timers so tests control every collectible."""
    def _freeze(game):
        for timer in game.spawn_timers.values():
            timer.last_spawn_ms = game.elapsed_ms
            timer.interval_ms = 10**9
    return _freeze


@pytest.fixture
def started_game(game, freeze_spawns):
    game.start("normal")
    freeze_spawns(game)
    return game


@pytest.fixture
def place_snake():
    def _place(game, positions, direction):
        game.spawn_snake(positions)
        game.direction = direction
        game.pending_direction = direction
    return _place
