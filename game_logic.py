# Core SnakeSats game state and rules, independent from scheduling/UI code.
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
import logging
import random

try:
    from .events import (
        DO_COLLECTED,
        FIAT_HIT,
        GAME_OVER,
        LEVEL_UP,
        SAT_COLLECTED,
        TIP_ROTATED,
        EventBus,
    )
    from .progression import SpeedProgression
    from .storage import BestScoreStore, MemoryBestScoreStore
    from .tips import TipRotator
except ImportError:
    from events import (
        DO_COLLECTED,
        FIAT_HIT,
        GAME_OVER,
        LEVEL_UP,
        SAT_COLLECTED,
        TIP_ROTATED,
        EventBus,
    )
    from progression import SpeedProgression
    from storage import BestScoreStore, MemoryBestScoreStore
    from tips import TipRotator

logger = logging.getLogger(__name__)

# Bounds checked by SnakeConfig.validate().
MIN_GRID_SIZE = 8
MAX_GRID_SIZE = 60
MIN_CELL_SIZE = 12
MAX_CELL_SIZE = 48

MAX_HEALTH = 100
SAT_SCORE = 10
DO_SCORE = 20
LEVEL_SCORE_STEP = 100
LEVEL_UP_MIN_HEALTH = 50
SPAWN_ATTEMPTS = 50

Position = tuple[int, int]
Vector = tuple[int, int]

UP: Vector = (0, -1)
DOWN: Vector = (0, 1)
LEFT: Vector = (-1, 0)
RIGHT: Vector = (1, 0)
IDLE: Vector = (0, 0)

DIRECTIONS: dict[str, Vector] = {"up": UP, "down": DOWN, "left": LEFT, "right": RIGHT}
OPPOSITES: dict[Vector, Vector] = {UP: DOWN, DOWN: UP, LEFT: RIGHT, RIGHT: LEFT}

SAT = "sat"
FIAT = "fiat"
DO = "do"
COLLECTIBLE_KINDS = (SAT, FIAT, DO)


class InvalidConfiguration(ValueError):
    """Raised for an unknown difficulty or out-of-range board settings."""


@dataclass
class SnakeConfig:
    """Board settings fixed for the lifetime of an engine."""
    grid_width: int = 20
    grid_height: int = 20
    cell_size: int = 30
    max_health: int = MAX_HEALTH
    seed: int | None = None

    def validate(self) -> None:
        for label, value in (("Grid width", self.grid_width), ("Grid height", self.grid_height)):
            if not (MIN_GRID_SIZE <= value <= MAX_GRID_SIZE):
                raise InvalidConfiguration(
                    f"{label} must be between {MIN_GRID_SIZE} and {MAX_GRID_SIZE}."
                )
        if not (MIN_CELL_SIZE <= self.cell_size <= MAX_CELL_SIZE):
            raise InvalidConfiguration(
                f"Cell size must be between {MIN_CELL_SIZE} and {MAX_CELL_SIZE}."
            )
        if self.max_health < 1:
            raise InvalidConfiguration("Max health must be positive.")


@dataclass(frozen=True)
class DifficultySettings:
    initial_speed_ms: int
    speed_increment_ms: int
    health_gain_on_sat: int
    fiat_damage: int


class Difficulty(Enum):
    NORMAL = DifficultySettings(initial_speed_ms=300, speed_increment_ms=25, health_gain_on_sat=8, fiat_damage=25)
    LEGENDARY = DifficultySettings(initial_speed_ms=200, speed_increment_ms=30, health_gain_on_sat=5, fiat_damage=30)

    @property
    def settings(self) -> DifficultySettings:
        return self.value

    @classmethod
    def parse(cls, value: "Difficulty | str") -> "Difficulty":
        """Accept a member or its name (any case)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            member = cls.__members__.get(value.strip().upper())
            if member is not None:
                return member
        raise InvalidConfiguration(f"Unknown difficulty: {value!r}")


class GameOverReason(Enum):
    WALL_COLLISION = "wall_collision"
    SELF_COLLISION = "self_collision"
    HEALTH_DEPLETED = "health_depleted"


class TickOutcome(Enum):
    CONTINUING = "continuing"
    LEVELED_UP = "leveled_up"
    GAME_OVER = "game_over"


@dataclass
class SpawnTimer:
    """Random-interval spawner for one collectible kind."""
    kind: str
    cap: int
    min_interval_ms: int
    max_interval_ms: int
    interval_ms: float
    last_spawn_ms: int | None = None

    def due(self, now_ms: int) -> bool:
        return self.last_spawn_ms is None or now_ms - self.last_spawn_ms > self.interval_ms


def make_spawn_timers() -> dict[str, SpawnTimer]:
    return {
        SAT: SpawnTimer(SAT, cap=3, min_interval_ms=2000, max_interval_ms=6000, interval_ms=3000),
        FIAT: SpawnTimer(FIAT, cap=2, min_interval_ms=3000, max_interval_ms=8000, interval_ms=4000),
        DO: SpawnTimer(DO, cap=1, min_interval_ms=5000, max_interval_ms=12000, interval_ms=8000),
    }


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view handed to renderers after each tick."""
    grid_width: int
    grid_height: int
    snake: tuple[Position, ...]
    sats: tuple[Position, ...]
    fiats: tuple[Position, ...]
    dos: tuple[Position, ...]
    direction: Vector
    score: int
    best_score: int
    health: int
    max_health: int
    level: int
    speed_level: int
    current_speed_ms: int
    countdown_seconds: int | None
    difficulty: str
    running: bool
    paused: bool
    sats_collected: int
    good_practices: int
    fiat_hits: int
    elapsed_ms: int
    current_tip: str
    game_over_reason: GameOverReason | None

    def to_board(self):
        """numpy float32 board, see utils.encode_board_state."""
        try:
            from .utils import encode_board_state
        except ImportError:
            from utils import encode_board_state
        return encode_board_state(self)


@dataclass(frozen=True)
class TickResult:
    outcome: TickOutcome
    reason: GameOverReason | None
    events: tuple[str, ...]
    snapshot: GameSnapshot

    @property
    def game_over(self) -> bool:
        return self.outcome is TickOutcome.GAME_OVER


class SnakeGame:
    """Pure game state + rules (no timers, drawing or sound)."""
    def __init__(
        self,
        config: SnakeConfig | None = None,
        rng: random.Random | None = None,
        events: EventBus | None = None,
        best_scores: BestScoreStore | None = None,
    ) -> None:
        self.config = config if config is not None else SnakeConfig()
        self.config.validate()
        self.rng = rng if rng is not None else random.Random(self.config.seed)
        self.events = events if events is not None else EventBus()
        self.best_scores = best_scores if best_scores is not None else MemoryBestScoreStore()
        self.best_score = self.best_scores.load()
        self.difficulty = Difficulty.NORMAL
        self.tips = TipRotator()
        self.running = False
        self.paused = False
        self.game_over_reason: GameOverReason | None = None
        self._tick_events: list[str] = []
        self.reset()

    def reset(self) -> None:
        """Initialize a fresh board with a single centered segment and no collectibles."""
        settings = self.difficulty.settings
        self.snake: deque[Position] = deque()           # ordered body, head at index 0
        self.snake_set: set[Position] = set()           # O(1) body collision lookup
        self.collectibles: dict[str, set[Position]] = {kind: set() for kind in COLLECTIBLE_KINDS}
        self.spawn_timers = make_spawn_timers()
        self.progression = SpeedProgression(settings.initial_speed_ms, settings.speed_increment_ms)
        self.direction = IDLE
        self.pending_direction = IDLE                   # queued from input; applied next tick
        self.score = 0
        self.level = 1
        self.health = self.config.max_health
        self.sats_collected = 0
        self.good_practices = 0
        self.fiat_hits = 0
        self.elapsed_ms = 0
        self.tips.reset()
        self.spawn_snake()

    @property
    def sats(self) -> set[Position]:
        return self.collectibles[SAT]

    @property
    def fiats(self) -> set[Position]:
        return self.collectibles[FIAT]

    @property
    def dos(self) -> set[Position]:
        return self.collectibles[DO]

    def spawn_snake(self, positions: list[Position] | None = None) -> None:
        """Place the snake; defaults to one segment at the board center."""
        if positions is None:
            positions = [(self.config.grid_width // 2, self.config.grid_height // 2)]
        self.snake = deque(positions)
        self.snake_set = set(positions)

    def start(self, difficulty: Difficulty | str = Difficulty.NORMAL) -> GameSnapshot:
        """Begin a new run. Raises InvalidConfiguration before touching any state."""
        difficulty = Difficulty.parse(difficulty)
        if self.running:
            self._record_best_score()
        self.difficulty = difficulty
        self.reset()
        self.direction = RIGHT
        self.pending_direction = RIGHT
        self.running = True
        self.paused = False
        self.game_over_reason = None
        self.best_score = max(self.best_score, self.best_scores.load())
        logger.info(
            "run started: difficulty=%s grid=%dx%d",
            self.difficulty.name.lower(),
            self.config.grid_width,
            self.config.grid_height,
        )
        return self.snapshot()

    def restart(self) -> GameSnapshot:
        """Stop the current run (keeping its score if it is a new best) and start again."""
        if self.running:
            self._record_best_score()
        self.running = False
        self.paused = False
        return self.start(self.difficulty)

    def toggle_pause(self) -> None:
        if not self.running:
            return
        self.paused = not self.paused

    def queue_direction(self, requested: Vector | str) -> None:
        """Queue an input direction; reject instant 180-degree turns."""
        if not self.running or self.paused:
            return
        if isinstance(requested, str):
            requested = DIRECTIONS.get(requested.strip().lower(), IDLE)
        if not isinstance(requested, (tuple, list)):
            return
        requested = tuple(requested)
        if requested not in OPPOSITES:
            return
        if OPPOSITES[requested] == self.direction:
            return
        self.pending_direction = requested

    def _in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.config.grid_width and 0 <= y < self.config.grid_height

    def tick(self, elapsed_ms: int | None = None) -> TickResult:
        """Advance one step.

        `elapsed_ms` is the game time this step represents and defaults to the
        current tick period. A paused engine does nothing; an engine that is not
        running reports GAME_OVER with the reason of the last run (None if it
        never ran).
        """
        if not self.running:
            return self._result(TickOutcome.GAME_OVER)
        if self.paused:
            return self._result(TickOutcome.CONTINUING)

        self._tick_events = []
        step_ms = self.progression.current_speed_ms if elapsed_ms is None else int(elapsed_ms)
        self.elapsed_ms += step_ms

        # Apply the latest valid input once per tick.
        self.direction = self.pending_direction
        head_x, head_y = self.snake[0]
        new_head = (head_x + self.direction[0], head_y + self.direction[1])

        if not self._in_bounds(*new_head):
            return self._game_over(GameOverReason.WALL_COLLISION)
        if new_head in self.snake_set:
            return self._game_over(GameOverReason.SELF_COLLISION)

        self.snake.appendleft(new_head)
        self.snake_set.add(new_head)

        if not self._resolve_collectible(new_head):
            old_tail = self.snake.pop()
            self.snake_set.discard(old_tail)

        self._run_spawn_timers()

        leveled_up = False
        if self.score >= self.level * LEVEL_SCORE_STEP and self.health >= LEVEL_UP_MIN_HEALTH:
            self.level += 1
            leveled_up = True
            self._emit(LEVEL_UP, level=self.level)

        if self.health <= 0:
            return self._game_over(GameOverReason.HEALTH_DEPLETED)

        for transition in self.progression.advance(self.elapsed_ms):
            self._emit(transition, speed_level=self.progression.speed_level)

        tip = self.tips.advance(self.elapsed_ms)
        if tip is not None:
            self._emit(TIP_ROTATED, tip=tip)

        return self._result(TickOutcome.LEVELED_UP if leveled_up else TickOutcome.CONTINUING)

    def _resolve_collectible(self, head: Position) -> bool:
        """Apply the effect of whatever the head landed on. Returns True on a match."""
        settings = self.difficulty.settings
        if head in self.sats:
            self.sats.discard(head)
            self.score += SAT_SCORE
            self.health = min(self.config.max_health, self.health + settings.health_gain_on_sat)
            self.sats_collected += 1
            self.progression.record_sat()
            logger.debug("sat collected at %s, total %d", head, self.sats_collected)
            self.spawn_collectible(SAT)
            self._emit(SAT_COLLECTED, position=head, score=self.score)
            return True
        if head in self.fiats:
            self.fiats.discard(head)
            self.health -= settings.fiat_damage
            self.fiat_hits += 1
            self.spawn_collectible(FIAT)
            self._emit(FIAT_HIT, position=head, health=self.health)
            return True
        if head in self.dos:
            self.dos.discard(head)
            self.score += DO_SCORE
            self.good_practices += 1
            self.spawn_collectible(DO)
            self._emit(DO_COLLECTED, position=head, score=self.score)
            return True
        return False

    def _run_spawn_timers(self) -> None:
        for timer in self.spawn_timers.values():
            if timer.due(self.elapsed_ms) and len(self.collectibles[timer.kind]) < timer.cap:
                self.spawn_collectible(timer.kind)
                timer.last_spawn_ms = self.elapsed_ms
                timer.interval_ms = self.rng.uniform(timer.min_interval_ms, timer.max_interval_ms)

    def _is_occupied(self, pos: Position) -> bool:
        if pos in self.snake_set:
            return True
        return any(pos in cells for cells in self.collectibles.values())

    def spawn_collectible(self, kind: str) -> Position | None:
        """Drop one collectible on a random free cell; give up after SPAWN_ATTEMPTS misses."""
        for _ in range(SPAWN_ATTEMPTS):
            pos = (
                self.rng.randrange(self.config.grid_width),
                self.rng.randrange(self.config.grid_height),
            )
            if not self._is_occupied(pos):
                self.collectibles[kind].add(pos)
                return pos
        logger.debug("no free cell for %s after %d attempts", kind, SPAWN_ATTEMPTS)
        return None

    def _record_best_score(self) -> None:
        if self.score > self.best_score:
            self.best_score = self.score
            self.best_scores.save(self.score)

    def _game_over(self, reason: GameOverReason) -> TickResult:
        self.running = False
        self.paused = False
        self.game_over_reason = reason
        self._record_best_score()
        logger.info(
            "game over (%s): score=%d level=%d speed_level=%d",
            reason.value,
            self.score,
            self.level,
            self.progression.speed_level,
        )
        self._emit(GAME_OVER, reason=reason, score=self.score, best_score=self.best_score)
        return self._result(TickOutcome.GAME_OVER)

    def _emit(self, name: str, **payload) -> None:
        self._tick_events.append(name)
        self.events.emit(name, **payload)

    def _result(self, outcome: TickOutcome) -> TickResult:
        events = tuple(self._tick_events)
        self._tick_events = []
        reason = self.game_over_reason if outcome is TickOutcome.GAME_OVER else None
        return TickResult(outcome=outcome, reason=reason, events=events, snapshot=self.snapshot())

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            grid_width=self.config.grid_width,
            grid_height=self.config.grid_height,
            snake=tuple(self.snake),
            sats=tuple(sorted(self.sats)),
            fiats=tuple(sorted(self.fiats)),
            dos=tuple(sorted(self.dos)),
            direction=self.direction,
            score=self.score,
            best_score=self.best_score,
            health=self.health,
            max_health=self.config.max_health,
            level=self.level,
            speed_level=self.progression.speed_level,
            current_speed_ms=self.progression.current_speed_ms,
            countdown_seconds=self.progression.countdown_seconds,
            difficulty=self.difficulty.name.lower(),
            running=self.running,
            paused=self.paused,
            sats_collected=self.sats_collected,
            good_practices=self.good_practices,
            fiat_hits=self.fiat_hits,
            elapsed_ms=self.elapsed_ms,
            current_tip=self.tips.current,
            game_over_reason=self.game_over_reason,
        )
