# Headless batch runner: plays seeded autopilot games and summarises the results.
from __future__ import annotations

import argparse
import logging
import os
import sys

# Keep matplotlib cache local for environments without writable home config.
LOCAL_MPLCONFIG = os.path.join(os.path.dirname(os.path.abspath(__file__)), ".mplconfig")
os.makedirs(LOCAL_MPLCONFIG, exist_ok=True)
os.environ.setdefault("MPLCONFIGDIR", LOCAL_MPLCONFIG)

import matplotlib.pyplot as plt
import numpy as np

try:
    from .game_logic import MAX_GRID_SIZE, MIN_GRID_SIZE, Difficulty
    from .utils import EpisodeResult, chunked_mean, make_game, run_episode
except ImportError:
    from game_logic import MAX_GRID_SIZE, MIN_GRID_SIZE, Difficulty
    from utils import EpisodeResult, chunked_mean, make_game, run_episode

logger = logging.getLogger(__name__)


def simulate(
    episodes: int,
    difficulty: Difficulty | str = Difficulty.NORMAL,
    seed: int = 0,
    grid_size: int = 20,
    max_ticks: int = 2000,
) -> list[EpisodeResult]:
    """Run `episodes` games; episode i is seeded with seed + i."""
    if episodes <= 0:
        raise ValueError("episodes must be > 0")
    difficulty = Difficulty.parse(difficulty)

    results: list[EpisodeResult] = []
    for episode in range(episodes):
        game = make_game(seed=seed + episode, grid_size=grid_size)
        result = run_episode(game, difficulty, max_ticks=max_ticks)
        logger.debug("episode %d: %s", episode + 1, result)
        results.append(result)
    return results


def summarize(results: list[EpisodeResult]) -> dict[str, float]:
    scores = np.asarray([r.score for r in results], dtype=np.float32)
    speed_levels = np.asarray([r.speed_level for r in results], dtype=np.float32)
    return {
        "episodes": float(len(results)),
        "mean_score": float(scores.mean()),
        "median_score": float(np.median(scores)),
        "max_score": float(scores.max()),
        "min_score": float(scores.min()),
        "p25_score": float(np.percentile(scores, 25)),
        "p75_score": float(np.percentile(scores, 75)),
        "mean_speed_level": float(speed_levels.mean()),
        "mean_level": float(np.mean([r.level for r in results])),
    }


def _print_summary(summary: dict[str, float], results: list[EpisodeResult]) -> None:
    print("=" * 48)
    print("SIMULATION RESULTS")
    print("=" * 48)
    for name, value in summary.items():
        print(f"{name:<20} {value:>15.2f}")
    print("-" * 48)
    reasons: dict[str, int] = {}
    for r in results:
        label = r.reason.value if r.reason is not None else "tick_limit"
        reasons[label] = reasons.get(label, 0) + 1
    for label, count in sorted(reasons.items()):
        print(f"{label:<20} {count:>15d}")
    print("=" * 48)


def plot_scores(results: list[EpisodeResult], chunk_size: int = 10) -> None:
    scores = [float(r.score) for r in results]
    fig, (ax_trend, ax_hist) = plt.subplots(1, 2, figsize=(12, 4.5))

    ax_trend.set_title(f"Average Score per {chunk_size} Episodes")
    ax_trend.set_xlabel("Episode")
    ax_trend.set_ylabel("Score")
    ax_trend.grid(alpha=0.25)
    x_end, means = chunked_mean(scores, chunk_size=chunk_size)
    if x_end.size > 0:
        ax_trend.plot(x_end, means, color="#f7931a", linewidth=2.2, marker="o", markersize=3)

    ax_hist.set_title("Score Distribution")
    ax_hist.set_xlabel("Score")
    ax_hist.set_ylabel("Count")
    ax_hist.grid(alpha=0.2)
    ax_hist.hist(scores, bins=20, color="#44b5a4", alpha=0.85, edgecolor="#17323a")
    mean_all = float(np.mean(scores))
    ax_hist.axvline(mean_all, color="#1f77b4", linestyle="--", linewidth=1.6, label=f"Mean: {mean_all:.2f}")
    ax_hist.legend(loc="upper right")

    fig.tight_layout()
    plt.show()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run headless SnakeSats autopilot games")
    parser.add_argument("--episodes", type=int, default=50, help="Number of games to play")
    parser.add_argument(
        "--difficulty",
        type=str.lower,
        default="normal",
        choices=[d.name.lower() for d in Difficulty],
    )
    parser.add_argument("--seed", type=int, default=0, help="Seed of the first episode")
    parser.add_argument(
        "--grid-size",
        type=int,
        default=20,
        help=f"Cells per side ({MIN_GRID_SIZE}-{MAX_GRID_SIZE})",
    )
    parser.add_argument("--max-ticks", type=int, default=2000, help="Tick limit per game")
    parser.add_argument("--plot", action="store_true", help="Show a matplotlib score chart")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        results = simulate(
            args.episodes,
            difficulty=args.difficulty,
            seed=args.seed,
            grid_size=args.grid_size,
            max_ticks=args.max_ticks,
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    _print_summary(summarize(results), results)
    if args.plot:
        plot_scores(results)
    return 0


if __name__ == "__main__":
    sys.exit(main())
