import pytest

from game_logic import InvalidConfiguration
from simulate import main, parse_args, simulate, summarize


def test_simulate_runs_each_episode():
    results = simulate(3, difficulty="legendary", seed=10, max_ticks=150)
    assert len(results) == 3
    assert all(r.ticks <= 150 for r in results)


def test_simulate_rejects_bad_input():
    with pytest.raises(ValueError):
        simulate(0)
    with pytest.raises(InvalidConfiguration):
        simulate(1, difficulty="easy")


def test_summarize_statistics():
    results = simulate(4, seed=1, max_ticks=200)
    summary = summarize(results)
    scores = sorted(r.score for r in results)
    assert summary["episodes"] == 4
    assert summary["max_score"] == scores[-1]
    assert summary["min_score"] == scores[0]
    assert summary["min_score"] <= summary["median_score"] <= summary["max_score"]


def test_parse_args_defaults():
    args = parse_args([])
    assert args.episodes == 50
    assert args.difficulty == "normal"
    assert args.plot is False


def test_main_prints_summary(capsys):
    assert main(["--episodes", "2", "--max-ticks", "60", "--difficulty", "LEGENDARY"]) == 0
    out = capsys.readouterr().out
    assert "SIMULATION RESULTS" in out
    assert "mean_score" in out


def test_main_reports_invalid_grid(capsys):
    assert main(["--episodes", "1", "--grid-size", "4"]) == 2
    assert "Grid width" in capsys.readouterr().err
