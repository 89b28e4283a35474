import json
import logging

import pytest

from events import EVENT_NAMES, GAME_OVER, TIP_ROTATED, EventBus
from game_logic import SnakeConfig, SnakeGame
from storage import BEST_SCORE_KEY, JsonBestScoreStore, MemoryBestScoreStore
from tips import BITCOIN_TIPS, WELCOME_TIP, TipRotator


class TestEventBus:
    def test_handlers_called_in_order_with_payload(self):
        bus = EventBus()
        calls = []
        bus.subscribe(GAME_OVER, lambda **kw: calls.append(("first", kw)))
        bus.subscribe(GAME_OVER, lambda **kw: calls.append(("second", kw)))
        bus.emit(GAME_OVER, score=30)
        assert calls == [("first", {"score": 30}), ("second", {"score": 30})]

    def test_unknown_event_rejected(self):
        with pytest.raises(ValueError):
            EventBus().subscribe("coin-flipped", lambda **kw: None)

    def test_unsubscribe(self):
        bus = EventBus()
        calls = []
        handler = lambda **kw: calls.append(kw)  # noqa: E731
        bus.subscribe(TIP_ROTATED, handler)
        bus.unsubscribe(TIP_ROTATED, handler)
        bus.unsubscribe(TIP_ROTATED, handler)
        bus.emit(TIP_ROTATED, tip="x")
        assert calls == []

    def test_handler_errors_propagate(self):
        bus = EventBus()

        def boom(**kw):
            raise RuntimeError("speaker unplugged")

        bus.subscribe(GAME_OVER, boom)
        with pytest.raises(RuntimeError):
            bus.emit(GAME_OVER)

    def test_emit_without_subscribers(self):
        for name in EVENT_NAMES:
            EventBus().emit(name)


class TestTipRotator:
    def test_first_tip_after_delay_then_interval(self):
        rotator = TipRotator()
        assert rotator.current == WELCOME_TIP
        assert rotator.advance(2999) is None
        assert rotator.advance(3000) == BITCOIN_TIPS[0]
        assert rotator.advance(10_999) is None
        assert rotator.advance(11_000) == BITCOIN_TIPS[1]
        assert rotator.current == BITCOIN_TIPS[1]

    def test_cycles_and_resets(self):
        rotator = TipRotator(tips=["a", "b"], first_delay_ms=0, interval_ms=10)
        seen = [rotator.advance(t) for t in (0, 10, 20)]
        assert seen == ["a", "b", "a"]
        rotator.reset()
        assert rotator.current == WELCOME_TIP
        assert rotator.advance(0) == "a"

    def test_empty_tips_rejected(self):
        with pytest.raises(ValueError):
            TipRotator(tips=[])

    def test_engine_rotates_tip_on_game_time(self):
        game = SnakeGame(SnakeConfig(seed=4))
        seen = []
        game.events.subscribe(TIP_ROTATED, lambda tip: seen.append(tip))
        game.start()
        game.tick(elapsed_ms=3000)
        assert seen == [BITCOIN_TIPS[0]]
        assert game.snapshot().current_tip == BITCOIN_TIPS[0]


class TestBestScoreStores:
    def test_memory_store(self):
        store = MemoryBestScoreStore()
        assert store.load() == 0
        store.save(120)
        assert store.load() == 120

    def test_json_store_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "best.json"
        store = JsonBestScoreStore(str(path))
        assert store.load() == 0
        store.save(250)
        assert json.loads(path.read_text()) == {BEST_SCORE_KEY: 250}
        assert JsonBestScoreStore(str(path)).load() == 250

    def test_json_store_keeps_other_keys(self, tmp_path):
        path = tmp_path / "best.json"
        path.write_text(json.dumps({"other": 1}))
        JsonBestScoreStore(str(path)).save(9)
        assert json.loads(path.read_text()) == {"other": 1, BEST_SCORE_KEY: 9}

    def test_corrupt_file_reads_as_zero(self, tmp_path, caplog):
        path = tmp_path / "best.json"
        path.write_text("{not json")
        with caplog.at_level(logging.WARNING, logger="storage"):
            assert JsonBestScoreStore(str(path)).load() == 0
        assert "unreadable" in caplog.text

    def test_engine_reads_stored_best_at_start(self, tmp_path):
        store = JsonBestScoreStore(str(tmp_path / "best.json"))
        store.save(70)
        game = SnakeGame(SnakeConfig(seed=1), best_scores=store)
        assert game.start().best_score == 70


class TestJsonStoreRobustness:
    @pytest.mark.parametrize("raw", ["Infinity", "-Infinity", "NaN", '"lots"', "[1]"])
    def test_bad_values_read_as_zero(self, tmp_path, caplog, raw):
        path = tmp_path / "best.json"
        path.write_text('{"%s": %s}' % (BEST_SCORE_KEY, raw))
        with caplog.at_level(logging.WARNING, logger="storage"):
            assert JsonBestScoreStore(str(path)).load() == 0
        assert "bad best score" in caplog.text

    def test_engine_constructs_with_infinite_score_file(self, tmp_path):
        path = tmp_path / "best.json"
        path.write_text('{"%s": Infinity}' % BEST_SCORE_KEY)
        game = SnakeGame(SnakeConfig(seed=1), best_scores=JsonBestScoreStore(str(path)))
        assert game.start().best_score == 0

    def test_failed_write_leaves_previous_file(self, tmp_path, monkeypatch):
        path = tmp_path / "best.json"
        store = JsonBestScoreStore(str(path))
        store.save(300)

        def broken_dump(data, fh):
            fh.write('{"snakeSats')
            raise OSError("disk full")

        monkeypatch.setattr(json, "dump", broken_dump)
        with pytest.raises(OSError):
            store.save(400)
        monkeypatch.undo()

        assert store.load() == 300
        assert [p.name for p in tmp_path.iterdir()] == ["best.json"]
