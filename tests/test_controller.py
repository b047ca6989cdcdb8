"""Run controller — level sequencing, movement, outcomes and policies."""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest
import requests

from power_trowel.backend.engine.gameplay import LevelOutcome, Phase, RunController
from power_trowel.backend.engine.simulation import SlabStats
from power_trowel.backend.models.highscore import BestScoreStore, LeaderboardEntry
from power_trowel.backend.models.leaderboard import LocalLeaderboard, RemoteLeaderboard
from power_trowel.backend.models.level import LevelDefinition, LevelRepository
from power_trowel.backend.models.slab import Direction
from power_trowel.config import LeaderboardTrigger, ScorePolicy, Settings

L, R, U = Direction.LEFT, Direction.RIGHT, Direction.UP

# -- helpers ------------------------------------------------------------------


def _finish_strip(game: RunController, clock) -> LevelOutcome:
    """Trowel both tiles of a 2×1 strip to stage 5 and let the level end.

    The trowel starts on the right tile with one pass; eight alternating
    moves bring both tiles to five passes (ten passes in total).
    """
    moves = (L, R, L, R, L, R, L, R, L)
    for direction in moves[:-1]:
        clock.advance(0.1)
        assert game.on_move(direction)
        assert game.tick() is None
    clock.advance(0.1)
    assert game.on_move(moves[-1])
    outcome = game.tick()
    assert outcome is not None
    return outcome


def _single_level(width: int, height: int, time_limit: float) -> LevelRepository:
    return LevelRepository.from_definitions([LevelDefinition(width, height, time_limit)])


# -- level lifecycle ------------------------------------------------------------


def test_not_started_controller_ignores_everything(clock) -> None:
    game = RunController(clock=clock)
    assert game.phase is Phase.NOT_STARTED
    assert game.tick() is None
    assert not game.on_move(L)
    assert game.pump() == 0
    assert game.live_score == 0


def test_start_level_builds_fresh_slab(controller: RunController) -> None:
    assert controller.phase is Phase.RUNNING
    assert controller.slab is not None and controller.state is not None
    assert (controller.slab.width, controller.slab.height) == (6, 6)
    assert controller.state.time_limit == 60
    assert controller.state.elapsed == 0.0
    assert controller.slab.trowel_pos == (5, 5)


def test_start_level_wraps_past_the_end(clock) -> None:
    game = RunController(clock=clock)
    game.start_level(7)  # five default levels
    assert game.level_index == 2
    assert game.slab is not None
    assert (game.slab.width, game.slab.height) == (8, 10)


def test_restart_run_resets_score_and_level(clock, strip_levels: LevelRepository) -> None:
    game = RunController(strip_levels, clock=clock)
    game.start_level(0)
    _finish_strip(game, clock)
    assert game.run_score == 10
    assert game.level_index == 1

    game.restart_run()
    assert game.run_score == 0
    assert game.level_index == 0
    assert game.phase is Phase.RUNNING
    assert game.slab is not None and game.slab.get_tile(0, 0).pass_count == 0


# -- ticking --------------------------------------------------------------------


def test_untouched_slab_dries_out_and_fails(controller: RunController, clock) -> None:
    clock.advance(24.9)
    assert controller.tick() is None

    clock.advance(0.2)  # inner tiles reach their 25 s dry time
    outcome = controller.tick()
    assert outcome is not None
    assert not outcome.passed
    assert outcome.finished_pct == 0
    assert controller.phase is Phase.ENDED


def test_time_limit_ends_the_level(clock) -> None:
    game = RunController(_single_level(6, 6, 10), clock=clock)
    game.start_level(0)

    clock.advance(9.9)
    assert game.tick() is None
    assert game.state is not None and not game.state.expired

    clock.advance(0.2)
    outcome = game.tick()
    assert outcome is not None
    assert game.slab is not None
    assert all(t.locked for t in game.slab)
    assert not any(t.finished for t in game.slab)
    assert game.state is not None and game.state.time_remaining == 0.0
    assert game.state.expired


def test_ended_level_ignores_input(clock) -> None:
    game = RunController(_single_level(6, 6, 10), clock=clock)
    game.start_level(0)
    clock.advance(10)
    assert game.tick() is not None

    clock.advance(1)
    pos = game.slab.trowel_pos
    assert not game.on_move(L)
    assert not game.press_direction(L)
    assert game.pump() == 0
    assert game.tick() is None
    assert game.slab.trowel_pos == pos


# -- movement -----------------------------------------------------------------------


def test_move_works_the_new_tile(controller: RunController, clock) -> None:
    clock.advance(2.5)
    assert controller.on_move(L)
    assert controller.slab.trowel_pos == (4, 5)
    tile = controller.slab.get_tile(4, 5)
    assert tile.pass_count == 1
    assert tile.last_worked_at == pytest.approx(2.5)


def test_move_off_the_slab_is_ignored(controller: RunController, clock) -> None:
    clock.advance(1)
    assert not controller.on_move(R)
    assert controller.slab.trowel_pos == (5, 5)
    assert controller.slab.get_tile(5, 5).pass_count == 1


def test_moves_are_rate_limited(controller: RunController, clock) -> None:
    clock.advance(1)
    assert controller.on_move(L)

    clock.advance(0.05)
    assert not controller.on_move(U)
    assert controller.slab.trowel_pos == (4, 5)

    clock.advance(0.03)
    assert controller.on_move(U)
    assert controller.slab.trowel_pos == (4, 4)


def test_rejected_edge_move_still_spends_the_gate(controller: RunController, clock) -> None:
    clock.advance(1)
    assert not controller.on_move(R)
    clock.advance(0.01)
    assert not controller.on_move(L)
    clock.advance(0.1)
    assert controller.on_move(L)


def test_move_onto_dried_tile_moves_but_does_not_work_it(controller: RunController, clock) -> None:
    clock.advance(16)
    controller.tick()  # border tiles are dry now
    assert controller.slab.get_tile(4, 5).locked

    assert controller.on_move(L)
    assert controller.slab.trowel_pos == (4, 5)
    assert controller.slab.get_tile(4, 5).pass_count == 0


# -- held direction ---------------------------------------------------------------------


def test_held_direction_repeats_until_released(controller: RunController, clock) -> None:
    clock.advance(1)
    assert controller.press_direction(L)
    assert controller.slab.trowel_pos == (4, 5)
    assert controller.pump() == 0

    clock.advance(0.1)
    assert controller.pump() == 1
    clock.advance(0.1)
    assert controller.pump() == 1
    assert controller.slab.trowel_pos == (2, 5)

    controller.release_direction()
    assert controller.held_direction is None
    clock.advance(0.5)
    assert controller.pump() == 0
    assert controller.slab.trowel_pos == (2, 5)


def test_pressing_the_held_direction_again_does_not_step(controller: RunController, clock) -> None:
    clock.advance(1)
    assert controller.press_direction(L)
    clock.advance(0.08)
    assert not controller.press_direction(L)
    assert controller.slab.trowel_pos == (4, 5)


def test_direction_change_replaces_the_repeat(controller: RunController, clock) -> None:
    clock.advance(1)
    controller.press_direction(L)
    clock.advance(0.08)
    assert controller.press_direction(U)
    assert controller.slab.trowel_pos == (4, 4)
    assert controller.held_direction is U

    clock.advance(0.1)
    assert controller.pump() == 1
    assert controller.slab.trowel_pos == (4, 3)


def test_releasing_the_newer_key_resumes_the_older_one(controller: RunController, clock) -> None:
    clock.advance(1)
    controller.press_direction(L)
    clock.advance(0.08)
    controller.press_direction(U)
    assert controller.slab.trowel_pos == (4, 4)

    clock.advance(0.05)
    controller.release_direction(U)
    assert controller.held_direction is L

    clock.advance(0.1)
    assert controller.pump() == 1
    assert controller.slab.trowel_pos == (3, 4)

    controller.release_direction(L)
    assert controller.held_direction is None


def test_release_without_direction_lets_go_of_everything(controller: RunController, clock) -> None:
    clock.advance(1)
    controller.press_direction(L)
    clock.advance(0.08)
    controller.press_direction(U)
    controller.release_direction()
    assert controller.held_direction is None
    clock.advance(0.5)
    assert controller.pump() == 0


def test_late_pump_still_respects_the_gate(controller: RunController, clock) -> None:
    clock.advance(1)
    controller.press_direction(L)
    clock.advance(0.5)  # five repeats are owed, all at the same instant
    assert controller.pump() == 1
    assert controller.slab.trowel_pos == (3, 5)


def test_level_end_cancels_held_direction(clock) -> None:
    game = RunController(_single_level(6, 6, 1), clock=clock)
    game.start_level(0)
    game.press_direction(L)
    clock.advance(1)
    assert game.tick() is not None
    assert game.held_direction is None


# -- outcomes -------------------------------------------------------------------------


def test_finishing_every_tile_passes(clock, strip_levels: LevelRepository) -> None:
    game = RunController(strip_levels, clock=clock)
    game.start_level(0)
    outcome = _finish_strip(game, clock)

    assert outcome.passed
    assert outcome.finished_pct == 100
    assert outcome.stats.total_passes == 10
    assert outcome.run_score == 10
    assert game.level_index == 1
    assert game.phase is Phase.ENDED


def test_evaluate_outcome_pass_at_81_percent(controller: RunController) -> None:
    stats = SlabStats(finished_count=52, partial_count=10, total_tiles=64, total_passes=300)
    outcome = controller.evaluate_outcome(stats)

    assert outcome.finished_pct == 81
    assert outcome.passed
    assert controller.run_score == 300
    assert controller.level_index == 1


def test_evaluate_outcome_fail_at_78_percent_resets_run(controller: RunController) -> None:
    controller.run_score = 500
    controller.level_index = 3
    stats = SlabStats(finished_count=50, partial_count=10, total_tiles=64, total_passes=290)
    outcome = controller.evaluate_outcome(stats)

    assert outcome.finished_pct == 78
    assert not outcome.passed
    assert outcome.run_score == 790
    assert outcome.level_index == 3
    assert controller.run_score == 0
    assert controller.level_index == 0


def test_passing_the_last_level_wraps_to_the_first(clock) -> None:
    game = RunController(clock=clock)
    game.start_level(4)
    game.evaluate_outcome(SlabStats(120, 0, 120, 600))
    assert game.level_index == 0


def test_next_level_after_failure_replays_level_one(clock, strip_levels: LevelRepository) -> None:
    game = RunController(strip_levels, clock=clock)
    game.start_level(1)
    clock.advance(60)
    outcome = game.tick()
    assert outcome is not None and not outcome.passed

    game.next_level()
    assert game.level_index == 0
    assert game.phase is Phase.RUNNING


# -- score policies ---------------------------------------------------------------------


def test_accumulate_policy_carries_score_across_levels(clock, strip_levels: LevelRepository) -> None:
    game = RunController(strip_levels, clock=clock, score_policy=ScorePolicy.ACCUMULATE)
    game.start_level(0)
    _finish_strip(game, clock)
    game.next_level()
    assert game.live_score == 11  # 10 carried + the seeded start pass

    outcome = _finish_strip(game, clock)
    assert outcome.run_score == 20
    assert game.level_index == 0  # two levels, wrapped


def test_live_policy_keeps_only_the_last_level(clock, strip_levels: LevelRepository) -> None:
    game = RunController(strip_levels, clock=clock, score_policy=ScorePolicy.LIVE)
    game.start_level(0)
    _finish_strip(game, clock)
    game.next_level()
    assert game.live_score == 1

    outcome = _finish_strip(game, clock)
    assert outcome.run_score == 10


# -- best score and leaderboard ------------------------------------------------------------


def test_best_score_recorded_and_persisted(clock, strip_levels: LevelRepository, tmp_path: Path) -> None:
    store = BestScoreStore(tmp_path / "best.json")
    game = RunController(strip_levels, clock=clock, best_scores=store)
    game.start_level(0)
    _finish_strip(game, clock)

    assert game.best_score == 10
    assert BestScoreStore(tmp_path / "best.json").best == 10


def test_live_score_updates_best_while_playing(controller: RunController, clock, tmp_path: Path) -> None:
    controller.best_scores = BestScoreStore(tmp_path / "best.json")
    clock.advance(1)
    controller.on_move(L)
    controller.tick()
    assert controller.best_score == 2


def _with_leaderboard(clock, levels, tmp_path: Path, trigger: LeaderboardTrigger) -> RunController:
    game = RunController(
        levels,
        clock=clock,
        leaderboard=LocalLeaderboard(tmp_path / "leaderboard.json"),
        leaderboard_trigger=trigger,
        player_name="zz9z",
    )
    game.start_level(0)
    return game


def test_on_fail_trigger_skips_passed_levels(clock, strip_levels, tmp_path: Path) -> None:
    game = _with_leaderboard(clock, strip_levels, tmp_path, LeaderboardTrigger.ON_FAIL)
    outcome = _finish_strip(game, clock)
    assert not outcome.leaderboard_submitted
    assert game.leaderboard.fetch_top() == []

    game.next_level()
    clock.advance(60)
    outcome = game.tick()
    assert outcome is not None and outcome.leaderboard_submitted
    assert game.leaderboard.fetch_top() == [LeaderboardEntry(name="ZZZ", score=11)]


def test_always_trigger_submits_passed_levels(clock, strip_levels, tmp_path: Path) -> None:
    game = _with_leaderboard(clock, strip_levels, tmp_path, LeaderboardTrigger.ALWAYS)
    outcome = _finish_strip(game, clock)
    assert outcome.leaderboard_submitted
    assert game.leaderboard.fetch_top() == [LeaderboardEntry(name="ZZZ", score=10)]


def test_non_qualifying_score_is_not_submitted(clock, strip_levels, tmp_path: Path) -> None:
    game = _with_leaderboard(clock, strip_levels, tmp_path, LeaderboardTrigger.ON_FAIL)
    for name in ("AAA", "BBB", "CCC", "DDD", "EEE"):
        game.leaderboard.submit(LeaderboardEntry(name=name, score=100))

    clock.advance(60)
    outcome = game.tick()
    assert outcome is not None and not outcome.leaderboard_submitted
    assert len(game.leaderboard.fetch_top()) == 5
    assert all(e.score == 100 for e in game.leaderboard.fetch_top())


# -- remote leaderboard ---------------------------------------------------------------


class _Accepted:
    def raise_for_status(self) -> None:
        pass


class _StalledSession:
    """Holds every request until released, then fails it with a timeout."""

    def __init__(self) -> None:
        self.release = threading.Event()

    def post(self, url, **kwargs):
        self.release.wait(2.0)
        raise requests.Timeout("no answer")

    def get(self, url, **kwargs):
        self.release.wait(2.0)
        raise requests.Timeout("no answer")


class _AcceptingSession:
    def post(self, url, **kwargs):
        return _Accepted()


def _fail_level(clock, board: RemoteLeaderboard, strip_levels) -> LevelOutcome:
    game = RunController(strip_levels, clock=clock, leaderboard=board)
    game.start_level(0)
    clock.advance(60)
    outcome = game.tick()
    assert outcome is not None and not outcome.passed
    return outcome


def test_unreachable_leaderboard_does_not_stall_the_level_end(clock, strip_levels) -> None:
    session = _StalledSession()
    board = RemoteLeaderboard("http://scores.test", session=session, timeout=1.0)
    try:
        started = time.monotonic()
        outcome = _fail_level(clock, board, strip_levels)
        assert time.monotonic() - started < 0.5

        assert outcome.leaderboard_pending
        assert not outcome.leaderboard_submitted

        session.release.set()
        assert outcome.submission is not None
        assert outcome.submission.result(timeout=2.0) is False
        assert not outcome.leaderboard_pending
        assert not outcome.leaderboard_submitted
    finally:
        session.release.set()
        board.close()


def test_accepted_remote_score_is_reported(clock, strip_levels) -> None:
    board = RemoteLeaderboard("http://scores.test", session=_AcceptingSession())
    try:
        outcome = _fail_level(clock, board, strip_levels)
        assert outcome.submission is not None
        assert outcome.submission.result(timeout=2.0) is True
        assert outcome.leaderboard_submitted
    finally:
        board.close()


def test_qualification_uses_the_cached_ranking(clock, strip_levels) -> None:
    session = _StalledSession()
    board = RemoteLeaderboard("http://scores.test", session=session)
    board._cache = [LeaderboardEntry(name, 100) for name in ("AAA", "BBB", "CCC", "DDD", "EEE")]
    try:
        outcome = _fail_level(clock, board, strip_levels)
        assert outcome.submission is None
        assert not outcome.leaderboard_submitted
    finally:
        session.release.set()
        board.close()


# -- wiring -------------------------------------------------------------------------------


def test_from_settings_local(tmp_path: Path) -> None:
    settings = Settings(data_dir=tmp_path, score_policy=ScorePolicy.LIVE, player_name="abc")
    game = RunController.from_settings(settings)
    assert isinstance(game.leaderboard, LocalLeaderboard)
    assert game.leaderboard.filepath == tmp_path / "leaderboard.json"
    assert game.best_scores is not None
    assert game.best_scores.filepath == tmp_path / "best_score.json"
    assert game.score_policy is ScorePolicy.LIVE
    assert game.player_name == "ABC"
    assert len(game.levels) == 5


def test_from_settings_remote(tmp_path: Path) -> None:
    settings = Settings(data_dir=tmp_path, leaderboard_url="http://scores.example/api/")
    game = RunController.from_settings(settings)
    assert isinstance(game.leaderboard, RemoteLeaderboard)
    assert game.leaderboard.url == "http://scores.example/api/leaderboard"
