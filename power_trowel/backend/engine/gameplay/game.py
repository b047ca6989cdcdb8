"""Run controller — sequences levels, moves the trowel and scores the run."""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass, field

from power_trowel.backend.engine.gamegenerator import SlabGenerator
from power_trowel.backend.engine.gamestate import LevelState
from power_trowel.backend.engine.movement import HeldDirection, MoveGate
from power_trowel.backend.engine.simulation import Simulation, SlabStats
from power_trowel.backend.models.highscore import (
    BestScoreStore,
    LeaderboardEntry,
    normalize_initials,
    qualifies,
)
from power_trowel.backend.models.leaderboard import (
    Leaderboard,
    LocalLeaderboard,
    RemoteLeaderboard,
)
from power_trowel.backend.models.level import LevelRepository
from power_trowel.backend.models.slab import Direction, Slab
from power_trowel.config import (
    LEADERBOARD_SIZE,
    MIN_STEP_MS,
    MOVE_INTERVAL_MS,
    PASS_PERCENT,
    LeaderboardTrigger,
    ScorePolicy,
    Settings,
)

logger = logging.getLogger(__name__)


class Phase(enum.Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    ENDED = "ended"


@dataclass(frozen=True)
class LevelOutcome:
    """How a level ended.  ``run_score`` is taken before a failed run is reset."""

    level_index: int
    stats: SlabStats
    finished_pct: int
    passed: bool
    run_score: int
    submission: Future[bool] | None = field(default=None, compare=False, repr=False)

    @property
    def leaderboard_pending(self) -> bool:
        """True while the run score is still on its way to the leaderboard."""
        return self.submission is not None and not self.submission.done()

    @property
    def leaderboard_submitted(self) -> bool:
        """True once the leaderboard has accepted the run score."""
        s = self.submission
        if s is None or not s.done() or s.cancelled() or s.exception() is not None:
            return False
        return bool(s.result())


class RunController:
    """Orchestrates a run: one level at a time until the player fails.

    The controller is the only writer of the slab and the run score.  A host
    loop drives it by calling :meth:`tick` every frame and :meth:`on_move`
    (or the press/release pair for held input) between ticks.
    """

    def __init__(
        self,
        levels: LevelRepository | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        score_policy: ScorePolicy = ScorePolicy.ACCUMULATE,
        leaderboard_trigger: LeaderboardTrigger = LeaderboardTrigger.ON_FAIL,
        leaderboard: Leaderboard | None = None,
        best_scores: BestScoreStore | None = None,
        player_name: str | None = None,
        min_step_ms: float = MIN_STEP_MS,
        move_interval_ms: float = MOVE_INTERVAL_MS,
    ) -> None:
        self.levels = levels or LevelRepository()
        self.clock = clock
        self.score_policy = score_policy
        self.leaderboard_trigger = leaderboard_trigger
        self.leaderboard = leaderboard
        self.best_scores = best_scores
        self.player_name = normalize_initials(player_name)

        self.phase = Phase.NOT_STARTED
        self.level_index = 0
        self.run_score = 0
        self.slab: Slab | None = None
        self.state: LevelState | None = None
        self.last_outcome: LevelOutcome | None = None

        self._gate = MoveGate(min_step_ms)
        self._held = HeldDirection(move_interval_ms)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> RunController:
        """Wire a controller to the stores and leaderboard *settings* name."""
        leaderboard: Leaderboard
        if settings.leaderboard_url:
            leaderboard = RemoteLeaderboard(settings.leaderboard_url)
        else:
            leaderboard = LocalLeaderboard(settings.leaderboard_path)
        return cls(
            LevelRepository(settings.levels_file),
            score_policy=settings.score_policy,
            leaderboard_trigger=settings.leaderboard_trigger,
            leaderboard=leaderboard,
            best_scores=BestScoreStore(settings.best_score_path),
            player_name=settings.player_name,
            **kwargs,
        )

    # -- level lifecycle ------------------------------------------------------

    def start_level(self, index: int) -> None:
        """Start level *index*; indices past the last level wrap to the first."""
        self.level_index = self.levels.wrap(index)
        level = self.levels.get(self.level_index)
        self._held.cancel()
        self._gate.reset()
        self.slab = SlabGenerator.create(level.width, level.height)
        self.state = LevelState(self.level_index, level, started_at=self.clock())
        self.last_outcome = None
        self.phase = Phase.RUNNING
        logger.info(
            "Level %d started: %d×%d, %.0fs",
            self.level_index + 1,
            level.width,
            level.height,
            level.time_limit,
        )

    def next_level(self) -> None:
        """Play the level the last outcome pointed at (next one, or the first after a failure)."""
        self.start_level(self.level_index)

    def restart_run(self) -> None:
        if self.leaderboard is not None:
            self.leaderboard.refresh()
        self.run_score = 0
        self.level_index = 0
        self.start_level(0)

    # -- clock ----------------------------------------------------------------

    def tick(self, now: float | None = None) -> LevelOutcome | None:
        """Advance the level clock.  Returns the outcome on the tick the level ends."""
        if self.phase is not Phase.RUNNING:
            return None
        assert self.slab is not None and self.state is not None
        now = self.clock() if now is None else now

        elapsed = self.state.update(now)
        expired = self.state.expired
        Simulation.advance(self.slab, elapsed, expired)
        self._observe_best(self.live_score)

        if not (expired or Simulation.is_level_complete(self.slab)):
            return None
        return self._end_level()

    def _end_level(self) -> LevelOutcome:
        assert self.slab is not None and self.state is not None
        self.state.stop()
        self._held.cancel()
        self.phase = Phase.ENDED
        stats = Simulation.compute_stats(self.slab)
        outcome = self.evaluate_outcome(stats)
        logger.info(
            "Level %d ended: %d%% finished, %s, run score %d",
            outcome.level_index + 1,
            outcome.finished_pct,
            "passed" if outcome.passed else "failed",
            outcome.run_score,
        )
        return outcome

    # -- movement -------------------------------------------------------------

    def on_move(self, direction: Direction, now: float | None = None) -> bool:
        """Step the trowel one tile and work the tile it lands on.

        Moves are dropped while no level runs, inside the rate limit, or when
        they would leave the slab.  Returns True if the trowel moved.
        """
        if self.phase is not Phase.RUNNING:
            return False
        assert self.slab is not None and self.state is not None
        now = self.clock() if now is None else now

        # The gate slot is spent even if the move then hits the slab edge.
        if not self._gate.accept(now):
            return False

        dx, dy = Direction(direction).delta
        x, y = self.slab.trowel_pos
        nx, ny = x + dx, y + dy
        if not self.slab.in_bounds(nx, ny):
            return False

        self.slab.trowel_pos = (nx, ny)
        Simulation.apply_work_pass(self.slab, nx, ny, self.state.elapsed_at(now))
        return True

    def press_direction(self, direction: Direction, now: float | None = None) -> bool:
        """Start holding *direction*; a change of direction steps immediately."""
        if self.phase is not Phase.RUNNING:
            return False
        now = self.clock() if now is None else now
        if self._held.press(Direction(direction), now):
            return self.on_move(direction, now)
        return False

    def release_direction(self, direction: Direction | None = None, now: float | None = None) -> None:
        """Let go of *direction*, or of everything when it is None.

        A direction still held from before takes over the repeat.
        """
        if direction is None:
            self._held.cancel()
            return
        now = self.clock() if now is None else now
        self._held.release(Direction(direction), now)

    def pump(self, now: float | None = None) -> int:
        """Issue the repeats a held direction owes by *now*.  Returns moves made."""
        if self.phase is not Phase.RUNNING:
            return 0
        now = self.clock() if now is None else now
        return sum(1 for d in self._held.due(now) if self.on_move(d, now))

    @property
    def held_direction(self) -> Direction | None:
        return self._held.direction

    # -- scoring --------------------------------------------------------------

    @property
    def live_score(self) -> int:
        """Score to show while a level is on: depends on the score policy."""
        if self.slab is None or self.phase is not Phase.RUNNING:
            return self.run_score
        level_passes = Simulation.compute_stats(self.slab).total_passes
        if self.score_policy is ScorePolicy.LIVE:
            return level_passes
        return self.run_score + level_passes

    @property
    def best_score(self) -> int:
        return self.best_scores.best if self.best_scores else 0

    def evaluate_outcome(self, stats: SlabStats) -> LevelOutcome:
        """Score a finished level and set up what comes next.

        A pass moves the run on to the next level (wrapping after the last);
        a failure resets the run score and sends the run back to level 1.
        """
        pct = stats.finished_pct
        passed = pct >= PASS_PERCENT
        level_index = self.level_index

        if self.score_policy is ScorePolicy.LIVE:
            self.run_score = stats.total_passes
        else:
            self.run_score += stats.total_passes
        final_score = self.run_score

        self._observe_best(final_score)
        submission = self._maybe_submit(final_score, passed)

        if passed:
            self.level_index = self.levels.wrap(level_index + 1)
        else:
            self.run_score = 0
            self.level_index = 0

        self.last_outcome = LevelOutcome(
            level_index=level_index,
            stats=stats,
            finished_pct=pct,
            passed=passed,
            run_score=final_score,
            submission=submission,
        )
        return self.last_outcome

    def _observe_best(self, score: int) -> None:
        if self.best_scores is not None and self.best_scores.observe(score):
            logger.debug("New best score %d", score)

    def _maybe_submit(self, score: int, passed: bool) -> Future[bool] | None:
        # Runs inside tick(): qualify against the cached ranking and leave the
        # network to the leaderboard's worker.
        if self.leaderboard is None:
            return None
        if passed and self.leaderboard_trigger is LeaderboardTrigger.ON_FAIL:
            return None
        top = self.leaderboard.cached_top(LEADERBOARD_SIZE)
        if not qualifies(score, top):
            return None
        logger.info("Leaderboard entry %s %d", self.player_name, score)
        return self.leaderboard.submit_async(LeaderboardEntry(name=self.player_name, score=score))

    def close(self) -> None:
        """Release the leaderboard's background resources."""
        if self.leaderboard is not None:
            self.leaderboard.close()
