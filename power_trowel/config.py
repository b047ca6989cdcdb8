"""Game constants and runtime settings.

Constants are the tuning values of the game itself.  ``Settings`` carries
the choices a host can make at launch (data directory, score policy,
leaderboard backend) and can be filled from ``TROWEL_*`` environment
variables; CLI options take precedence over the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

# -- tile drying --------------------------------------------------------------

EDGE_DRY_TIME = 15.0  # seconds
INNER_DRY_TIME = 25.0  # seconds
PASSES_TO_FINISH = 5

# -- level outcome ------------------------------------------------------------

PASS_PERCENT = 80

# -- movement -----------------------------------------------------------------

MIN_STEP_MS = 70  # minimum gap between two accepted moves
MOVE_INTERVAL_MS = 95  # repeat cadence while a direction is held

# Virtual joystick, in pixels.
JOY_RADIUS = 60
JOY_KNOB_MARGIN = 18
DEAD_ZONE = 10
DOMINANCE_RATIO = 1.15

# -- scores -------------------------------------------------------------------

LEADERBOARD_SIZE = 5
BEST_SCORE_KEY = "concreteGameBestScore"
DEFAULT_INITIALS = "AAA"

DEFAULT_DATA_DIR = Path.home() / ".power_trowel"


class ScorePolicy(StrEnum):
    """How the run score reacts to a finished level."""

    ACCUMULATE = "accumulate"  # add each level's passes to the run score
    LIVE = "live"  # run score is the last level's passes only


class LeaderboardTrigger(StrEnum):
    """When an end-of-level run score is offered to the leaderboard."""

    ON_FAIL = "on-fail"
    ALWAYS = "always"


@dataclass
class Settings:
    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    score_policy: ScorePolicy = ScorePolicy.ACCUMULATE
    leaderboard_trigger: LeaderboardTrigger = LeaderboardTrigger.ON_FAIL
    leaderboard_url: str | None = None
    player_name: str = DEFAULT_INITIALS
    levels_file: Path | None = None

    @property
    def best_score_path(self) -> Path:
        return self.data_dir / "best_score.json"

    @property
    def leaderboard_path(self) -> Path:
        return self.data_dir / "leaderboard.json"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Build settings from ``TROWEL_*`` variables, falling back to defaults.

        Unknown policy values raise ``ValueError`` from the enum lookup.
        """
        env = os.environ if environ is None else environ
        settings = cls()
        if env.get("TROWEL_DATA_DIR"):
            settings.data_dir = Path(env["TROWEL_DATA_DIR"]).expanduser()
        if env.get("TROWEL_SCORE_POLICY"):
            settings.score_policy = ScorePolicy(env["TROWEL_SCORE_POLICY"])
        if env.get("TROWEL_LEADERBOARD_TRIGGER"):
            settings.leaderboard_trigger = LeaderboardTrigger(
                env["TROWEL_LEADERBOARD_TRIGGER"]
            )
        if env.get("TROWEL_LEADERBOARD_URL"):
            settings.leaderboard_url = env["TROWEL_LEADERBOARD_URL"]
        if env.get("TROWEL_PLAYER_NAME"):
            settings.player_name = env["TROWEL_PLAYER_NAME"]
        if env.get("TROWEL_LEVELS_FILE"):
            settings.levels_file = Path(env["TROWEL_LEVELS_FILE"]).expanduser()
        return settings
