from power_trowel.backend.models.highscore import BestScoreStore, LeaderboardEntry
from power_trowel.backend.models.leaderboard import Leaderboard, LocalLeaderboard, RemoteLeaderboard
from power_trowel.backend.models.level import LevelDefinition, LevelRepository
from power_trowel.backend.models.slab import ConfigurationError, Direction, Slab
from power_trowel.backend.models.tile import Tile

__all__ = [
    "BestScoreStore",
    "ConfigurationError",
    "Direction",
    "Leaderboard",
    "LeaderboardEntry",
    "LevelDefinition",
    "LevelRepository",
    "LocalLeaderboard",
    "RemoteLeaderboard",
    "Slab",
    "Tile",
]
