"""Best-score persistence and leaderboard ranking rules."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from power_trowel.config import BEST_SCORE_KEY, DEFAULT_INITIALS, LEADERBOARD_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaderboardEntry:
    name: str
    score: int


def normalize_initials(raw: str | None, default: str = DEFAULT_INITIALS) -> str:
    """Upper-case *raw*, keep letters only and cut to three characters.

    Falls back to *default* when nothing usable is left.
    """
    if not raw:
        return default
    letters = re.sub(r"[^A-Z]", "", raw.upper())[:3]
    return letters or default


def rank(entries: list[LeaderboardEntry], size: int = LEADERBOARD_SIZE) -> list[LeaderboardEntry]:
    """Sort by score, highest first, and keep the top *size*."""
    return sorted(entries, key=lambda e: e.score, reverse=True)[:size]


def qualifies(score: int, top: list[LeaderboardEntry], size: int = LEADERBOARD_SIZE) -> bool:
    """Return True if *score* earns a place among *top*.

    *top* must already be ranked.  Any score qualifies while the board has
    free places; otherwise it has to beat the last place.
    """
    if len(top) < size:
        return True
    return score > top[size - 1].score


class BestScoreStore:
    """Loads and saves the player's best score from a JSON file.

    Storage is best effort: read and write failures are logged and the game
    carries on with the in-memory value.
    """

    def __init__(self, filepath: Path) -> None:
        self.filepath = filepath
        self._best = self._load()

    @property
    def best(self) -> int:
        return self._best

    def observe(self, score: int) -> bool:
        """Record *score* if it beats the best so far.  Returns True if it did."""
        if score <= self._best:
            return False
        self._best = score
        self.save()
        return True

    # -- persistence ----------------------------------------------------------

    def _load(self) -> int:
        if not self.filepath.exists():
            return 0
        try:
            data = json.loads(self.filepath.read_text(encoding="utf-8"))
            return int(data.get(BEST_SCORE_KEY, 0))
        except (json.JSONDecodeError, OSError, AttributeError, TypeError, ValueError) as e:
            logger.warning("Could not load best score from %s: %s", self.filepath, e)
            return 0

    def save(self) -> None:
        try:
            self.filepath.parent.mkdir(parents=True, exist_ok=True)
            self.filepath.write_text(
                json.dumps({BEST_SCORE_KEY: self._best}, indent=2) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning("Could not save best score to %s: %s", self.filepath, e)
