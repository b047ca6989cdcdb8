"""Leaderboard backends.

The controller only talks to :class:`Leaderboard`.  Two backends exist: a
JSON file on this machine and a small HTTP service.  Both are best effort;
an unreachable store never stops the game.  Anything that may touch the
network has a non-blocking form (``cached_top``, ``submit_async``,
``refresh``) for use from the frame loop.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

import requests

from power_trowel.backend.models.highscore import LeaderboardEntry, rank
from power_trowel.config import LEADERBOARD_SIZE

logger = logging.getLogger(__name__)


def _resolved(value: object) -> Future:
    future: Future = Future()
    future.set_result(value)
    return future


class Leaderboard(ABC):
    @abstractmethod
    def submit(self, entry: LeaderboardEntry) -> bool:
        """Record *entry*.  Returns True if the store accepted it."""

    @abstractmethod
    def fetch_top(self, n: int = LEADERBOARD_SIZE) -> list[LeaderboardEntry]:
        """Return the best *n* entries, highest score first."""

    def cached_top(self, n: int = LEADERBOARD_SIZE) -> list[LeaderboardEntry]:
        """Last known ranking, without waiting on the store."""
        return self.fetch_top(n)

    def submit_async(self, entry: LeaderboardEntry) -> Future[bool]:
        return _resolved(self.submit(entry))

    def refresh(self) -> Future[list[LeaderboardEntry]]:
        """Bring :meth:`cached_top` up to date."""
        return _resolved(self.fetch_top())

    def close(self) -> None:
        pass


class LocalLeaderboard(Leaderboard):
    """Top scores kept in a JSON file."""

    def __init__(self, filepath: Path, size: int = LEADERBOARD_SIZE) -> None:
        self.filepath = filepath
        self.size = size
        self._entries: list[LeaderboardEntry] = self._load()

    def submit(self, entry: LeaderboardEntry) -> bool:
        self._entries = rank([*self._entries, entry], self.size)
        return self.save()

    def fetch_top(self, n: int = LEADERBOARD_SIZE) -> list[LeaderboardEntry]:
        return self._entries[:n]

    # -- persistence ----------------------------------------------------------

    def _load(self) -> list[LeaderboardEntry]:
        if not self.filepath.exists():
            return []
        try:
            data = json.loads(self.filepath.read_text(encoding="utf-8"))
            entries = [LeaderboardEntry(name=str(e["name"]), score=int(e["score"])) for e in data]
        except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError) as e:
            logger.warning("Could not load leaderboard from %s: %s", self.filepath, e)
            return []
        return rank(entries, self.size)

    def save(self) -> bool:
        data = [{"name": e.name, "score": e.score} for e in self._entries]
        try:
            self.filepath.parent.mkdir(parents=True, exist_ok=True)
            self.filepath.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save leaderboard to %s: %s", self.filepath, e)
            return False
        return True


class RemoteLeaderboard(Leaderboard):
    """Leaderboard served over HTTP.

    ``POST {base_url}/leaderboard`` takes ``{"name", "score"}``;
    ``GET {base_url}/leaderboard?limit=n`` answers with a list of the same
    records.  The last good ranking is cached so the HUD still has something
    to show while the service is down.  Background requests run one at a
    time on a single worker thread.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        session: requests.Session | None = None,
        size: int = LEADERBOARD_SIZE,
    ) -> None:
        self.url = base_url.rstrip("/") + "/leaderboard"
        self.timeout = timeout
        self.size = size
        self._session = session or requests.Session()
        self._cache: list[LeaderboardEntry] = []
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="leaderboard")

    def submit(self, entry: LeaderboardEntry) -> bool:
        self._remember(entry)
        return self._post(entry)

    def submit_async(self, entry: LeaderboardEntry) -> Future[bool]:
        self._remember(entry)
        return self._executor.submit(self._post, entry)

    def fetch_top(self, n: int = LEADERBOARD_SIZE) -> list[LeaderboardEntry]:
        try:
            response = self._session.get(self.url, params={"limit": n}, timeout=self.timeout)
            response.raise_for_status()
            entries = [
                LeaderboardEntry(name=str(e["name"]), score=int(e["score"]))
                for e in response.json()
            ]
        except requests.RequestException as e:
            logger.warning("Could not load leaderboard from %s: %s", self.url, e)
            return self._cache[:n]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Malformed leaderboard from %s: %s", self.url, e)
            return self._cache[:n]
        self._cache = rank(entries, self.size)
        return self._cache[:n]

    def cached_top(self, n: int = LEADERBOARD_SIZE) -> list[LeaderboardEntry]:
        return self._cache[:n]

    def refresh(self) -> Future[list[LeaderboardEntry]]:
        return self._executor.submit(self.fetch_top, self.size)

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    # -- helpers --------------------------------------------------------------

    def _remember(self, entry: LeaderboardEntry) -> None:
        # The local view stays current even if the POST never lands.
        self._cache = rank([*self._cache, entry], self.size)

    def _post(self, entry: LeaderboardEntry) -> bool:
        try:
            response = self._session.post(
                self.url,
                json={"name": entry.name, "score": entry.score},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Could not submit score to %s: %s", self.url, e)
            return False
        logger.info("Submitted %s %d to %s", entry.name, entry.score, self.url)
        return True
