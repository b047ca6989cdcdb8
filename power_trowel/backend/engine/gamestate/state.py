"""Tracks the clock of a level in progress."""

from __future__ import annotations

from power_trowel.backend.models.level import LevelDefinition


class LevelState:
    """Holds the level index, its time limit and the elapsed game time.

    Time is measured from *started_at*, a timestamp in seconds from the
    controller's clock.  ``elapsed`` only moves when :meth:`update` is called
    so every rule within one tick sees the same instant.
    """

    def __init__(self, level_index: int, level: LevelDefinition, started_at: float) -> None:
        self.level_index = level_index
        self.level = level
        self.time_limit: float = level.time_limit
        self.started_at = started_at
        self.elapsed: float = 0.0
        self.running: bool = True

    # -- time tracking --------------------------------------------------------

    def update(self, now: float) -> float:
        """Move the level clock to *now* and return the elapsed seconds."""
        if self.running:
            self.elapsed = max(0.0, now - self.started_at)
        return self.elapsed

    def elapsed_at(self, now: float) -> float:
        if self.running:
            return max(0.0, now - self.started_at)
        return self.elapsed

    @property
    def expired(self) -> bool:
        return self.elapsed >= self.time_limit

    @property
    def time_remaining(self) -> float:
        return max(0.0, self.time_limit - self.elapsed)

    def stop(self) -> None:
        self.running = False
