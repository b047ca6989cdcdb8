"""A single concrete tile of the slab."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Tile:
    """Work and drying state of one cell.

    ``finished`` implies ``locked``.  Once locked a tile never unlocks, and
    ``pass_count`` only grows while a level lasts.
    """

    dry_time_limit: float
    pass_count: int = 0
    last_worked_at: float = 0.0
    locked: bool = False
    finished: bool = False

    @property
    def workable(self) -> bool:
        return not (self.locked or self.finished)
