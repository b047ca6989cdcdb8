"""Tile drying and finishing rules."""

from __future__ import annotations

import math
from dataclasses import dataclass

from power_trowel.backend.models.slab import Slab
from power_trowel.backend.models.tile import Tile
from power_trowel.config import PASSES_TO_FINISH


def round_half_up(value: float) -> int:
    """Round like JavaScript's ``Math.round`` (.5 goes up, not to even)."""
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class SlabStats:
    finished_count: int
    partial_count: int
    total_tiles: int
    total_passes: int

    @property
    def finished_pct(self) -> int:
        """Share of finished tiles as a whole percentage."""
        return round_half_up(100 * self.finished_count / self.total_tiles)


class Simulation:
    """Stateless — all methods are static and act on the slab passed in."""

    @staticmethod
    def advance(slab: Slab, elapsed: float, level_expired: bool) -> None:
        """Dry out every tile whose clock ran out (or all of them if the level expired).

        Must run once per tick, before completion is checked.
        """
        for tile in slab:
            if tile.finished:
                tile.locked = True
                continue
            if tile.locked:
                continue
            if level_expired or elapsed - tile.last_worked_at >= tile.dry_time_limit:
                tile.locked = True
                tile.finished = tile.pass_count >= PASSES_TO_FINISH

    @staticmethod
    def apply_work_pass(slab: Slab, x: int, y: int, elapsed: float) -> bool:
        """Work the tile at ``(x, y)`` once.

        Locked tiles are left alone; that is ordinary play, not an error.
        Returns True if the pass was applied.
        """
        tile = slab.get_tile(x, y)
        if not tile.workable:
            return False
        tile.pass_count += 1
        if tile.pass_count >= PASSES_TO_FINISH:
            tile.finished = True
            tile.locked = True
        tile.last_worked_at = elapsed
        return True

    @staticmethod
    def is_level_complete(slab: Slab) -> bool:
        return all(tile.locked for tile in slab)

    @staticmethod
    def compute_stats(slab: Slab) -> SlabStats:
        """Scan the whole slab; nothing is cached between calls."""
        finished = partial = passes = 0
        for tile in slab:
            passes += tile.pass_count
            if tile.pass_count >= PASSES_TO_FINISH:
                finished += 1
            elif tile.pass_count > 0:
                partial += 1
        return SlabStats(
            finished_count=finished,
            partial_count=partial,
            total_tiles=slab.total_tiles,
            total_passes=passes,
        )

    @staticmethod
    def dryness(tile: Tile, elapsed: float) -> float:
        """How far *tile* is through its dry time, from 0.0 (wet) to 1.0."""
        since = max(0.0, elapsed - tile.last_worked_at)
        return min(1.0, since / tile.dry_time_limit)
