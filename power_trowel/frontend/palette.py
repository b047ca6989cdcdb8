"""Tile colours shared by the frontends."""

from __future__ import annotations

from power_trowel.backend.engine.simulation import Simulation
from power_trowel.backend.models.tile import Tile

FINISHED_GRAY = 0x55  # #555555, a trowelled stage-5 tile
DRIED_GRAY = 0xF5  # #f5f5f5, dried out before it was finished


def tile_gray(tile: Tile, elapsed: float) -> int:
    """Grey level 0–255 for *tile* at *elapsed* seconds into the level.

    Wet tiles darken with every pass and fade back towards white as they dry.
    """
    if tile.locked:
        return FINISHED_GRAY if tile.finished else DRIED_GRAY
    base = 220 - tile.pass_count * 25
    dryness = Simulation.dryness(tile, elapsed)
    return round(base + (255 - base) * dryness)


def tile_rgb(tile: Tile, elapsed: float) -> tuple[int, int, int]:
    g = tile_gray(tile, elapsed)
    return (g, g, g)


def tile_hex(tile: Tile, elapsed: float) -> str:
    g = tile_gray(tile, elapsed)
    return f"#{g:02x}{g:02x}{g:02x}"
