"""Slab model — the rectangular grid of tiles a level is played on."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum

from power_trowel.backend.models.tile import Tile


class ConfigurationError(ValueError):
    """Raised when a slab or level is defined with impossible values."""


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> tuple[int, int]:
        """Unit ``(dx, dy)`` step; y grows downwards."""
        return _DELTAS[self]


_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}


def on_border(x: int, y: int, width: int, height: int) -> bool:
    """True if (x, y) lies on the outer ring of a *width* × *height* grid."""
    return x == 0 or y == 0 or x == width - 1 or y == height - 1


@dataclass
class Slab:
    """Represents the concrete slab of one level.

    Tiles are stored row-major, ``tiles[y][x]``.  ``trowel_pos`` is the
    ``(x, y)`` cell the trowel currently sits on.
    """

    width: int
    height: int
    tiles: list[list[Tile]]
    trowel_pos: tuple[int, int]

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ConfigurationError(
                f"Slab dimensions must be positive, got {self.width}×{self.height}."
            )
        if len(self.tiles) != self.height or any(
            len(row) != self.width for row in self.tiles
        ):
            raise ConfigurationError(
                f"Tile rows do not match a {self.width}×{self.height} slab."
            )
        if not self.in_bounds(*self.trowel_pos):
            raise ConfigurationError(
                f"Trowel position {self.trowel_pos} lies outside the slab."
            )

    # -- queries --------------------------------------------------------------

    @property
    def total_tiles(self) -> int:
        return self.width * self.height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_edge(self, x: int, y: int) -> bool:
        return on_border(x, y, self.width, self.height)

    def get_tile(self, x: int, y: int) -> Tile:
        if not self.in_bounds(x, y):
            raise IndexError(f"({x}, {y}) is outside a {self.width}×{self.height} slab.")
        return self.tiles[y][x]

    def __iter__(self) -> Iterator[Tile]:
        for row in self.tiles:
            yield from row

    def cells(self) -> Iterator[tuple[int, int, Tile]]:
        """Yield ``(x, y, tile)`` for every cell, row by row."""
        for y, row in enumerate(self.tiles):
            for x, tile in enumerate(row):
                yield x, y, tile
