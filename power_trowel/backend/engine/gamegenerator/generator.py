"""Builds fresh slabs for a level."""

from __future__ import annotations

from power_trowel.backend.models.slab import ConfigurationError, Slab, on_border
from power_trowel.backend.models.tile import Tile
from power_trowel.config import EDGE_DRY_TIME, INNER_DRY_TIME


class SlabGenerator:
    """Creates wet slabs ready to be worked."""

    @staticmethod
    def create(
        width: int,
        height: int,
        start: tuple[int, int] | None = None,
        *,
        edge_dry_time: float = EDGE_DRY_TIME,
        inner_dry_time: float = INNER_DRY_TIME,
    ) -> Slab:
        """Return a new *width* × *height* slab.

        Border tiles dry faster than inner ones.  The trowel starts on
        *start* (bottom-right corner by default) and that tile already
        carries one pass made at time 0.
        """
        if width < 1 or height < 1:
            raise ConfigurationError(
                f"Slab dimensions must be positive, got {width}×{height}."
            )
        if start is None:
            start = (width - 1, height - 1)
        sx, sy = start
        if not (0 <= sx < width and 0 <= sy < height):
            raise ConfigurationError(
                f"Start cell {start} lies outside a {width}×{height} slab."
            )

        tiles: list[list[Tile]] = []
        for y in range(height):
            row: list[Tile] = []
            for x in range(width):
                edge = on_border(x, y, width, height)
                row.append(Tile(dry_time_limit=edge_dry_time if edge else inner_dry_time))
            tiles.append(row)

        tiles[sy][sx].pass_count = 1
        tiles[sy][sx].last_worked_at = 0.0
        return Slab(width=width, height=height, tiles=tiles, trowel_pos=(sx, sy))
