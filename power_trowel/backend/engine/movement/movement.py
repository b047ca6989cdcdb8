"""Movement input shaping: rate limiting, held-direction repeat, joystick.

Everything here is polled from the host loop; nothing starts a thread or a
timer of its own.  Times are seconds from the controller's clock.
"""

from __future__ import annotations

import math
from collections.abc import Iterator

from power_trowel.backend.models.slab import Direction
from power_trowel.config import (
    DEAD_ZONE,
    DOMINANCE_RATIO,
    JOY_KNOB_MARGIN,
    JOY_RADIUS,
    MIN_STEP_MS,
    MOVE_INTERVAL_MS,
)


class MoveGate:
    """Lets a move through at most once per *min_interval_ms*."""

    def __init__(self, min_interval_ms: float = MIN_STEP_MS) -> None:
        self.min_interval = min_interval_ms / 1000.0
        self._last_accepted: float | None = None

    def accept(self, now: float) -> bool:
        if self._last_accepted is not None and now - self._last_accepted < self.min_interval:
            return False
        self._last_accepted = now
        return True

    def reset(self) -> None:
        self._last_accepted = None


class RepeatingMove:
    """A cancellable task that re-issues one direction at a fixed cadence."""

    def __init__(self, direction: Direction, interval: float, started_at: float) -> None:
        self.direction = direction
        self.interval = interval
        self.next_due = started_at + interval
        self.cancelled = False

    def due(self, now: float) -> Iterator[Direction]:
        """Yield the direction once for every period that has elapsed by *now*."""
        while not self.cancelled and now >= self.next_due:
            self.next_due += self.interval
            yield self.direction

    def cancel(self) -> None:
        self.cancelled = True


class HeldDirection:
    """Keeps at most one :class:`RepeatingMove`, keyed by the held direction.

    A new direction replaces the task outright; the old one is cancelled so
    two repeats can never run side by side.  Every direction still held is
    remembered, most recent last, so letting go of the newest key hands the
    repeat back to the one held before it.
    """

    def __init__(self, interval_ms: float = MOVE_INTERVAL_MS) -> None:
        self.interval = interval_ms / 1000.0
        self.task: RepeatingMove | None = None
        self._pressed: list[Direction] = []

    @property
    def direction(self) -> Direction | None:
        return self.task.direction if self.task else None

    def press(self, direction: Direction, now: float) -> bool:
        """Hold *direction*.  Returns True when it is a change that needs an immediate step."""
        if direction in self._pressed:
            self._pressed.remove(direction)
        self._pressed.append(direction)
        if self.task is not None and self.task.direction == direction:
            return False
        self._start(direction, now)
        return True

    def release(self, direction: Direction, now: float) -> None:
        """Let go of *direction*.

        If it was the active one and another direction is still held, that
        one repeats from *now* on.
        """
        if direction in self._pressed:
            self._pressed.remove(direction)
        if self.direction != direction:
            return
        self._stop()
        if self._pressed:
            self._start(self._pressed[-1], now)

    def cancel(self) -> None:
        """Drop every held direction."""
        self._pressed.clear()
        self._stop()

    def _start(self, direction: Direction, now: float) -> None:
        self._stop()
        self.task = RepeatingMove(direction, self.interval, now)

    def _stop(self) -> None:
        if self.task is not None:
            self.task.cancel()
            self.task = None

    def due(self, now: float) -> list[Direction]:
        if self.task is None:
            return []
        return list(self.task.due(now))


def resolve_joystick(
    dx: float,
    dy: float,
    current: Direction | None = None,
    *,
    radius: float = JOY_RADIUS,
    dead_zone: float = DEAD_ZONE,
    dominance: float = DOMINANCE_RATIO,
) -> Direction | None:
    """Turn a joystick offset (pixels from its centre) into a direction.

    Returns None inside the dead zone.  An axis wins when it is *dominance*
    times larger than the other; in the diagonal band between the two the
    *current* direction is kept so the trowel does not flicker.
    """
    dist = math.hypot(dx, dy)
    if dist < dead_zone:
        return None

    reach = radius - JOY_KNOB_MARGIN
    if dist > reach:
        scale = reach / dist
        dx, dy = dx * scale, dy * scale

    ax, ay = abs(dx), abs(dy)
    horizontal = Direction.RIGHT if dx > 0 else Direction.LEFT
    vertical = Direction.DOWN if dy > 0 else Direction.UP

    if ax > ay * dominance:
        return horizontal
    if ay > ax * dominance:
        return vertical
    if current is not None:
        return current
    return horizontal if ax >= ay else vertical
