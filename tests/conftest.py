from __future__ import annotations

import pytest

from power_trowel.backend.engine.gameplay import RunController
from power_trowel.backend.models.level import LevelDefinition, LevelRepository


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def strip_levels() -> LevelRepository:
    """Two tiny 2×1 levels — small enough to finish by hand in a test."""
    return LevelRepository.from_definitions(
        [
            LevelDefinition(width=2, height=1, time_limit=60),
            LevelDefinition(width=2, height=1, time_limit=60),
        ]
    )


@pytest.fixture()
def controller(clock: FakeClock) -> RunController:
    """Controller over the default level sequence, started on level 1."""
    game = RunController(clock=clock)
    game.start_level(0)
    return game
