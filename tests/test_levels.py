"""Level definitions and YAML loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from power_trowel.backend.models.level import LevelDefinition, LevelRepository
from power_trowel.backend.models.slab import ConfigurationError

# -- helpers ------------------------------------------------------------------


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "levels.yaml"
    path.write_text(text, encoding="utf-8")
    return path


# -- default sequence ---------------------------------------------------------


def test_default_levels_in_order() -> None:
    repo = LevelRepository()
    assert [(lv.width, lv.height, lv.time_limit) for lv in repo.all()] == [
        (6, 6, 60),
        (8, 8, 70),
        (8, 10, 80),
        (10, 10, 95),
        (12, 10, 110),
    ]


def test_index_wraps() -> None:
    repo = LevelRepository()
    assert repo.wrap(5) == 0
    assert repo.get(6) == repo.get(1)


def test_all_returns_a_copy() -> None:
    repo = LevelRepository()
    repo.all().clear()
    assert len(repo) == 5


# -- LevelDefinition ------------------------------------------------------------


def test_definition_is_frozen() -> None:
    level = LevelDefinition(6, 6, 60)
    with pytest.raises(AttributeError):
        level.width = 7  # type: ignore[misc]


@pytest.mark.parametrize("width,height", [(0, 4), (4, 0), (-2, 3)])
def test_definition_rejects_empty_slab(width: int, height: int) -> None:
    with pytest.raises(ConfigurationError):
        LevelDefinition(width, height, 60)


def test_definition_rejects_non_positive_time() -> None:
    with pytest.raises(ConfigurationError, match="time limit"):
        LevelDefinition(4, 4, 0)


# -- loading from YAML ------------------------------------------------------------


def test_custom_file(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "levels:\n"
        "  - {width: 3, height: 2, time_limit: 30}\n"
        "  - {width: 4, height: 4, time_limit: 45.5}\n",
    )
    repo = LevelRepository(path)
    assert repo.all() == [LevelDefinition(3, 2, 30.0), LevelDefinition(4, 4, 45.5)]
    assert repo.path == path


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        LevelRepository(tmp_path / "nope.yaml")


@pytest.mark.parametrize(
    "text,match",
    [
        ("", "'levels' list"),
        ("levels: 3\n", "'levels' list"),
        ("levels: []\n", "empty"),
        ("levels:\n  - 5\n", "not a mapping"),
        ("levels:\n  - {width: 3, height: 3}\n", "missing time_limit"),
        ("levels:\n  - {width: x, height: 3, time_limit: 10}\n", "width must be a whole number"),
        ("levels:\n  - {width: 6.9, height: 6, time_limit: 60}\n", "width must be a whole number"),
        ("levels:\n  - {width: true, height: 6, time_limit: 60}\n", "width must be a whole number"),
        ("levels:\n  - {width: 6, height: 2.0, time_limit: 60}\n", "height must be a whole number"),
        ("levels:\n  - {width: 6, height: 6, time_limit: true}\n", "time_limit must be a number"),
        ("levels:\n  - {width: 6, height: 6, time_limit: '60'}\n", "time_limit must be a number"),
        ("levels:\n  - {width: 0, height: 3, time_limit: 10}\n", "level 1"),
        ("levels: [\n", "invalid YAML"),
    ],
)
def test_invalid_files(tmp_path: Path, text: str, match: str) -> None:
    with pytest.raises(ConfigurationError, match=match):
        LevelRepository(_write(tmp_path, text))


def test_from_definitions_needs_a_level() -> None:
    with pytest.raises(ConfigurationError):
        LevelRepository.from_definitions([])
