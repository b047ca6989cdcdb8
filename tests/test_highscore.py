"""Best-score storage, initials and ranking rules."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from power_trowel.backend.models.highscore import (
    BestScoreStore,
    LeaderboardEntry,
    normalize_initials,
    qualifies,
    rank,
)
from power_trowel.config import BEST_SCORE_KEY

# -- initials -----------------------------------------------------------------


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("abc", "ABC"),
        ("jdoe", "JDO"),
        ("a1-b", "AB"),
        ("  x  ", "X"),
        ("123", "AAA"),
        ("", "AAA"),
        (None, "AAA"),
    ],
)
def test_normalize_initials(raw: str | None, expected: str) -> None:
    assert normalize_initials(raw) == expected


def test_normalize_initials_custom_default() -> None:
    assert normalize_initials("!!", default="ZZZ") == "ZZZ"


# -- ranking --------------------------------------------------------------------


def _entries(*scores: int) -> list[LeaderboardEntry]:
    return [LeaderboardEntry(f"P{i}", s) for i, s in enumerate(scores)]


def test_rank_sorts_and_truncates() -> None:
    ranked = rank(_entries(10, 50, 30, 70, 20, 60), size=5)
    assert [e.score for e in ranked] == [70, 60, 50, 30, 20]


def test_qualifies_while_board_has_room() -> None:
    assert qualifies(0, rank(_entries(10, 20)), size=5)


def test_qualifies_must_beat_last_place() -> None:
    top = rank(_entries(50, 40, 30, 20, 10), size=5)
    assert qualifies(11, top, size=5)
    assert not qualifies(10, top, size=5)
    assert not qualifies(3, top, size=5)


# -- BestScoreStore ---------------------------------------------------------------


def test_best_score_starts_at_zero(tmp_path: Path) -> None:
    assert BestScoreStore(tmp_path / "best.json").best == 0


def test_best_score_only_rises(tmp_path: Path) -> None:
    path = tmp_path / "best.json"
    store = BestScoreStore(path)

    assert store.observe(40)
    assert not store.observe(40)
    assert not store.observe(12)
    assert store.observe(41)
    assert store.best == 41

    assert json.loads(path.read_text(encoding="utf-8")) == {BEST_SCORE_KEY: 41}
    assert BestScoreStore(path).best == 41


def test_nothing_written_until_a_best_is_set(tmp_path: Path) -> None:
    path = tmp_path / "best.json"
    store = BestScoreStore(path)
    store.observe(0)
    assert not path.exists()


def test_creates_missing_directories(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "dir" / "best.json"
    BestScoreStore(path).observe(3)
    assert path.exists()


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"concreteGameBestScore": "many"}'])
def test_unreadable_file_is_logged_and_ignored(
    tmp_path: Path, caplog: pytest.LogCaptureFixture, content: str
) -> None:
    path = tmp_path / "best.json"
    path.write_text(content, encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        store = BestScoreStore(path)

    assert store.best == 0
    assert "Could not load best score" in caplog.text


def test_unwritable_path_is_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "best.json"
    path.mkdir()  # a directory where the file should be
    with caplog.at_level(logging.WARNING):
        store = BestScoreStore(path)
        assert store.observe(9)

    assert store.best == 9
    assert "Could not save best score" in caplog.text
