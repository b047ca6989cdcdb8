#!/usr/bin/env python3
"""Concrete Power Trowel.

Usage::

    power-trowel                     # interactive menu
    power-trowel -f rich             # Rich terminal
    power-trowel -f pygame           # Pygame GUI
    power-trowel --scores            # best score and leaderboard
"""

from __future__ import annotations

import importlib
import logging
from enum import StrEnum
from pathlib import Path
from typing import Optional

import typer
from rich.logging import RichHandler

from power_trowel.backend.models.highscore import BestScoreStore
from power_trowel.backend.models.leaderboard import LocalLeaderboard, RemoteLeaderboard
from power_trowel.backend.models.level import LevelRepository
from power_trowel.backend.models.slab import ConfigurationError
from power_trowel.config import LeaderboardTrigger, ScorePolicy, Settings

logger = logging.getLogger(__name__)


# -- frontend registry -------------------------------------------------------


class Frontend(StrEnum):
    rich = "rich"
    pygame = "pygame"


_RUNNERS = {
    Frontend.rich: "power_trowel.frontend.cli.rich.app",
    Frontend.pygame: "power_trowel.frontend.gui.pygame.app",
}


# -- helpers ------------------------------------------------------------------


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _print_scores(settings: Settings) -> None:
    best = BestScoreStore(settings.best_score_path)
    if settings.leaderboard_url:
        leaderboard = RemoteLeaderboard(settings.leaderboard_url)
    else:
        leaderboard = LocalLeaderboard(settings.leaderboard_path)

    print("\n  === HIGH SCORES ===")
    print(f"\n  Best score: {best.best}")
    entries = leaderboard.fetch_top()
    if not entries:
        print("  No leaderboard entries yet.\n")
        return
    print()
    for i, e in enumerate(entries, 1):
        print(f"  {i}. {e.name}  {e.score:>6}")
    print()


def _menu_loop(settings: Settings) -> None:
    while True:
        print()
        print("  ==========================================")
        print("     C O N C R E T E   P O W E R   T R O W E L")
        print("  ==========================================")
        print()
        print("  1.  Play  (Rich Terminal)")
        print("  2.  Play  (Pygame GUI)")
        print("  3.  View High Scores")
        print("  0.  Quit")
        print()

        choice = input("  Select: ").strip()

        if choice == "0":
            print("\n  Goodbye!\n")
            return

        if choice in ("1", "2"):
            frontend = Frontend.rich if choice == "1" else Frontend.pygame
            importlib.import_module(_RUNNERS[frontend]).run(settings)
        elif choice == "3":
            _print_scores(settings)
        else:
            print("  Unknown option.")


# -- CLI entry point ----------------------------------------------------------

app = typer.Typer(add_completion=False)


@app.command()
def main(
    frontend: Optional[Frontend] = typer.Option(
        None, "-f", "--frontend",
        help="Frontend to launch. Omit for interactive menu.",
    ),
    levels: Optional[Path] = typer.Option(
        None, "--levels",
        exists=True, dir_okay=False,
        help="YAML file with the level sequence.",
    ),
    name: Optional[str] = typer.Option(
        None, "-n", "--name",
        help="Your initials for the leaderboard (3 letters).",
    ),
    score_policy: Optional[ScorePolicy] = typer.Option(
        None, "--score-policy",
        help="accumulate: passes add up across levels; live: last level only.",
    ),
    leaderboard_trigger: Optional[LeaderboardTrigger] = typer.Option(
        None, "--leaderboard-trigger",
        help="Offer scores to the leaderboard only when a run fails, or always.",
    ),
    leaderboard_url: Optional[str] = typer.Option(
        None, "--leaderboard-url",
        help="Base URL of a remote leaderboard service.",
    ),
    data_dir: Optional[Path] = typer.Option(
        None, "--data-dir",
        file_okay=False,
        help="Where best score and local leaderboard are kept.",
    ),
    scores: bool = typer.Option(
        False, "--scores",
        help="Show high scores and exit.",
    ),
    log_level: str = typer.Option(
        "WARNING", "--log-level",
        help="DEBUG, INFO, WARNING or ERROR.",
    ),
) -> None:
    """Concrete Power Trowel."""
    configure_logging(log_level)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    if levels is not None:
        settings.levels_file = levels
    if name is not None:
        settings.player_name = name
    if score_policy is not None:
        settings.score_policy = score_policy
    if leaderboard_trigger is not None:
        settings.leaderboard_trigger = leaderboard_trigger
    if leaderboard_url is not None:
        settings.leaderboard_url = leaderboard_url
    if data_dir is not None:
        settings.data_dir = data_dir

    # Fail early on a broken levels file rather than mid-menu.
    try:
        LevelRepository(settings.levels_file)
    except (ConfigurationError, FileNotFoundError) as e:
        logger.error("%s", e)
        raise typer.Exit(code=2) from e

    if scores:
        _print_scores(settings)
        return

    if frontend is None:
        _menu_loop(settings)
        return

    importlib.import_module(_RUNNERS[frontend]).run(settings)


if __name__ == "__main__":
    app()
