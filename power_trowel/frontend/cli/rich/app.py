"""Rich terminal frontend — the slab as a live-updating coloured grid.

One key press is one trowel step.  Holding a key relies on the terminal's
own auto-repeat, which the controller's move gate keeps in check.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Future

import rich.box
from rich.align import Align
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from power_trowel.backend.engine.gameplay import LevelOutcome, RunController
from power_trowel.backend.models.slab import Direction
from power_trowel.config import PASS_PERCENT, PASSES_TO_FINISH, Settings
from power_trowel.frontend.cli.input_handler import get_key, get_key_timeout
from power_trowel.frontend.palette import tile_hex

console = Console()

FRAME_SECONDS = 0.05
POLL_SECONDS = 0.2

_DIRECTIONS = {
    "up": Direction.UP,
    "down": Direction.DOWN,
    "left": Direction.LEFT,
    "right": Direction.RIGHT,
}


# -- slab rendering -----------------------------------------------------------


def _render_slab(game: RunController) -> Table:
    """Return a Rich Table with one shaded cell per tile."""
    slab = game.slab
    assert slab is not None and game.state is not None
    elapsed = game.state.elapsed
    table = Table(
        show_header=False,
        show_edge=True,
        box=rich.box.SQUARE,
        border_style="grey50",
        padding=0,
        collapse_padding=True,
    )
    for _ in range(slab.width):
        table.add_column(width=2, justify="center")

    tx, ty = slab.trowel_pos
    for y, row in enumerate(slab.tiles):
        cells: list[Text] = []
        for x, tile in enumerate(row):
            bg = tile_hex(tile, elapsed)
            if (x, y) == (tx, ty):
                cells.append(Text("◆ ", style=f"bold dark_orange on {bg}"))
            else:
                cells.append(Text("  ", style=f"on {bg}"))
        table.add_row(*cells)
    return table


def _hud(game: RunController) -> Text:
    assert game.state is not None and game.slab is not None
    finished = sum(1 for t in game.slab if t.finished)
    hud = Text()
    hud.append("  Level: ", style="dim")
    hud.append(str(game.level_index + 1), style="bold yellow")
    hud.append("   Time: ", style="dim")
    hud.append(f"{game.state.time_remaining:>3.0f}", style="bold yellow")
    hud.append("   Stage 5: ", style="dim")
    hud.append(f"{finished}/{game.slab.total_tiles}", style="bold green")
    hud.append("   Score: ", style="dim")
    hud.append(str(game.live_score), style="bold yellow")
    hud.append("   Best: ", style="dim")
    hud.append(str(game.best_score), style="bold cyan")
    return hud


def _controls() -> Text:
    controls = Text()
    controls.append("  ↑↓←→", style="bold cyan")
    controls.append(" / ", style="dim")
    controls.append("WASD", style="bold cyan")
    controls.append("  trowel   ", style="dim")
    controls.append("R", style="bold cyan")
    controls.append("  restart run   ", style="dim")
    controls.append("Q", style="bold cyan")
    controls.append("  back", style="dim")
    return controls


def _game_view(game: RunController) -> Panel:
    return Panel(
        Group(Align.center(_render_slab(game)), Text(""), Align.center(_hud(game))),
        title="[bold]Power Trowel[/bold]",
        subtitle=_controls(),
        border_style="bright_blue",
        padding=(1, 2),
    )


# -- end of level ---------------------------------------------------------------


def _leaderboard_table(game: RunController) -> Table | Text:
    if game.leaderboard is None:
        return Text("")
    top = game.leaderboard.cached_top()
    if not top:
        return Text("Top scores: no scores yet.", style="dim")
    table = Table(title="Top Scores", box=rich.box.ROUNDED, border_style="dim")
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Name", style="bold")
    table.add_column("Score", justify="right", style="yellow")
    for i, entry in enumerate(top, 1):
        table.add_row(str(i), entry.name, str(entry.score))
    return table


def _draw_outcome(game: RunController, outcome: LevelOutcome) -> None:
    console.clear()
    stats = outcome.stats
    if outcome.passed:
        title = "[bold green]Level Passed![/bold green]"
        body = f"Nice! You finished {outcome.finished_pct}% of the slab at stage {PASSES_TO_FINISH}."
    else:
        title = "[bold red]Game Over[/bold red]"
        body = (
            f"You only got {outcome.finished_pct}% of the slab to stage {PASSES_TO_FINISH}. "
            f"You need {PASS_PERCENT}% to pass."
        )

    details = Text()
    details.append("Run score: ", style="dim")
    details.append(f"{outcome.run_score}\n", style="bold yellow")
    details.append(
        f"Stage 5 tiles: {stats.finished_count}/{stats.total_tiles} ({outcome.finished_pct}%)"
        f"  ·  Partial: {stats.partial_count}"
        f"  ·  Passes this level: {stats.total_passes}",
        style="dim",
    )

    parts: list = [Text(body), Text(""), details]
    if outcome.leaderboard_pending:
        parts.append(Text(f"\nSending score for {game.player_name}...", style="dim"))
    elif outcome.leaderboard_submitted:
        parts.append(Text(f"\nNew high score for {game.player_name}!", style="bold magenta"))
    if not outcome.passed:
        parts += [Text(""), Align.center(_leaderboard_table(game))]

    action = "Next level ▶" if outcome.passed else "Try again"
    parts.append(Text(f"\nEnter: {action}    Q: back", style="dim"))

    console.print()
    console.print(Align.center(Panel(Group(*parts), title=title, border_style="bright_blue", padding=(1, 2))))


def _draw_help() -> None:
    console.clear()
    text = Text(
        "Goal:\n"
        f"- Get at least {PASS_PERCENT}% of tiles to stage {PASSES_TO_FINISH} "
        f"({PASSES_TO_FINISH} passes) to pass the level.\n"
        "- Your score carries forward until you fail.\n"
        "- Tiles dry out if left alone; edges dry first.\n"
        "- Move with the arrow keys or WASD.\n"
    )
    console.print(Align.center(Panel(text, title="[bold]Help[/bold]", border_style="bright_blue")))
    console.print(Align.center(Text("Press any key to go back.", style="dim")))
    get_key()


def _wait_key(pending: Future | None, redraw: Callable[[], None]) -> str:
    """Block for a key, redrawing once when *pending* completes in the meantime."""
    while True:
        key = get_key_timeout(POLL_SECONDS)
        if key is not None:
            return key
        if pending is not None and pending.done():
            pending = None
            redraw()


def _draw_scores(game: RunController) -> None:
    console.clear()
    body = Group(
        Align.center(Text(f"Best score: {game.best_score}", style="bold cyan")),
        Text(""),
        Align.center(_leaderboard_table(game)),
    )
    console.print(Align.center(Panel(body, title="[bold]HIGH  SCORES[/bold]", border_style="bright_blue")))
    console.print(Align.center(Text("\n  Press any key to go back.\n", style="dim")))


def _show_scores(game: RunController) -> None:
    pending = game.leaderboard.refresh() if game.leaderboard is not None else None
    _draw_scores(game)
    _wait_key(pending, lambda: _draw_scores(game))


# -- game loop --------------------------------------------------------------------


def _play_level(game: RunController) -> LevelOutcome | None:
    """Run one level until it ends (outcome) or the player backs out (None)."""
    with Live(_game_view(game), console=console, auto_refresh=False, screen=True) as live:
        while True:
            key = get_key_timeout(FRAME_SECONDS)
            if key in _DIRECTIONS:
                game.on_move(_DIRECTIONS[key])
            elif key == "restart":
                game.restart_run()
            elif key == "quit":
                return None

            outcome = game.tick()
            live.update(_game_view(game), refresh=True)
            if outcome is not None:
                return outcome


def _play_run(game: RunController) -> None:
    game.restart_run()
    while True:
        outcome = _play_level(game)
        if outcome is None:
            return
        _draw_outcome(game, outcome)
        while True:
            pending = outcome.submission if outcome.leaderboard_pending else None
            key = _wait_key(pending, lambda: _draw_outcome(game, outcome))
            if key == "enter":
                game.next_level()
                break
            if key == "quit":
                return


# -- menu loop ----------------------------------------------------------------------


def _draw_menu(game: RunController) -> None:
    console.clear()
    opts = Text()
    opts.append("  1", style="bold cyan")
    opts.append("  Play    ")
    opts.append("2", style="bold yellow")
    opts.append("  Scores    ")
    opts.append("H", style="dim bold")
    opts.append("  Help    ", style="dim")
    opts.append("Q", style="dim bold")
    opts.append("  Quit", style="dim")

    body = Group(
        Text(""),
        Align.center(Text(f"{len(game.levels)} levels  ·  best {game.best_score}", style="dim")),
        Text(""),
        Align.center(opts),
        Text(""),
    )
    console.print()
    console.print(
        Align.center(
            Panel(body, title="[bold]C O N C R E T E   P O W E R   T R O W E L[/bold]",
                  border_style="bright_blue", padding=(1, 4))
        )
    )


def run(settings: Settings) -> None:
    """Launch the Rich CLI with interactive menu."""
    game = RunController.from_settings(settings)
    try:
        _menu(game)
    finally:
        game.close()


def _menu(game: RunController) -> None:
    while True:
        _draw_menu(game)
        key = get_key()

        if key == "quit":
            console.clear()
            console.print(Align.center(Text("\nGoodbye!\n", style="bold cyan")))
            return
        if key in ("1", "enter"):
            _play_run(game)
        elif key in ("2", "scores"):
            _show_scores(game)
        elif key == "help":
            _draw_help()
