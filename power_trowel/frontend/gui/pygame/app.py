"""Pygame GUI frontend — fully self-contained.

Start screen, the slab with its HUD, end-of-level card and the score
board.  Keys can be held for continuous trowelling; dragging with the left
mouse button acts as a floating joystick centred where the drag began.
"""

from __future__ import annotations

import enum
from pathlib import Path

import pygame

from power_trowel.backend.engine.gameplay import LevelOutcome, RunController
from power_trowel.backend.engine.movement import resolve_joystick
from power_trowel.backend.models.highscore import LeaderboardEntry
from power_trowel.backend.models.slab import Direction
from power_trowel.config import JOY_KNOB_MARGIN, JOY_RADIUS, PASS_PERCENT, PASSES_TO_FINISH, Settings
from power_trowel.frontend.palette import tile_rgb

# ---------------------------------------------------------------------------
# Catppuccin Mocha palette
# ---------------------------------------------------------------------------
COL_BASE = (30, 30, 46)
COL_MANTLE = (24, 24, 37)
COL_SURFACE1 = (69, 71, 90)
COL_OVERLAY0 = (108, 112, 134)
COL_TEXT = (205, 214, 244)
COL_SUBTEXT = (166, 173, 200)
COL_BLUE = (137, 180, 250)
COL_GREEN = (166, 227, 161)
COL_PEACH = (250, 179, 135)
COL_YELLOW = (249, 226, 175)
COL_RED = (243, 139, 168)

# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------
WIN_W, WIN_H = 560, 680
MARGIN = 20
HUD_H = 70
BOARD_MAX_W = WIN_W - 2 * MARGIN
BOARD_MAX_H = WIN_H - HUD_H - 80
MIN_TILE = 18
FPS = 60

_KEY_DIRS = {
    pygame.K_UP: Direction.UP,
    pygame.K_w: Direction.UP,
    pygame.K_DOWN: Direction.DOWN,
    pygame.K_s: Direction.DOWN,
    pygame.K_LEFT: Direction.LEFT,
    pygame.K_a: Direction.LEFT,
    pygame.K_RIGHT: Direction.RIGHT,
    pygame.K_d: Direction.RIGHT,
}


class _Screen(enum.Enum):
    START = "start"
    PLAYING = "playing"
    ENDED = "ended"
    SCORES = "scores"


def _cx(w: int) -> int:
    return (WIN_W - w) // 2


def _blit_center(surf: pygame.Surface, rendered: pygame.Surface, y: int) -> None:
    surf.blit(rendered, (_cx(rendered.get_width()), y))


class PygameApp:
    def __init__(self, game: RunController, trowel_image: Path | None = None) -> None:
        self._game = game

        pygame.init()
        self._surf = pygame.display.set_mode((WIN_W, WIN_H))
        pygame.display.set_caption("Concrete Power Trowel")
        self._clock = pygame.time.Clock()

        self._f_big = pygame.font.SysFont("Helvetica", 34, bold=True)
        self._f_title = pygame.font.SysFont("Helvetica", 22, bold=True)
        self._f_body = pygame.font.SysFont("Helvetica", 16)
        self._f_small = pygame.font.SysFont("Helvetica", 13)

        self._trowel_img: pygame.Surface | None = None
        if trowel_image is not None and trowel_image.is_file():
            self._trowel_img = pygame.image.load(str(trowel_image)).convert_alpha()

        self._screen = _Screen.START
        self._outcome: LevelOutcome | None = None
        self._joy_center: tuple[int, int] | None = None
        self._joy_offset: tuple[int, int] = (0, 0)

    # ── helpers ─────────────────────────────────────────────────────────────

    def _refresh_top(self) -> None:
        """Ask for a fresh ranking in the background; frames draw the cached one."""
        if self._game.leaderboard is not None:
            self._game.leaderboard.refresh()

    def _top(self) -> list[LeaderboardEntry]:
        leaderboard = self._game.leaderboard
        return leaderboard.cached_top() if leaderboard is not None else []

    def _tile_layout(self) -> tuple[int, int, int]:
        """Return (tile_px, origin_x, origin_y) for the current slab."""
        slab = self._game.slab
        assert slab is not None
        tile_px = max(MIN_TILE, min(BOARD_MAX_W // slab.width, BOARD_MAX_H // slab.height))
        ox = _cx(slab.width * tile_px)
        return tile_px, ox, HUD_H + MARGIN

    # ── drawing ─────────────────────────────────────────────────────────────

    def _draw_start(self) -> None:
        self._surf.fill(COL_BASE)
        _blit_center(self._surf, self._f_big.render("Concrete Power Trowel", True, COL_TEXT), 200)
        lines = [
            ("Press any arrow key or drag the mouse to start", COL_SUBTEXT),
            ("Keyboard: Arrow keys or WASD", COL_OVERLAY0),
            ("Mouse: hold the left button and drag to steer", COL_OVERLAY0),
            ("L  scores     Esc  quit", COL_OVERLAY0),
        ]
        y = 270
        for txt, col in lines:
            _blit_center(self._surf, self._f_body.render(txt, True, col), y)
            y += 28

    def _draw_game(self) -> None:
        self._surf.fill(COL_BASE)
        game = self._game
        slab, state = game.slab, game.state
        assert slab is not None and state is not None
        finished = sum(1 for t in slab if t.finished)

        hud = (
            f"Level {game.level_index + 1}    Time {state.time_remaining:.0f}    "
            f"Stage 5 {finished}/{slab.total_tiles}"
        )
        _blit_center(self._surf, self._f_title.render(hud, True, COL_TEXT), 14)
        _blit_center(
            self._surf,
            self._f_body.render(
                f"Score {game.live_score}    Best {game.best_score}", True, COL_YELLOW
            ),
            44,
        )

        tpx, ox, oy = self._tile_layout()
        pygame.draw.rect(
            self._surf,
            COL_MANTLE,
            pygame.Rect(ox - 4, oy - 4, slab.width * tpx + 8, slab.height * tpx + 8),
            border_radius=6,
        )
        for x, y, tile in slab.cells():
            rect = pygame.Rect(ox + x * tpx, oy + y * tpx, tpx, tpx)
            pygame.draw.rect(self._surf, tile_rgb(tile, state.elapsed), rect)
            pygame.draw.rect(self._surf, COL_SURFACE1, rect, width=1)

        tx, ty = slab.trowel_pos
        pad = tpx // 10
        trowel_rect = pygame.Rect(ox + tx * tpx + pad, oy + ty * tpx + pad, tpx - 2 * pad, tpx - 2 * pad)
        if self._trowel_img is not None:
            img = pygame.transform.smoothscale(self._trowel_img, trowel_rect.size)
            self._surf.blit(img, trowel_rect.topleft)
        else:
            pygame.draw.rect(self._surf, COL_PEACH, trowel_rect, border_radius=tpx // 4)

        if self._joy_center is not None:
            cx, cy = self._joy_center
            jx, jy = self._joy_offset
            reach = JOY_RADIUS - JOY_KNOB_MARGIN
            dist = max(1.0, (jx * jx + jy * jy) ** 0.5)
            if dist > reach:
                jx, jy = int(jx * reach / dist), int(jy * reach / dist)
            pygame.draw.circle(self._surf, COL_SURFACE1, (cx, cy), JOY_RADIUS, width=3)
            pygame.draw.circle(self._surf, COL_BLUE, (cx + jx, cy + jy), JOY_KNOB_MARGIN)

        _blit_center(
            self._surf,
            self._f_small.render("Arrows / WASD  move     R  restart run     Esc  menu", True, COL_OVERLAY0),
            WIN_H - 28,
        )

    def _draw_ended(self) -> None:
        self._surf.fill(COL_BASE)
        outcome = self._outcome
        assert outcome is not None
        stats = outcome.stats

        if outcome.passed:
            _blit_center(self._surf, self._f_big.render("Level Passed!", True, COL_GREEN), 90)
            body = f"Nice! You finished {outcome.finished_pct}% of the slab at stage {PASSES_TO_FINISH}."
        else:
            _blit_center(self._surf, self._f_big.render("Game Over", True, COL_RED), 90)
            body = f"Only {outcome.finished_pct}% at stage {PASSES_TO_FINISH}. You need {PASS_PERCENT}% to pass."
        _blit_center(self._surf, self._f_body.render(body, True, COL_TEXT), 150)

        info = [
            (f"Run score: {outcome.run_score}", COL_YELLOW),
            (f"Stage 5 tiles: {stats.finished_count}/{stats.total_tiles}", COL_SUBTEXT),
            (f"Partial: {stats.partial_count}    Passes this level: {stats.total_passes}", COL_SUBTEXT),
        ]
        if outcome.leaderboard_pending:
            info.append((f"Sending score for {self._game.player_name}...", COL_OVERLAY0))
        elif outcome.leaderboard_submitted:
            info.append((f"New high score for {self._game.player_name}!", COL_PEACH))
        y = 200
        for txt, col in info:
            _blit_center(self._surf, self._f_title.render(txt, True, col), y)
            y += 38

        if not outcome.passed:
            y = self._draw_top(y + 10)

        action = "Enter  next level" if outcome.passed else "Enter  try again"
        _blit_center(self._surf, self._f_body.render(f"{action}     Esc  menu", True, COL_OVERLAY0), WIN_H - 60)

    def _draw_top(self, y: int) -> int:
        _blit_center(self._surf, self._f_title.render("Top Scores", True, COL_BLUE), y)
        y += 34
        top = self._top()
        if not top:
            _blit_center(self._surf, self._f_body.render("No scores yet.", True, COL_OVERLAY0), y)
            return y + 24
        for i, entry in enumerate(top, 1):
            row = f"{i}.  {entry.name}   {entry.score}"
            _blit_center(self._surf, self._f_body.render(row, True, COL_SUBTEXT), y)
            y += 24
        return y

    def _draw_scores(self) -> None:
        self._surf.fill(COL_BASE)
        _blit_center(self._surf, self._f_big.render("HIGH  SCORES", True, COL_TEXT), 40)
        _blit_center(
            self._surf,
            self._f_title.render(f"Best score: {self._game.best_score}", True, COL_YELLOW),
            110,
        )
        self._draw_top(170)
        _blit_center(self._surf, self._f_small.render("Esc  back", True, COL_OVERLAY0), WIN_H - 40)

    # ── event handling ──────────────────────────────────────────────────────

    def _begin(self) -> None:
        self._game.restart_run()
        self._screen = _Screen.PLAYING

    def _ev_start(self, ev: pygame.event.Event) -> bool:
        if ev.type == pygame.KEYDOWN:
            if ev.key == pygame.K_ESCAPE:
                return False
            if ev.key == pygame.K_l:
                self._refresh_top()
                self._screen = _Screen.SCORES
            elif ev.key in _KEY_DIRS:
                self._begin()
        elif ev.type == pygame.MOUSEBUTTONDOWN and ev.button == 1:
            self._begin()
            self._joy_center = ev.pos
            self._joy_offset = (0, 0)
        return True

    def _ev_game(self, ev: pygame.event.Event) -> bool:
        game = self._game
        if ev.type == pygame.KEYDOWN:
            if ev.key in _KEY_DIRS:
                game.press_direction(_KEY_DIRS[ev.key])
            elif ev.key == pygame.K_r:
                game.restart_run()
            elif ev.key == pygame.K_ESCAPE:
                game.release_direction()
                self._screen = _Screen.START
        elif ev.type == pygame.KEYUP:
            if ev.key in _KEY_DIRS:
                game.release_direction(_KEY_DIRS[ev.key])
        elif ev.type == pygame.MOUSEBUTTONDOWN and ev.button == 1:
            self._joy_center = ev.pos
            self._joy_offset = (0, 0)
        elif ev.type == pygame.MOUSEMOTION and self._joy_center is not None:
            cx, cy = self._joy_center
            self._joy_offset = (ev.pos[0] - cx, ev.pos[1] - cy)
            direction = resolve_joystick(*self._joy_offset, game.held_direction)
            if direction is None:
                game.release_direction()
            else:
                game.press_direction(direction)
        elif ev.type == pygame.MOUSEBUTTONUP and ev.button == 1:
            self._joy_center = None
            game.release_direction()
        return True

    def _ev_ended(self, ev: pygame.event.Event) -> bool:
        if ev.type == pygame.KEYDOWN:
            if ev.key in (pygame.K_RETURN, pygame.K_SPACE):
                self._game.next_level()
                self._screen = _Screen.PLAYING
            elif ev.key == pygame.K_ESCAPE:
                self._screen = _Screen.START
        return True

    def _ev_scores(self, ev: pygame.event.Event) -> bool:
        if ev.type == pygame.KEYDOWN and ev.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE, pygame.K_l):
            self._screen = _Screen.START
        return True

    # ── main loop ───────────────────────────────────────────────────────────

    def run_loop(self) -> None:
        _dispatch = {
            _Screen.START: self._ev_start,
            _Screen.PLAYING: self._ev_game,
            _Screen.ENDED: self._ev_ended,
            _Screen.SCORES: self._ev_scores,
        }
        _draw = {
            _Screen.START: self._draw_start,
            _Screen.PLAYING: self._draw_game,
            _Screen.ENDED: self._draw_ended,
            _Screen.SCORES: self._draw_scores,
        }

        running = True
        while running:
            for ev in pygame.event.get():
                if ev.type == pygame.QUIT:
                    running = False
                    break
                handler = _dispatch.get(self._screen)
                if handler and not handler(ev):
                    running = False
                    break

            if self._screen == _Screen.PLAYING:
                self._game.pump()
                outcome = self._game.tick()
                if outcome is not None:
                    self._outcome = outcome
                    self._joy_center = None
                    self._refresh_top()
                    self._screen = _Screen.ENDED

            drawer = _draw.get(self._screen)
            if drawer:
                drawer()
            pygame.display.flip()
            self._clock.tick(FPS)

        pygame.quit()


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------
def run(settings: Settings) -> None:
    """Launch the Pygame GUI (opens on the start screen)."""
    game = RunController.from_settings(settings)
    app = PygameApp(game, trowel_image=settings.data_dir / "trowel.png")
    try:
        app.run_loop()
    finally:
        game.close()
