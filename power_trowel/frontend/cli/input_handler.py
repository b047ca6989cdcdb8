"""Single-keypress reader for the terminal frontend.

Arrow keys and WASD move the trowel; a handful of letters drive the menus.
Reads raw bytes via tty/termios on macOS / Linux and msvcrt on Windows.
"""

from __future__ import annotations

import os
import sys
import time

# -- key mapping ---------------------------------------------------------------

_KEY_MAP: dict[str, str] = {
    "w": "up",
    "s": "down",
    "a": "left",
    "d": "right",
    "q": "quit",
    "\x03": "quit",  # Ctrl-C
    "r": "restart",
    "h": "help",
    "?": "help",
    "l": "scores",
    " ": "enter",
    "\r": "enter",
    "\n": "enter",
}

# ESC [ <letter> on Unix, 0xE0/0x00 + <letter> on Windows.
_ARROW_MAP: dict[str, str] = {"A": "up", "B": "down", "C": "right", "D": "left"}
_WIN_ARROW_MAP: dict[str, str] = {"H": "up", "P": "down", "M": "right", "K": "left"}


def _resolve(ch: str) -> str:
    return _KEY_MAP.get(ch.lower(), ch if ch.isprintable() else "")


# -- Windows -------------------------------------------------------------------


def _read_windows(timeout: float | None) -> str | None:
    import msvcrt  # type: ignore[import-not-found]

    end = None if timeout is None else time.monotonic() + timeout
    while not msvcrt.kbhit():
        if end is not None and time.monotonic() >= end:
            return None
        time.sleep(0.01)

    ch = msvcrt.getwch()
    if ch in ("\x00", "\xe0"):
        return _WIN_ARROW_MAP.get(msvcrt.getwch(), "")
    if ch == "\x1b":
        return "quit"
    return _resolve(ch)


# -- Unix ----------------------------------------------------------------------


def _read_unix(timeout: float | None) -> str | None:
    import select
    import termios
    import tty

    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)

    def _next(wait: float | None) -> str | None:
        ready, _, _ = select.select([fd], [], [], wait)
        if not ready:
            return None
        # os.read keeps select() honest about the rest of an escape sequence.
        return os.read(fd, 1).decode("utf-8", errors="ignore")

    try:
        tty.setraw(fd)
        ch = _next(timeout)
        if ch is None:
            return None
        if ch != "\x1b":
            return _resolve(ch)

        ch2 = _next(0.05)
        if ch2 != "[":
            return "quit"  # bare Escape
        ch3 = _next(0.05)
        return _ARROW_MAP.get(ch3 or "", "")
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)


_read = _read_windows if os.name == "nt" else _read_unix


# -- public API ----------------------------------------------------------------


def get_key() -> str:
    """Block until a key is pressed and return its action name.

    Possible return values:
        "up", "down", "left", "right"  — movement
        "quit"                         — q / Ctrl-C / Escape
        "restart"                      — r
        "help"                         — h / ?
        "scores"                       — l (leaderboard)
        "enter"                        — Enter / Space
        "<char>"                       — unmapped printable char
        ""                             — unrecognised key
    """
    key = _read(None)
    return key or ""


def get_key_timeout(timeout: float) -> str | None:
    """Like :func:`get_key`, but return None if nothing arrives within *timeout* seconds."""
    return _read(timeout)
