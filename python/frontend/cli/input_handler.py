"""Single-keypress reader for the terminal frontend.

Maps arrow keys, WASD and the puzzle's command keys to action strings
without waiting for Enter.  POSIX terminals use tty+termios, Windows uses
msvcrt.
"""

from __future__ import annotations

import os
import sys

_KEY_MAP: dict[str, str] = {
    "w": "up",
    "s": "down",
    "a": "left",
    "d": "right",
    "q": "quit",
    "\x03": "quit",  # Ctrl-C
    "g": "giveup",
    "n": "numbers",
    "i": "generate",
    "o": "open",
    "p": "peek",
    " ": "start",
    "\r": "start",
    "\n": "start",
}

_ARROW_MAP: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
}

_ESCAPE_WAIT = 0.1  # seconds to wait for the rest of an escape sequence


def _resolve(ch: str) -> str:
    """Map a raw character to its action string."""
    action = _KEY_MAP.get(ch.lower())
    if action is not None:
        return action
    return ch if ch.isprintable() else ""


# -- POSIX --------------------------------------------------------------------


def _read_posix(timeout: float | None) -> str | None:
    import select
    import termios
    import tty

    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)

    def pending(wait: float | None) -> bool:
        ready, _, _ = select.select([fd], [], [], wait)
        return bool(ready)

    def read1() -> str:
        # os.read is unbuffered, so select() still sees the rest of a
        # multi-byte sequence.
        return os.read(fd, 1).decode("utf-8", errors="ignore")

    try:
        tty.setraw(fd)
        if not pending(timeout):
            return None
        ch = read1()
        if ch != "\x1b":
            return _resolve(ch)
        if not pending(_ESCAPE_WAIT) or read1() != "[":
            return "quit"  # bare Escape
        if not pending(_ESCAPE_WAIT):
            return ""
        return _ARROW_MAP.get(read1(), "")
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)


# -- Windows ------------------------------------------------------------------


def _read_windows(timeout: float | None) -> str | None:
    import msvcrt  # type: ignore[import-not-found]
    import time

    if timeout is not None:
        end = time.monotonic() + timeout
        while not msvcrt.kbhit():
            if time.monotonic() >= end:
                return None
            time.sleep(0.02)

    ch = msvcrt.getwch()
    if ch in ("\x00", "\xe0"):
        return {"H": "up", "P": "down", "K": "left", "M": "right"}.get(
            msvcrt.getwch(), ""
        )
    if ch == "\x1b":
        return "quit"
    return _resolve(ch)


_read = _read_windows if os.name == "nt" else _read_posix


# -- public API ---------------------------------------------------------------


def get_key_timeout(timeout: float) -> str | None:
    """Wait up to *timeout* seconds for a key and return its action string.

    Returns ``None`` if no key arrived.  Otherwise one of:
        "up", "down", "left", "right"  — slide a tile
        "start"                        — Enter / Space
        "giveup"                       — g
        "numbers"                      — n (toggle position overlay)
        "generate"                     — i (prompt for an AI image)
        "open"                         — o (load an image file or URL)
        "peek"                         — p (show the whole picture)
        "quit"                         — q / Ctrl-C / Escape
        "<char>"                       — unmapped printable char
        ""                             — unrecognised key
    """
    return _read(timeout)
