"""Tracks the mutable state of a game session."""

from __future__ import annotations

from enum import StrEnum

from backend.models.board import Board


class Phase(StrEnum):
    IDLE = "idle"
    GENERATING = "generating"
    PLAYING = "playing"
    WON = "won"


class GameState:
    """Holds the current board, phase, move counter, and elapsed seconds.

    Time only advances through ``tick()``; nothing here reads the clock.
    """

    def __init__(self, board: Board | None = None) -> None:
        self.board = board
        self.phase: Phase = Phase.IDLE
        self.moves: int = 0
        self.elapsed: int = 0
        self.show_numbers: bool = False
        self.error: str | None = None

    # -- time tracking --------------------------------------------------------

    def tick(self) -> None:
        if self.phase is Phase.PLAYING:
            self.elapsed += 1

    # -- moves ----------------------------------------------------------------

    def increment_moves(self) -> None:
        self.moves += 1

    def reset_counters(self) -> None:
        self.moves = 0
        self.elapsed = 0
