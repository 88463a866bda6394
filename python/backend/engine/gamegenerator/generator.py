"""Generates solved and solvable-shuffled puzzle boards."""

from __future__ import annotations

import logging
import random
from collections import deque
from collections.abc import Sequence

from backend.models.board import Board, Tile

logger = logging.getLogger(__name__)

SHUFFLE_STEPS_PER_SIZE = 20


class GameGenerator:
    """Creates solvable puzzles by walking the blank away from solved."""

    @staticmethod
    def solved(images: Sequence[bytes], size: int) -> Board:
        """Return the goal-state board (tiles in order, blank bottom-right)."""
        count = size * size
        if len(images) != count:
            raise ValueError(
                f"Expected {count} tile images for a {size}×{size} board, "
                f"got {len(images)}."
            )
        tiles = tuple(
            Tile(id=i, correct_pos=i, image=images[i], is_empty=(i == count - 1))
            for i in range(count)
        )
        return Board(size=size, tiles=tiles)

    @staticmethod
    def default_steps(size: int) -> int:
        return size * SHUFFLE_STEPS_PER_SIZE

    @staticmethod
    def scramble(
        board: Board,
        steps: int,
        *,
        rng: random.Random | None = None,
        tabu_size: int = 1,
    ) -> Board:
        """Return a copy of *board* after *steps* random legal moves.

        The last *tabu_size* cells the blank left are skipped when picking
        the next move, unless nothing else is available.  Every step is a
        legal slide, so the result is always solvable.
        """
        rng = rng or random.Random()
        tiles = list(board.tiles)
        blank = board.blank_pos
        tabu: deque[int] = deque(maxlen=max(0, tabu_size))

        for _ in range(steps):
            neighbors = board.neighbors(blank)
            if not neighbors:
                break
            candidates = [pos for pos in neighbors if pos not in tabu]
            target = rng.choice(candidates or neighbors)
            tiles[blank], tiles[target] = tiles[target], tiles[blank]
            tabu.append(blank)
            blank = target

        return Board(size=board.size, tiles=tuple(tiles))

    @staticmethod
    def generate(
        images: Sequence[bytes],
        size: int,
        *,
        steps: int | None = None,
        rng: random.Random | None = None,
        tabu_size: int = 1,
    ) -> Board:
        """Return a random *solvable* board that is not already solved."""
        solved = GameGenerator.solved(images, size)
        if steps is None:
            steps = GameGenerator.default_steps(size)
        logger.debug(
            "Scrambling %d×%d board with %d steps (tabu %d)", size, size, steps, tabu_size
        )

        board = GameGenerator.scramble(solved, steps, rng=rng, tabu_size=tabu_size)
        # A walk can wander back home; try again unless no moves were asked for.
        while steps > 0 and board.is_solved():
            board = GameGenerator.scramble(solved, steps, rng=rng, tabu_size=tabu_size)
        return board
