"""Test helpers: in-memory images, labelled tiles, a recording RNG."""

from __future__ import annotations

import random
from collections import deque
from io import BytesIO

from PIL import Image

from backend.models.board import Board


def encode_png(image: Image.Image) -> bytes:
    buf = BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def solid_png(width: int, height: int, color: tuple[int, int, int]) -> bytes:
    return encode_png(Image.new("RGB", (width, height), color))


def labels(size: int) -> list[bytes]:
    """Stand-in tile images: b"A", b"B", … one per cell."""
    return [chr(ord("A") + i).encode() for i in range(size * size)]


class RecordingRandom(random.Random):
    """A seeded ``Random`` that remembers every ``choice`` it is offered."""

    def __init__(self, seed: int = 0) -> None:
        super().__init__(seed)
        self.offers: list[list[int]] = []
        self.picks: list[int] = []

    def choice(self, seq):
        self.offers.append(list(seq))
        pick = super().choice(seq)
        self.picks.append(pick)
        return pick


# -- solvability checks -------------------------------------------------------


def is_solvable(board: Board) -> bool:
    """Inversion-parity test, independent of the generator."""
    n = board.size
    order = [t.correct_pos for t in board.tiles if not t.is_empty]
    inversions = sum(
        1
        for i in range(len(order))
        for j in range(i + 1, len(order))
        if order[i] > order[j]
    )
    if n % 2 == 1:
        return inversions % 2 == 0
    blank_row_from_bottom = n - 1 - board.blank_pos // n
    return (inversions + blank_row_from_bottom) % 2 == 0


def bfs_solution_length(board: Board, limit: int) -> int | None:
    """Shortest number of slides back to solved, or ``None`` past *limit*."""
    n = board.size
    goal = tuple(range(n * n))
    start = tuple(t.correct_pos for t in board.tiles)
    blank_id = n * n - 1
    seen = {start}
    queue: deque[tuple[tuple[int, ...], int]] = deque([(start, 0)])
    while queue:
        state, depth = queue.popleft()
        if state == goal:
            return depth
        if depth == limit:
            continue
        e = state.index(blank_id)
        for nb in board.neighbors(e):
            cells = list(state)
            cells[e], cells[nb] = cells[nb], cells[e]
            nxt = tuple(cells)
            if nxt not in seen:
                seen.add(nxt)
                queue.append((nxt, depth + 1))
    return None
