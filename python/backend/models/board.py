"""Board model for the image slide puzzle.

A board is an immutable row-major tuple of tiles: the index of a tile in
``Board.tiles`` *is* its current grid position.  Positions are never
stored on the tile itself, so they cannot drift out of sync.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, StrEnum


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class Difficulty(IntEnum):
    EASY = 3
    MEDIUM = 4
    HARD = 5


# Offset from the blank to the tile that slides when moving in a direction.
# UP    → tile below the blank moves up
# DOWN  → tile above the blank moves down
# LEFT  → tile right of the blank moves left
# RIGHT → tile left of the blank moves right
_DIRECTION_OFFSETS: dict[Direction, tuple[int, int]] = {
    Direction.UP: (1, 0),
    Direction.DOWN: (-1, 0),
    Direction.LEFT: (0, 1),
    Direction.RIGHT: (0, -1),
}


@dataclass(frozen=True)
class Tile:
    """One piece of the sliced image, or the blank."""

    id: int
    correct_pos: int
    image: bytes = field(repr=False)
    is_empty: bool = False


@dataclass(frozen=True)
class Board:
    """An n×n arrangement of tiles with exactly one blank."""

    size: int
    tiles: tuple[Tile, ...]

    def __post_init__(self) -> None:
        if len(self.tiles) != self.size * self.size:
            raise ValueError(
                f"Expected {self.size * self.size} tiles for a "
                f"{self.size}×{self.size} board, got {len(self.tiles)}."
            )

    # -- geometry -------------------------------------------------------------

    def row_col(self, index: int) -> tuple[int, int]:
        return divmod(index, self.size)

    def in_bounds(self, index: int) -> bool:
        return 0 <= index < self.size * self.size

    def is_adjacent(self, a: int, b: int) -> bool:
        """True iff cells *a* and *b* share an edge (no diagonals, no wrap)."""
        if not (self.in_bounds(a) and self.in_bounds(b)):
            return False
        ar, ac = self.row_col(a)
        br, bc = self.row_col(b)
        return abs(ar - br) + abs(ac - bc) == 1

    def neighbors(self, index: int) -> list[int]:
        """In-bounds cells above, below, left and right of *index*."""
        r, c = self.row_col(index)
        result: list[int] = []
        for dr, dc in ((-1, 0), (1, 0), (0, -1), (0, 1)):
            nr, nc = r + dr, c + dc
            if 0 <= nr < self.size and 0 <= nc < self.size:
                result.append(nr * self.size + nc)
        return result

    def target_for(self, direction: Direction) -> int | None:
        """Index of the tile that would slide in *direction*, if any."""
        br, bc = self.row_col(self.blank_pos)
        dr, dc = _DIRECTION_OFFSETS[direction]
        tr, tc = br + dr, bc + dc
        if not (0 <= tr < self.size and 0 <= tc < self.size):
            return None
        return tr * self.size + tc

    # -- queries --------------------------------------------------------------

    @property
    def blank_pos(self) -> int:
        for index, tile in enumerate(self.tiles):
            if tile.is_empty:
                return index
        raise ValueError("Board has no blank tile.")

    def current_pos(self, tile_id: int) -> int:
        for index, tile in enumerate(self.tiles):
            if tile.id == tile_id:
                return index
        raise KeyError(tile_id)

    def tile_at(self, row: int, col: int) -> Tile:
        return self.tiles[row * self.size + col]

    def is_solved(self) -> bool:
        """Check if every tile sits at its correct position."""
        return all(
            tile.correct_pos == index for index, tile in enumerate(self.tiles)
        )

    def is_tile_correct(self, index: int) -> bool:
        return self.tiles[index].correct_pos == index

    # -- transitions ----------------------------------------------------------

    def swap(self, a: int, b: int) -> Board:
        """Return a new board with the tiles at *a* and *b* exchanged."""
        tiles = list(self.tiles)
        tiles[a], tiles[b] = tiles[b], tiles[a]
        return Board(size=self.size, tiles=tuple(tiles))
