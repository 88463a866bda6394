from backend.models.board import Board, Difficulty, Direction, Tile

__all__ = ["Board", "Difficulty", "Direction", "Tile"]
