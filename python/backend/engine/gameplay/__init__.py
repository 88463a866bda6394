from backend.engine.gameplay.game import GamePlay, attempt_move

__all__ = ["GamePlay", "attempt_move"]
