"""Core gameplay logic — validates moves and drives a game session."""

from __future__ import annotations

import logging
import random
from typing import Protocol

from backend.engine.gamegenerator import GameGenerator
from backend.engine.gamestate import GameState, Phase
from backend.engine.imageslicer import ImageSlicer
from backend.errors import GenerationError, ImageLoadError, RenderError
from backend.models.board import Board, Difficulty, Direction
from backend.services.imagesource import ImageRef, read_image_bytes

logger = logging.getLogger(__name__)


def attempt_move(board: Board, target: int) -> Board:
    """Slide the tile at *target* into the blank.

    Returns a new board if *target* is edge-adjacent to the blank, and
    *board* itself (same object) otherwise.
    """
    blank = board.blank_pos
    if not board.is_adjacent(target, blank):
        return board
    return board.swap(target, blank)


class ImageProvider(Protocol):
    def generate(self, prompt: str) -> bytes: ...


class GamePlay:
    """Orchestrates a single game session.

    Phases: IDLE → PLAYING → WON, with GENERATING entered while waiting on
    a remote image.  Only the most recent load/generate request may
    replace the board.
    """

    def __init__(
        self,
        size: int = Difficulty.EASY,
        *,
        rng: random.Random | None = None,
        tabu_size: int = 1,
    ) -> None:
        self.size = Difficulty(size)
        self.state = GameState()
        self._rng = rng or random.Random()
        self._tabu_size = tabu_size
        self._image: bytes | None = None
        self._preview: bytes | None = None
        self._pieces: list[bytes] = []
        self._request = 0

    @classmethod
    def from_board(cls, board: Board, **kwargs) -> GamePlay:
        """Create a session playing an existing board (e.g. in tests)."""
        obj = cls(board.size, **kwargs)
        obj._pieces = [tile.image for tile in sorted(board.tiles, key=lambda t: t.correct_pos)]
        obj.state.board = board
        obj.state.phase = Phase.WON if board.is_solved() else Phase.PLAYING
        return obj

    # -- queries --------------------------------------------------------------

    @property
    def board(self) -> Board | None:
        return self.state.board

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def is_won(self) -> bool:
        return self.state.phase is Phase.WON

    @property
    def preview(self) -> bytes | None:
        """The whole source picture, square-cropped as the tiles are."""
        return self._preview

    # -- image loading --------------------------------------------------------

    def load_image(self, source: ImageRef) -> Board | None:
        """Slice *source* into a fresh solved board and go IDLE.

        On failure the previous board stays current, ``state.error`` is
        set, and the error is re-raised.  Returns ``None`` if a newer
        request superseded this one.
        """
        token = self._next_request()
        try:
            data = read_image_bytes(source)
            return self._install(data, token)
        except (ImageLoadError, RenderError) as exc:
            logger.warning("Could not load image: %s", exc)
            self.state.error = str(exc)
            raise

    def generate(self, prompt: str, generator: ImageProvider) -> Board | None:
        """Ask *generator* for an image and load it.

        Every failure is reported as ``GenerationError``; the session falls
        back to IDLE with the old board untouched.
        """
        if not prompt.strip():
            return None

        token = self._next_request()
        self._set_phase(Phase.GENERATING)
        self.state.error = None
        try:
            data = generator.generate(prompt)
            if token != self._request:
                logger.debug("Dropping generated image for superseded request %d", token)
                return None
            size = Difficulty.HARD if "hard" in prompt.lower() else self.size
            return self._install(data, token, size)
        except (GenerationError, ImageLoadError, RenderError) as exc:
            logger.warning("Image generation failed: %s", exc)
            self.state.error = "Failed to generate image. Try a simpler prompt or check API key."
            if isinstance(exc, GenerationError):
                raise
            raise GenerationError(str(exc)) from exc
        finally:
            # A superseding request may itself have failed without leaving GENERATING.
            if self.state.phase is Phase.GENERATING:
                self._set_phase(Phase.IDLE)

    def set_difficulty(self, size: int) -> bool:
        """Change grid size and re-slice the current image.

        Ignored while a game or a generation request is in flight.
        """
        size = Difficulty(size)
        if self.state.phase in (Phase.PLAYING, Phase.GENERATING):
            return False
        if self._image is None:
            self.size = size
        else:
            self._install(self._image, self._next_request(), size)
        return True

    # -- session control ------------------------------------------------------

    def start(self) -> bool:
        """Shuffle the solved board and begin play."""
        if self.state.phase not in (Phase.IDLE, Phase.WON) or not self._pieces:
            return False
        self.state.board = GameGenerator.generate(
            self._pieces, self.size, rng=self._rng, tabu_size=self._tabu_size
        )
        self.state.reset_counters()
        self._set_phase(Phase.PLAYING)
        return True

    def give_up(self) -> bool:
        """Abandon the current game and restore the solved picture."""
        if self.state.phase is not Phase.PLAYING:
            return False
        self.state.board = GameGenerator.solved(self._pieces, self.size)
        self.state.reset_counters()
        self._set_phase(Phase.IDLE)
        return True

    def tick(self) -> None:
        """Advance the clock by one second (called by the frontend timer)."""
        self.state.tick()

    def toggle_numbers(self) -> bool:
        self.state.show_numbers = not self.state.show_numbers
        return self.state.show_numbers

    # -- movement -------------------------------------------------------------

    def move(self, index: int) -> bool:
        """Move the tile at *index* into the adjacent blank.

        Returns True if the move was legal and applied.
        """
        board = self.state.board
        if self.state.phase is not Phase.PLAYING or board is None:
            return False

        moved = attempt_move(board, index)
        if moved is board:
            return False

        self.state.board = moved
        self.state.increment_moves()
        if moved.is_solved():
            self._set_phase(Phase.WON)
        return True

    def move_direction(self, direction: Direction) -> bool:
        """Slide the tile next to the blank in *direction*.

        E.g. ``Direction.UP`` moves the tile **below** the blank upward.
        """
        board = self.state.board
        if board is None:
            return False
        target = board.target_for(direction)
        if target is None:
            return False
        return self.move(target)

    # -- helpers --------------------------------------------------------------

    def _next_request(self) -> int:
        self._request += 1
        return self._request

    def _install(self, data: bytes, token: int, size: int | None = None) -> Board | None:
        size = Difficulty(size or self.size)
        pieces = ImageSlicer.slice(data, size)
        preview = ImageSlicer.preview(data)
        if token != self._request:
            logger.debug("Dropping image for superseded request %d", token)
            return None
        self.size = size
        self._image = data
        self._preview = preview
        self._pieces = pieces
        self.state.board = GameGenerator.solved(pieces, self.size)
        self.state.reset_counters()
        self.state.error = None
        self._set_phase(Phase.IDLE)
        return self.state.board

    def _set_phase(self, phase: Phase) -> None:
        if phase is not self.state.phase:
            logger.info("Phase %s → %s", self.state.phase.value, phase.value)
        self.state.phase = phase
