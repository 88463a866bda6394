"""Move validation and the game-session state machine."""

from __future__ import annotations

import random
from io import BytesIO

import pytest
from PIL import Image

from backend.engine.gamegenerator import GameGenerator
from backend.engine.gameplay import GamePlay, attempt_move
from backend.engine.gamestate import Phase
from backend.errors import GenerationError, ImageLoadError
from backend.models.board import Board, Difficulty, Direction
from helpers import labels, solid_png


class _FakeGenerator:
    def __init__(self, image: bytes | None = None, error: Exception | None = None) -> None:
        self.image = image
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> bytes:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        assert self.image is not None
        return self.image


def _playing(board: Board) -> GamePlay:
    return GamePlay.from_board(board, rng=random.Random(0))


# -- attempt_move -------------------------------------------------------------


def test_clicking_the_blank_is_ignored(solved3: Board) -> None:
    assert attempt_move(solved3, 8) is solved3


def test_adjacent_click_slides_the_tile(solved3: Board) -> None:
    moved = attempt_move(solved3, 5)

    assert moved is not solved3
    assert moved.tiles[8].image == b"F"
    assert moved.current_pos(5) == 8
    assert moved.blank_pos == 5
    assert moved.tiles[5].is_empty
    assert not moved.is_solved()
    # the original value is untouched
    assert solved3.is_solved()


@pytest.mark.parametrize("target", [0, 1, 2, 3, 4, 6, 9, -1, 100])
def test_non_adjacent_clicks_are_ignored(solved3: Board, target: int) -> None:
    assert attempt_move(solved3, target) is solved3


@pytest.mark.parametrize("seed", range(5))
def test_moves_are_self_inverse(seed: int) -> None:
    board = GameGenerator.scramble(
        GameGenerator.solved(labels(4), 4), 40, rng=random.Random(seed)
    )
    for target in board.neighbors(board.blank_pos):
        old_blank = board.blank_pos
        moved = attempt_move(board, target)
        assert moved is not board
        assert attempt_move(moved, old_blank) == board


def test_legality_matches_adjacency() -> None:
    board = GameGenerator.scramble(
        GameGenerator.solved(labels(5), 5), 100, rng=random.Random(9)
    )
    blank = board.blank_pos
    for target in range(25):
        accepted = attempt_move(board, target) is not board
        assert accepted is board.is_adjacent(target, blank)


# -- session: moves and winning -----------------------------------------------


def test_accepted_moves_are_counted_and_win_is_detected(solved3: Board) -> None:
    game = _playing(solved3.swap(5, 8))
    assert game.phase is Phase.PLAYING

    assert not game.move(0)
    assert game.state.moves == 0

    assert game.move(8)  # tile F slides back home
    assert game.state.moves == 1
    assert game.is_won
    assert game.phase is Phase.WON

    assert not game.move(5)  # no play after winning
    assert game.state.moves == 1


def test_direction_moves(solved3: Board) -> None:
    game = _playing(solved3.swap(7, 8))  # blank at 7, tile H at 8

    assert not game.move_direction(Direction.UP)  # nothing below the blank
    assert game.state.moves == 0

    assert game.move_direction(Direction.LEFT)  # tile right of blank slides left
    assert game.state.moves == 1
    assert game.is_won


def test_tick_only_counts_while_playing(solved3: Board) -> None:
    game = _playing(solved3.swap(5, 8))
    game.tick()
    game.tick()
    assert game.state.elapsed == 2

    game.move(8)
    assert game.is_won
    game.tick()
    assert game.state.elapsed == 2


def test_toggle_numbers(solved3: Board) -> None:
    game = _playing(solved3)
    assert game.toggle_numbers() is True
    assert game.state.show_numbers
    assert game.toggle_numbers() is False


# -- session: image lifecycle ----------------------------------------------------


def test_load_start_give_up_cycle(photo_png: bytes) -> None:
    game = GamePlay(3, rng=random.Random(4))
    assert game.board is None
    assert not game.start()

    board = game.load_image(photo_png)
    assert board is not None and board.is_solved()
    assert game.phase is Phase.IDLE

    assert game.start()
    assert game.phase is Phase.PLAYING
    assert not game.board.is_solved()
    assert game.state.moves == 0
    assert not game.start()  # already playing

    shuffled = game.board
    for target in shuffled.neighbors(shuffled.blank_pos):
        if not attempt_move(shuffled, target).is_solved():
            assert game.move(target)
            break
    game.tick()
    assert game.phase is Phase.PLAYING
    assert game.give_up()
    assert game.phase is Phase.IDLE
    assert game.board == board
    assert game.state.moves == 0
    assert game.state.elapsed == 0
    assert not game.give_up()


def test_play_again_after_winning(solved3: Board) -> None:
    game = _playing(solved3.swap(5, 8))
    game.move(8)
    assert game.is_won
    assert game.start()
    assert game.phase is Phase.PLAYING


def test_failed_load_keeps_the_old_board(photo_png: bytes) -> None:
    game = GamePlay(3)
    board = game.load_image(photo_png)

    with pytest.raises(ImageLoadError):
        game.load_image(b"definitely not an image")

    assert game.board is board
    assert game.phase is Phase.IDLE
    assert game.state.error


def test_set_difficulty_reslices(photo_png: bytes) -> None:
    game = GamePlay(3)
    game.load_image(photo_png)

    assert game.set_difficulty(Difficulty.MEDIUM)
    assert game.size == 4
    assert game.board is not None
    assert game.board.size == 4
    assert len(game.board.tiles) == 16
    assert game.board.is_solved()


def test_set_difficulty_is_refused_mid_game(photo_png: bytes) -> None:
    game = GamePlay(3)
    game.load_image(photo_png)
    game.start()

    assert not game.set_difficulty(5)
    assert game.size == 3


def test_unknown_difficulty_is_rejected() -> None:
    with pytest.raises(ValueError):
        GamePlay(7)
    with pytest.raises(ValueError):
        GamePlay(3).set_difficulty(6)


# -- session: generation ------------------------------------------------------


def test_generate_loads_the_new_picture() -> None:
    game = GamePlay(3)
    generator = _FakeGenerator(image=solid_png(90, 90, (10, 200, 30)))

    board = game.generate("a green field", generator)

    assert generator.prompts == ["a green field"]
    assert board is not None
    assert game.board is board
    assert game.phase is Phase.IDLE
    assert game.state.error is None


def test_hard_prompt_switches_to_5x5() -> None:
    game = GamePlay(3)
    game.generate("a HARD maze", _FakeGenerator(image=solid_png(100, 100, (0, 0, 0))))
    assert game.size is Difficulty.HARD
    assert game.board is not None and game.board.size == 5


def test_blank_prompt_is_ignored() -> None:
    game = GamePlay(3)
    generator = _FakeGenerator(image=solid_png(90, 90, (0, 0, 0)))
    assert game.generate("   ", generator) is None
    assert generator.prompts == []
    assert game.phase is Phase.IDLE


def test_generation_failure_returns_to_idle(photo_png: bytes) -> None:
    game = GamePlay(3)
    board = game.load_image(photo_png)

    with pytest.raises(GenerationError):
        game.generate("anything", _FakeGenerator(error=GenerationError("no key")))

    assert game.phase is Phase.IDLE
    assert game.board is board
    assert game.state.error


def test_undecodable_generated_image_is_a_generation_error(photo_png: bytes) -> None:
    game = GamePlay(3)
    board = game.load_image(photo_png)

    with pytest.raises(GenerationError):
        game.generate("anything", _FakeGenerator(image=b"garbage"))

    assert game.phase is Phase.IDLE
    assert game.board is board


def test_superseded_generation_is_dropped(photo_png: bytes) -> None:
    game = GamePlay(3)
    newer = solid_png(60, 60, (255, 0, 0))

    class _Interrupting(_FakeGenerator):
        def generate(self, prompt: str) -> bytes:
            # The user loads another picture while this request is in flight.
            game.load_image(newer)
            return photo_png

    assert game.generate("slow", _Interrupting()) is None
    assert game.board is not None
    assert game.board.tiles[0].image == GamePlay(3).load_image(newer).tiles[0].image
    assert game.phase is Phase.IDLE


def test_failed_interrupting_load_still_ends_generation(photo_png: bytes) -> None:
    game = GamePlay(3)

    class _Interrupting(_FakeGenerator):
        def generate(self, prompt: str) -> bytes:
            # A newer load arrives mid-request and fails on its own.
            with pytest.raises(ImageLoadError):
                game.load_image(b"junk")
            return photo_png

    assert game.generate("slow", _Interrupting()) is None
    assert game.phase is Phase.IDLE
    assert game.board is None
    assert game.set_difficulty(Difficulty.MEDIUM)


def test_failed_generation_after_failed_interrupting_load(photo_png: bytes) -> None:
    game = GamePlay(3)
    board = game.load_image(photo_png)

    class _Interrupting(_FakeGenerator):
        def generate(self, prompt: str) -> bytes:
            with pytest.raises(ImageLoadError):
                game.load_image(b"junk")
            raise GenerationError("quota exceeded")

    with pytest.raises(GenerationError):
        game.generate("slow", _Interrupting())

    assert game.phase is Phase.IDLE
    assert game.board is board
    assert game.start()


# -- session: preview ---------------------------------------------------------


def test_preview_follows_the_loaded_picture(photo_png: bytes) -> None:
    game = GamePlay(3)
    assert game.preview is None

    game.load_image(photo_png)
    preview = game.preview
    assert preview is not None
    with Image.open(BytesIO(preview)) as img:
        assert img.format == "JPEG"
        assert img.size == (300, 300)

    # Re-slicing the same picture keeps the same preview.
    game.set_difficulty(Difficulty.HARD)
    assert game.preview == preview

    with pytest.raises(ImageLoadError):
        game.load_image(b"junk")
    assert game.preview == preview


def test_preview_of_a_generated_picture() -> None:
    game = GamePlay(3)
    game.generate("a wide beach", _FakeGenerator(image=solid_png(160, 90, (0, 90, 200))))
    assert game.preview is not None
    with Image.open(BytesIO(game.preview)) as img:
        assert img.size == (90, 90)
