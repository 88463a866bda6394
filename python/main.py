#!/usr/bin/env python3
"""Image Slide Puzzle.

Usage::

    python main.py                          # Rich terminal, default picture
    python main.py -f pygame -s 4           # Pygame GUI, 4×4
    python main.py -i ~/Pictures/cat.jpg    # slice a local image
    python main.py --prompt "a cat astronaut"   # AI image (needs GEMINI_API_KEY)
"""

import importlib
import logging
import sys
from enum import StrEnum
from pathlib import Path
from typing import Optional

import typer
from rich.logging import RichHandler

ROOT = Path(__file__).resolve().parent  # python/

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.engine.gameplay import GamePlay  # noqa: E402
from backend.errors import PuzzleError  # noqa: E402
from backend.services import ImageGenerator  # noqa: E402
from backend.services.imagegen import DEFAULT_MODEL  # noqa: E402

DEFAULT_IMAGE = "https://picsum.photos/800/800"

logger = logging.getLogger("puzzle")


# -- frontend registry -------------------------------------------------------


class Frontend(StrEnum):
    rich = "rich"
    pygame = "pygame"


_RUNNERS = {
    Frontend.rich: "frontend.cli.rich.app",
    Frontend.pygame: "frontend.gui.pygame.app",
}


# -- helpers ------------------------------------------------------------------


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbose)],
    )


def _prepare_session(
    size: int, image: str, prompt: Optional[str], generator: ImageGenerator
) -> GamePlay:
    game = GamePlay(size)
    if prompt:
        try:
            game.generate(prompt, generator)
            return game
        except PuzzleError as exc:
            logger.warning("Falling back to %s: %s", image, exc)
    try:
        game.load_image(image)
    except PuzzleError as exc:
        # The frontends can still open or generate another picture.
        logger.error("Could not load %s: %s", image, exc)
    return game


# -- CLI entry point ----------------------------------------------------------

app = typer.Typer(add_completion=False)


@app.command()
def main(
    frontend: Frontend = typer.Option(
        Frontend.rich, "-f", "--frontend",
        help="Frontend to launch.",
    ),
    size: int = typer.Option(
        3, "-s", "--size",
        min=3, max=5,
        help="Grid size (3-5).",
    ),
    image: str = typer.Option(
        DEFAULT_IMAGE, "-i", "--image",
        envvar="PUZZLE_IMAGE",
        help="Image file path or URL to slice.",
    ),
    prompt: Optional[str] = typer.Option(
        None, "--prompt",
        help="Generate the picture from this description instead.",
    ),
    api_key: Optional[str] = typer.Option(
        None, "--api-key",
        envvar="GEMINI_API_KEY",
        help="API key for the image generator.",
    ),
    model: str = typer.Option(
        DEFAULT_MODEL, "--model",
        help="Image generation model.",
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose",
        help="Show debug logging.",
    ),
) -> None:
    """Image Slide Puzzle."""
    _configure_logging(verbose)
    generator = ImageGenerator(api_key, model=model)
    game = _prepare_session(size, image, prompt, generator)

    mod = importlib.import_module(_RUNNERS[frontend])
    mod.run(game, generator)


if __name__ == "__main__":
    app()
