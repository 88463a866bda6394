"""Shared fixtures for the puzzle test suite."""

from __future__ import annotations

import pytest
from PIL import Image

from backend.engine.gamegenerator import GameGenerator
from backend.models.board import Board
from helpers import encode_png, labels


@pytest.fixture
def solved3() -> Board:
    return GameGenerator.solved(labels(3), 3)


@pytest.fixture
def photo_png() -> bytes:
    """A 300×300 picture with a distinct colour in every 100 px cell."""
    img = Image.new("RGB", (300, 300))
    for r in range(3):
        for c in range(3):
            img.paste(
                (r * 120, c * 120, 200),
                (c * 100, r * 100, (c + 1) * 100, (r + 1) * 100),
            )
    return encode_png(img)
