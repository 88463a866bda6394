"""Cuts a source image into square puzzle tiles."""

from __future__ import annotations

import logging
from io import BytesIO

from PIL import Image

from backend.errors import ImageLoadError, RenderError
from backend.services.imagesource import ImageRef, read_image_bytes

logger = logging.getLogger(__name__)

MAX_TILE_PX = 512
MAX_PREVIEW_PX = 1024
JPEG_QUALITY = 90


class ImageSlicer:
    """Stateless slicer — all methods are static."""

    @staticmethod
    def slice(source: ImageRef, grid_size: int) -> list[bytes]:
        """Return ``grid_size²`` JPEG tiles of *source*, row-major.

        The image is center-cropped to its largest square, split into equal
        cells, and each cell is downsampled to at most ``MAX_TILE_PX``.
        """
        image = ImageSlicer.load(source)
        width, height = image.size
        size = min(width, height)
        left = (width - size) // 2
        top = (height - size) // 2
        tile_size = size // grid_size if grid_size > 0 else 0
        target = min(MAX_TILE_PX, tile_size)

        if tile_size < 1:
            raise RenderError(
                f"A {width}×{height} image is too small for a "
                f"{grid_size}×{grid_size} grid."
            )

        logger.debug(
            "Slicing %d×%d image: crop %d at (%d, %d), tile %d → %d px",
            width, height, size, left, top, tile_size, target,
        )

        pieces: list[bytes] = []
        for row in range(grid_size):
            for col in range(grid_size):
                box = (
                    left + col * tile_size,
                    top + row * tile_size,
                    left + (col + 1) * tile_size,
                    top + (row + 1) * tile_size,
                )
                pieces.append(ImageSlicer._render(image, box, target))
        return pieces

    @staticmethod
    def preview(source: ImageRef, max_px: int = MAX_PREVIEW_PX) -> bytes:
        """Return the center square of *source* as one JPEG, at most *max_px* wide."""
        image = ImageSlicer.load(source)
        width, height = image.size
        size = min(width, height)
        left = (width - size) // 2
        top = (height - size) // 2
        return ImageSlicer._render(
            image, (left, top, left + size, top + size), min(max_px, size)
        )

    @staticmethod
    def color_grid(
        source: ImageRef, cols: int, rows: int
    ) -> list[list[tuple[int, int, int]]]:
        """Downsample *source* to a *rows*×*cols* grid of RGB colours."""
        small = ImageSlicer.load(source).resize((cols, rows), Image.Resampling.BOX)
        return [[small.getpixel((x, y)) for x in range(cols)] for y in range(rows)]

    @staticmethod
    def load(source: ImageRef) -> Image.Image:
        """Decode *source* into an RGB image, fully read into memory."""
        data = read_image_bytes(source)
        try:
            with Image.open(BytesIO(data)) as img:
                return img.convert("RGB")
        except (OSError, Image.DecompressionBombError) as exc:
            raise ImageLoadError(f"Could not decode image: {exc}") from exc

    @staticmethod
    def average_color(tile: bytes) -> tuple[int, int, int]:
        """Mean RGB colour of an encoded tile, for text-mode renderers."""
        try:
            with Image.open(BytesIO(tile)) as img:
                pixel = img.convert("RGB").resize((1, 1), Image.Resampling.BOX)
                r, g, b = pixel.getpixel((0, 0))
        except OSError as exc:
            raise ImageLoadError(f"Could not decode tile: {exc}") from exc
        return r, g, b

    # -- helpers --------------------------------------------------------------

    @staticmethod
    def _render(image: Image.Image, box: tuple[int, int, int, int], target: int) -> bytes:
        try:
            piece = image.crop(box)
            if piece.width != target:
                piece = piece.resize((target, target), Image.Resampling.LANCZOS)
            buf = BytesIO()
            piece.save(buf, format="JPEG", quality=JPEG_QUALITY)
        except (OSError, ValueError) as exc:
            raise RenderError(f"Could not render tile {box}: {exc}") from exc
        return buf.getvalue()
