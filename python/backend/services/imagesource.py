"""Resolves an image reference to raw encoded bytes.

Accepted references:

* ``bytes`` — already-encoded image data (uploads, generator output)
* ``data:<mime>;base64,<payload>`` URLs
* ``http://`` / ``https://`` URLs
* anything else is treated as a filesystem path
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from urllib.parse import unquote_to_bytes

import requests

from backend.errors import ImageLoadError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 60  # seconds

ImageRef = bytes | bytearray | str | Path


def read_image_bytes(source: ImageRef, *, timeout: float = REQUEST_TIMEOUT) -> bytes:
    """Return the encoded bytes behind *source*.

    Raises ``ImageLoadError`` if the reference cannot be resolved.
    """
    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise ImageLoadError("Image data is empty.")
        return bytes(source)

    if isinstance(source, str):
        if source.startswith("data:"):
            return _decode_data_url(source)
        if source.startswith(("http://", "https://")):
            return _fetch(source, timeout)

    return _read_file(Path(source))


def _decode_data_url(url: str) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep:
        raise ImageLoadError("Malformed data URL (missing ',').")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ImageLoadError(f"Invalid base64 in data URL: {exc}") from exc
    return unquote_to_bytes(payload)


def _fetch(url: str, timeout: float) -> bytes:
    logger.debug("Fetching image from %s", url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise ImageLoadError(f"Could not fetch {url}: {exc}") from exc
    return response.content


def _read_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ImageLoadError(f"Could not read {path}: {exc}") from exc
