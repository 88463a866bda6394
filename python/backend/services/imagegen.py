"""Text-to-image client for generating puzzle pictures.

Talks to the Gemini ``generateContent`` REST endpoint and returns the
first inline image part as raw bytes.
"""

from __future__ import annotations

import base64
import binascii
import logging

import requests

from backend.errors import GenerationError

logger = logging.getLogger(__name__)

API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash-image"
REQUEST_TIMEOUT = 60  # seconds

_STYLE_TEMPLATE = (
    "Create a highly detailed, vivid, and artistic square image based on "
    'this description: "{prompt}". The style should be suitable for a '
    "puzzle, with clear distinct features. Aspect ratio 1:1."
)


class ImageGenerator:
    """Generates a square puzzle image from a free-text prompt."""

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str = DEFAULT_MODEL,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.api_key = api_key or ""
        self.model = model
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{API_BASE}/models/{self.model}:generateContent"

    def generate(self, prompt: str) -> bytes:
        """Return encoded image bytes for *prompt*.

        Every failure mode (missing key, transport error, empty response)
        surfaces as ``GenerationError``.
        """
        if not self.api_key:
            raise GenerationError("API key is missing. Cannot generate image.")

        body = {
            "contents": [
                {"parts": [{"text": _STYLE_TEMPLATE.format(prompt=prompt)}]}
            ],
            "generationConfig": {
                "responseModalities": ["IMAGE"],
                "imageConfig": {"aspectRatio": "1:1"},
            },
        }
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

        logger.info("Requesting image from %s", self.model)
        try:
            response = requests.post(
                self.url, headers=headers, json=body, timeout=self.timeout
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            logger.warning("Image generation request failed: %s", exc)
            raise GenerationError(f"Image generation failed: {exc}") from exc
        except ValueError as exc:
            raise GenerationError("Image service returned invalid JSON.") from exc

        return self._extract_image(payload)

    @staticmethod
    def _extract_image(payload: dict) -> bytes:
        candidates = payload.get("candidates") or []
        if not candidates:
            raise GenerationError("No image data found in the response.")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        for part in parts:
            inline = part.get("inlineData") or part.get("inline_data") or {}
            data = inline.get("data")
            if not data:
                continue
            try:
                return base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise GenerationError("Image payload is not valid base64.") from exc

        raise GenerationError("No image data found in the response.")
