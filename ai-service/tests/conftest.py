"""
Shared test helpers: tiny images, fake Gemini responses, recorded backoff.
"""

import io
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from PIL import Image

from core.gemini_client import GeminiClient
from core.media import ImagePayload


class UpstreamError(Exception):
    """Stand-in for a google-genai APIError: carries the HTTP status in ``code``."""

    def __init__(self, code: int, message: str = ""):
        self.code = code
        super().__init__(f"{code} {message}".strip())


def make_image_bytes(fmt: str = "PNG", size=(8, 8), color=(200, 40, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


def image_response(data: bytes = b"generated-png", mime_type: str = "image/png",
                   text: str = ""):
    """Gemini response with one inline image part (and optional text part)."""
    parts = []
    if text:
        parts.append(SimpleNamespace(inline_data=None, text=text))
    parts.append(SimpleNamespace(
        inline_data=SimpleNamespace(data=data, mime_type=mime_type),
        text=None,
    ))
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))],
        text=text or None,
    )


def text_response(text: str):
    """Gemini response with text only, no image part."""
    part = SimpleNamespace(inline_data=None, text=text)
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))],
        text=text,
    )


@pytest.fixture
def clothing_image() -> ImagePayload:
    return ImagePayload(data=b"clothing-bytes", mime_type="image/jpeg")


@pytest.fixture
def model_image() -> ImagePayload:
    return ImagePayload(data=b"model-bytes", mime_type="image/png")


@pytest.fixture
def fake_genai():
    """MagicMock standing in for google.genai.Client."""
    client = MagicMock()
    client.models.generate_content.return_value = image_response()
    return client


@pytest.fixture
def gemini(fake_genai) -> GeminiClient:
    """GeminiClient wired to the fake SDK client."""
    return GeminiClient(client=fake_genai)


@pytest.fixture
def backoff_sleeps(monkeypatch) -> list:
    """Record backoff waits instead of sleeping."""
    sleeps = []

    async def _record(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr("core.resilience._backoff", _record)
    return sleeps
