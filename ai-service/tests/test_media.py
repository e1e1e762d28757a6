"""
Tests for core/media.py — image payloads and upload validation.
"""

import pytest

from core.errors import CallerInputError
from core.media import ImagePayload, load_image_payload, require_image

from conftest import make_image_bytes


class TestImagePayload:

    def test_empty_is_falsy(self):
        assert not ImagePayload()
        assert ImagePayload(data=b"x")

    @pytest.mark.parametrize("mime, ext", [
        ("image/png", "png"),
        ("image/jpeg", "jpg"),
        ("image/webp", "webp"),
        ("application/octet-stream", "png"),
    ])
    def test_extension(self, mime, ext):
        assert ImagePayload(data=b"x", mime_type=mime).extension == ext

    def test_require_image(self):
        payload = ImagePayload(data=b"x")
        assert require_image(payload, "clothing image") is payload
        with pytest.raises(CallerInputError, match="model image is required"):
            require_image(None, "model image")


class TestLoadImagePayload:

    def test_png(self):
        data = make_image_bytes("PNG")
        payload = load_image_payload(data, "shirt.png")
        assert payload.data == data
        assert payload.mime_type == "image/png"

    def test_jpeg(self):
        payload = load_image_payload(make_image_bytes("JPEG"), "shirt.jpg")
        assert payload.mime_type == "image/jpeg"

    def test_empty(self):
        with pytest.raises(CallerInputError, match="Empty upload"):
            load_image_payload(b"", "empty.png")

    def test_oversized(self):
        data = make_image_bytes("PNG")
        with pytest.raises(CallerInputError, match="limit"):
            load_image_payload(data, "big.png", max_bytes=len(data) - 1)

    def test_not_an_image(self):
        with pytest.raises(CallerInputError, match="Could not decode"):
            load_image_payload(b"this is not an image", "notes.txt")

    def test_unsupported_format(self):
        with pytest.raises(CallerInputError, match="Unsupported image format BMP"):
            load_image_payload(make_image_bytes("BMP"), "shirt.bmp")
