"""
TryFit AI Service — Image Payloads
Opaque image references passed to and returned from Gemini, plus upload validation.
"""

import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from core.config import ALLOWED_IMAGE_FORMATS, MAX_UPLOAD_BYTES
from core.errors import CallerInputError

logger = logging.getLogger("tryfit.media")

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


@dataclass(frozen=True)
class ImagePayload:
    """Encoded image bytes with their MIME type. Falsy when empty."""
    data: bytes = b""
    mime_type: str = "image/png"

    def __bool__(self) -> bool:
        return bool(self.data)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return _EXTENSIONS.get(self.mime_type, "png")


def require_image(image: ImagePayload | None, field_name: str) -> ImagePayload:
    """Raise CallerInputError if the image reference is absent or empty."""
    if image is None or not image:
        raise CallerInputError(f"{field_name} is required")
    return image


def load_image_payload(data: bytes, filename: str = "upload",
                       max_bytes: int = MAX_UPLOAD_BYTES) -> ImagePayload:
    """Validate uploaded bytes with Pillow and wrap them as an ImagePayload.

    The bytes are kept as uploaded; Pillow only confirms the format.

    Raises:
        CallerInputError: empty, oversized, undecodable or unsupported image
    """
    if not data:
        raise CallerInputError(f"Empty upload: {filename}")
    if len(data) > max_bytes:
        raise CallerInputError(
            f"Image {filename} is {len(data)} bytes, limit is {max_bytes}"
        )

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise CallerInputError(f"Could not decode image: {filename}") from e

    if fmt not in ALLOWED_IMAGE_FORMATS:
        raise CallerInputError(f"Unsupported image format {fmt}: {filename}")

    mime_type = Image.MIME.get(fmt, "image/png")
    logger.debug(f"Loaded {filename}: {fmt} {len(data)} bytes")
    return ImagePayload(data=data, mime_type=mime_type)
