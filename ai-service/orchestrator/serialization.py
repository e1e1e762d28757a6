"""
TryFit AI Service — Data Serialization for HTTP Transport
Converts image payloads to/from base64 and data URIs.
"""

import base64
import binascii
import re

from core.media import ImagePayload

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def bytes_to_b64(data: bytes) -> str:
    """Encode raw bytes to base64 string."""
    return base64.b64encode(data).decode("ascii")


def b64_to_bytes(b64: str) -> bytes:
    """Decode base64 string to raw bytes.

    Raises:
        ValueError: not valid base64
    """
    try:
        return base64.b64decode(b64, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 data: {e}")


def payload_to_data_uri(payload: ImagePayload) -> str:
    """'data:<mime>;base64,<data>', or an empty string for an empty payload."""
    if not payload:
        return ""
    return f"data:{payload.mime_type};base64,{bytes_to_b64(payload.data)}"


def data_uri_to_payload(uri: str) -> ImagePayload:
    """Parse a base64 data URI.

    Raises:
        ValueError: not a base64 data URI
    """
    match = _DATA_URI_RE.match(uri.strip())
    if not match:
        raise ValueError("Expected a base64 data URI")
    return ImagePayload(
        data=b64_to_bytes(match.group("data")),
        mime_type=match.group("mime"),
    )
