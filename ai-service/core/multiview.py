"""
TryFit AI Service — Multiview Composite Requests
View angles, angle-specific wording, and outbound prompt construction for
compositing a clothing item onto a generated model.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from core.errors import CallerInputError
from core.media import ImagePayload, require_image

logger = logging.getLogger("tryfit.multiview")


class ViewAngle(str, Enum):
    FRONT = "front"
    SIDE = "side"
    BACK = "back"


VIEW_ANGLE_INSTRUCTIONS = {
    ViewAngle.FRONT: "Show the model from the front angle, facing forward",
    ViewAngle.SIDE: ("Show the model from a side profile angle (90 degrees), "
                     "showing the side silhouette"),
    ViewAngle.BACK: ("Show the model from behind (180 degrees), "
                     "showing the back of the outfit"),
}


def parse_view_angle(value) -> ViewAngle:
    """Coerce a string or ViewAngle to ViewAngle, raising CallerInputError otherwise."""
    if isinstance(value, ViewAngle):
        return value
    try:
        return ViewAngle(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(a.value for a in ViewAngle)
        raise CallerInputError(f"Unsupported view angle {value!r} (expected one of: {allowed})")


@dataclass(frozen=True)
class CompositeRequest:
    """One logical composite call. Immutable once constructed."""
    clothing_image: ImagePayload
    model_image: ImagePayload
    clothing_description: str
    model_description: str
    view_angle: ViewAngle

    def validate(self) -> "CompositeRequest":
        """Reject empty fields before anything goes over the network."""
        require_image(self.clothing_image, "clothing image")
        require_image(self.model_image, "model image")
        if not self.clothing_description or not self.clothing_description.strip():
            raise CallerInputError("clothing description is required")
        if not self.model_description or not self.model_description.strip():
            raise CallerInputError("model description is required")
        parse_view_angle(self.view_angle)
        return self


# ── Prompts ────────────────────────────────────────────────────

_COMPOSITE_REQUIREMENTS = """Requirements:
- Ensure the clothing fits naturally on the model from the specified angle
- Maintain realistic lighting and shadows
- Preserve the clothing's original colors and textures
- Create a professional fashion photography look
- Show how the garment drapes and fits from this specific perspective"""


def build_composite_prompt(request: CompositeRequest) -> str:
    """Instruction text sent alongside the clothing and model images."""
    angle = parse_view_angle(request.view_angle)
    instruction = VIEW_ANGLE_INSTRUCTIONS[angle]

    return f"""Composite the clothing item from the first image onto the AI model in the second image from a {angle.value} view perspective. {instruction}.

{_COMPOSITE_REQUIREMENTS}

Model: {request.model_description}
Clothing: {request.clothing_description}

Generate a high-quality {angle.value} view composite."""


def build_composite_contents(request: CompositeRequest) -> list:
    """Gemini contents: clothing image, model image, then instruction text."""
    from google.genai import types

    return [
        types.Part.from_bytes(
            data=request.clothing_image.data,
            mime_type=request.clothing_image.mime_type,
        ),
        types.Part.from_bytes(
            data=request.model_image.data,
            mime_type=request.model_image.mime_type,
        ),
        build_composite_prompt(request),
    ]
