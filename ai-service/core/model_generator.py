"""
TryFit AI Service — Step 2: Model Generation
Text-to-image generation of the human model the clothing is composited onto.
"""

import logging
from dataclasses import dataclass

from core.config import DEFAULT_MODEL_ATTRIBUTES
from core.errors import CallerInputError
from core.gemini_client import GeminiClient, GenerationResult
from core.resilience import call_with_retry

logger = logging.getLogger("tryfit.model_generator")


@dataclass(frozen=True)
class ModelAttributes:
    gender: str = DEFAULT_MODEL_ATTRIBUTES["gender"]
    pose: str = DEFAULT_MODEL_ATTRIBUTES["pose"]
    body_type: str = DEFAULT_MODEL_ATTRIBUTES["body_type"]
    skin_tone: str = DEFAULT_MODEL_ATTRIBUTES["skin_tone"]

    def validate(self) -> "ModelAttributes":
        for name in ("gender", "pose", "body_type", "skin_tone"):
            value = getattr(self, name)
            if not value or not value.strip():
                raise CallerInputError(f"model {name.replace('_', ' ')} is required")
        return self


@dataclass(frozen=True)
class ModelRequest:
    """Text-only generation request."""
    description: str

    def validate(self) -> "ModelRequest":
        if not self.description or not self.description.strip():
            raise CallerInputError("model description is required")
        return self


def build_model_prompt(attrs: ModelAttributes) -> str:
    """Full prompt for generating the model image."""
    return (
        f"A full-body studio portrait of a {attrs.gender} model with {attrs.skin_tone} "
        f"and an {attrs.body_type}. The model is {attrs.pose}. "
        f"The background is plain white."
    )


def build_model_description(attrs: ModelAttributes) -> str:
    """Shorter description used in the composite prompt."""
    return (
        f"A {attrs.gender} model with {attrs.skin_tone} and an {attrs.body_type}. "
        f"The model is {attrs.pose}."
    )


def _generation_config():
    from google.genai import types

    return types.GenerateContentConfig(
        response_modalities=["TEXT", "IMAGE"],
        safety_settings=[
            types.SafetySetting(
                category=types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
                threshold=types.HarmBlockThreshold.BLOCK_ONLY_HIGH,
            ),
            types.SafetySetting(
                category=types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
                threshold=types.HarmBlockThreshold.BLOCK_NONE,
            ),
            types.SafetySetting(
                category=types.HarmCategory.HARM_CATEGORY_HARASSMENT,
                threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
            ),
            types.SafetySetting(
                category=types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
                threshold=types.HarmBlockThreshold.BLOCK_LOW_AND_ABOVE,
            ),
        ],
    )


async def generate_model_image(description: str, gemini: GeminiClient) -> GenerationResult:
    """Generate a model image from free text, retrying transient overload.

    Returns an empty GenerationResult when Gemini answers without an image.
    """
    request = ModelRequest(description=description).validate()
    logger.info(f"Starting AI model generation with description: {request.description}")
    config = _generation_config()

    return await call_with_retry(
        lambda: gemini.generate_image([request.description], config=config),
        label="AI model generation",
    )
