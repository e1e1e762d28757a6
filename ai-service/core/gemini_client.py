"""
TryFit AI Service — Gemini Client
Clothing classification and single-attempt image generation.
Uses google-genai SDK (new pattern).

Retries are not done here: callers wrap ``generate_image`` with
core.resilience.call_with_retry.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from core.config import (
    GEMINI_API_KEY,
    GEMINI_IMAGE_MODEL,
    GEMINI_TEXT_MODEL,
)
from core.errors import ClothingAnalysisError
from core.media import ImagePayload, require_image

logger = logging.getLogger("tryfit.gemini")


# ── Dataclasses ────────────────────────────────────────────────

@dataclass
class ClothingAnalysis:
    garment_type: str = ""
    features: list[str] = field(default_factory=list)
    suggested_gender: str = ""

    def preferred_gender(self) -> str | None:
        """Suggested gender, only when it is one the model form accepts."""
        gender = (self.suggested_gender or "").strip().lower()
        return gender if gender in ("male", "female") else None


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one successful upstream call. ``image`` is None on an empty payload."""
    image: Optional[ImagePayload] = None
    text: str = ""

    @property
    def is_empty(self) -> bool:
        return self.image is None or not self.image


# ── Prompts ────────────────────────────────────────────────────

_CLOTHING_ANALYSIS_PROMPT = """Analyze this clothing image for a virtual try-on.

Return a JSON object:
{
  "garmentType": "<specific garment type, e.g. denim jacket, midi dress, crew-neck t-shirt>",
  "clothingFeatures": ["<visible feature 1>", "<visible feature 2>", ...],
  "suggestedGender": "<male/female/unisex>"
}

List colors, fabric, pattern, neckline, sleeves, closures and fit as features.
Return ONLY the JSON object."""

# Field name normalization for lenient parsing
_FIELD_ALIASES = {
    "garment_type": ["garmenttype", "garment_type", "type", "category", "clothing_type"],
    "features": ["clothingfeatures", "clothing_features", "features", "attributes"],
    "suggested_gender": ["suggestedgender", "suggested_gender", "gender"],
}


def _match_field(raw_key: str) -> str:
    normalized = raw_key.strip().lower().replace(" ", "_").replace("-", "_")
    for canonical, aliases in _FIELD_ALIASES.items():
        if normalized in aliases:
            return canonical
    return "unknown"


# ── GeminiClient ───────────────────────────────────────────────

class GeminiClient:
    """Gemini API client for clothing analysis and image generation."""

    def __init__(self, api_key: str | None = None, client=None):
        self._client = client
        if self._client is not None:
            return

        api_key = GEMINI_API_KEY if api_key is None else api_key
        if not api_key:
            logger.warning("Gemini API key not set — client will not function")
            return

        from google import genai
        self._client = genai.Client(api_key=api_key)
        logger.info("Gemini client initialized")

    def is_enabled(self) -> bool:
        return self._client is not None

    async def _generate_content(self, model: str, contents: list, config=None):
        """Single upstream request, run off the event loop."""
        if not self._client:
            raise RuntimeError("Gemini client not initialized (missing API key)")
        return await asyncio.to_thread(
            self._client.models.generate_content,
            model=model,
            contents=contents,
            config=config,
        )

    async def generate_image(self, contents: list, config=None,
                             model: str | None = None) -> GenerationResult:
        """Call the image model once. Upstream errors propagate unchanged."""
        from google.genai import types

        model = model or GEMINI_IMAGE_MODEL
        if config is None:
            config = types.GenerateContentConfig(
                response_modalities=["TEXT", "IMAGE"],
            )
        response = await self._generate_content(model, contents, config)
        result = self._extract_image(response)
        if result.is_empty:
            logger.warning(f"Model {model} returned no image payload")
        return result

    async def analyze_clothing(self, image: ImagePayload) -> ClothingAnalysis:
        """Classify a clothing image into type, features and suggested gender."""
        from google.genai import types

        require_image(image, "clothing image")
        contents = [
            types.Part.from_bytes(data=image.data, mime_type=image.mime_type),
            _CLOTHING_ANALYSIS_PROMPT,
        ]
        response = await self._generate_content(
            GEMINI_TEXT_MODEL,
            contents,
            types.GenerateContentConfig(
                temperature=0.1,
                max_output_tokens=1024,
            ),
        )
        data = self._parse_json(response.text)
        return self._parse_clothing_response(data)

    # ── Response Parsers ───────────────────────────────────────

    def _extract_image(self, response) -> GenerationResult:
        """First inline image part plus any text parts."""
        candidates = getattr(response, "candidates", None)
        if not candidates:
            return GenerationResult()
        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) or []

        image = None
        text = ""
        for part in parts:
            inline = getattr(part, "inline_data", None)
            if image is None and inline is not None and inline.data:
                image = ImagePayload(
                    data=inline.data,
                    mime_type=inline.mime_type or "image/png",
                )
            elif getattr(part, "text", None):
                text += part.text
        return GenerationResult(image=image, text=text)

    def _parse_json(self, text: str | None) -> dict:
        """Extract JSON from Gemini response text."""
        if text is None:
            logger.warning("_parse_json received None text")
            return {}
        text = text.strip()
        # Try direct parse
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass
        # Try extracting from markdown code block
        match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
        if match:
            try:
                return json.loads(match.group(1).strip())
            except json.JSONDecodeError:
                pass
        # Try finding first { ... }
        match = re.search(r"\{.*\}", text, re.DOTALL)
        if match:
            try:
                return json.loads(match.group(0))
            except json.JSONDecodeError:
                pass
        logger.warning(f"Failed to parse JSON from response: {text[:200]}")
        return {}

    def _parse_clothing_response(self, data: dict) -> ClothingAnalysis:
        if not isinstance(data, dict):
            raise ClothingAnalysisError("Clothing analysis response is not a JSON object")

        result = ClothingAnalysis()
        for raw_key, value in data.items():
            canonical = _match_field(str(raw_key))
            if canonical == "features":
                if isinstance(value, list):
                    result.features = [str(v).strip() for v in value if str(v).strip()]
                elif isinstance(value, str):
                    result.features = [v.strip() for v in value.split(",") if v.strip()]
            elif canonical in ("garment_type", "suggested_gender"):
                setattr(result, canonical, str(value).strip() if value else "")

        if not result.garment_type:
            raise ClothingAnalysisError("Clothing analysis returned no garment type")
        result.suggested_gender = result.suggested_gender.lower()
        return result
