"""
TryFit AI Service — Step 1: Wardrobe
Clothing classification and description assembly for composite prompts.
"""

import logging
import time
from dataclasses import dataclass, field

from core.gemini_client import ClothingAnalysis, GeminiClient
from core.media import ImagePayload, require_image

logger = logging.getLogger("tryfit.wardrobe")


@dataclass
class ClothingItem:
    """Uploaded clothing image with its analysis."""
    image: ImagePayload
    analysis: ClothingAnalysis = field(default_factory=ClothingAnalysis)
    elapsed_sec: float = 0.0

    @property
    def description(self) -> str:
        return build_clothing_description(self.analysis)


def build_clothing_description(analysis: ClothingAnalysis) -> str:
    """Clothing line of the composite prompt: '<garment type> with features: a, b, c'."""
    garment = analysis.garment_type or "clothing item"
    if not analysis.features:
        return garment
    return f"{garment} with features: {', '.join(analysis.features)}"


async def analyze_clothing(image: ImagePayload, gemini: GeminiClient) -> ClothingItem:
    """Classify an uploaded clothing image. Single upstream call, no retry."""
    require_image(image, "clothing image")
    t0 = time.time()
    analysis = await gemini.analyze_clothing(image)
    elapsed = time.time() - t0
    logger.info(
        f"Clothing analysis: {analysis.garment_type} "
        f"({len(analysis.features)} features, gender={analysis.suggested_gender or '-'}, "
        f"{elapsed:.1f}s)"
    )
    return ClothingItem(image=image, analysis=analysis, elapsed_sec=elapsed)
