"""
TryFit AI Service — Step 3: Fitting
Composite the clothing onto the generated model for one view angle, or for
all three angles at once.

Both configurations go through the same resilient call; the three-angle one
issues the calls concurrently and joins them.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from core.gemini_client import GeminiClient, GenerationResult
from core.media import ImagePayload
from core.multiview import (
    CompositeRequest,
    ViewAngle,
    build_composite_contents,
    parse_view_angle,
)
from core.resilience import call_with_retry

logger = logging.getLogger("tryfit.fitting")


@dataclass
class FittingResult:
    """Composite results per angle from a multi-angle run."""
    views: dict[ViewAngle, GenerationResult] = field(default_factory=dict)
    elapsed_sec: float = 0.0

    @property
    def missing(self) -> list[ViewAngle]:
        return [angle for angle, r in self.views.items() if r.is_empty]


async def _composite(gemini: GeminiClient, request: CompositeRequest) -> GenerationResult:
    contents = build_composite_contents(request)
    return await call_with_retry(
        lambda: gemini.generate_image(contents),
        label=f"AI composite generation ({request.view_angle.value})",
    )


async def generate_view(
    gemini: GeminiClient,
    clothing_image: ImagePayload,
    model_image: ImagePayload,
    clothing_description: str,
    model_description: str,
    view_angle: ViewAngle | str,
) -> GenerationResult:
    """Composite the clothing onto the model from one view angle.

    Raises CallerInputError before any network call when a field is empty.
    An empty result means Gemini succeeded without returning an image; the
    caller decides how to report it.
    """
    request = CompositeRequest(
        clothing_image=clothing_image,
        model_image=model_image,
        clothing_description=clothing_description,
        model_description=model_description,
        view_angle=parse_view_angle(view_angle),
    ).validate()

    logger.info(f"Starting single view composite generation with viewAngle: {request.view_angle.value}")
    return await _composite(gemini, request)


async def generate_all_views(
    gemini: GeminiClient,
    clothing_image: ImagePayload,
    model_image: ImagePayload,
    clothing_description: str,
    model_description: str,
) -> FittingResult:
    """Front, side and back composites issued concurrently. First failure propagates."""
    requests = [
        CompositeRequest(
            clothing_image=clothing_image,
            model_image=model_image,
            clothing_description=clothing_description,
            model_description=model_description,
            view_angle=angle,
        ).validate()
        for angle in ViewAngle
    ]

    t0 = time.time()
    logger.info(f"Starting multi-angle composite generation ({len(requests)} views)")
    results = await asyncio.gather(*(_composite(gemini, r) for r in requests))

    result = FittingResult(
        views={r.view_angle: res for r, res in zip(requests, results)},
        elapsed_sec=time.time() - t0,
    )
    if result.missing:
        logger.warning(f"No image returned for: {[a.value for a in result.missing]}")
    return result
