"""
TryFit AI Service — Step Failure Reporting
Translates errors raised during a wizard step into HTTP errors naming the step.
"""

import logging

from fastapi import HTTPException

from core.errors import CallerInputError, ClothingAnalysisError
from core.resilience import is_overload_error

logger = logging.getLogger("tryfit.failures")

STEP_ANALYSIS = "Analysis"
STEP_MODEL = "Model generation"
STEP_COMPOSITE = "Composite creation"


def status_for(exc: BaseException) -> int:
    """HTTP status for an error raised inside a step."""
    if isinstance(exc, CallerInputError):
        return 400
    if isinstance(exc, ClothingAnalysisError):
        return 502
    if is_overload_error(exc):
        return 503
    return 502


def step_failure(step: str, exc: BaseException, rid: str = "") -> HTTPException:
    """Log and build the HTTPException returned for a failed step."""
    status = status_for(exc)
    prefix = f"[{rid}] " if rid else ""
    if status >= 500:
        logger.error(f"{prefix}{step} failed: {exc}")
    else:
        logger.warning(f"{prefix}{step} rejected: {exc}")
    return HTTPException(status, f"{step} failed: {exc}")


def empty_result(step: str, rid: str = "") -> HTTPException:
    """Gemini answered without an image. Reported as a failed step."""
    prefix = f"[{rid}] " if rid else ""
    logger.error(f"{prefix}{step} failed: no image returned")
    return HTTPException(502, f"{step} failed: no image returned")
