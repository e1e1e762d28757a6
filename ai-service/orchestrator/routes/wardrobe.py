"""
TryFit AI Service — Orchestrator Route: Step 1 (Wardrobe)
POST /wardrobe/analyze — upload a clothing image, classify it
"""

import logging
import uuid

from fastapi import APIRouter, File, HTTPException, Query, Request, UploadFile

from core.errors import CallerInputError
from core.gemini_client import GeminiClient
from core.media import ImagePayload, load_image_payload
from core.wardrobe import analyze_clothing
from orchestrator.failures import STEP_ANALYSIS, step_failure
from orchestrator.session import (
    DEFAULT_SESSION_ID,
    SessionBusyError,
    SessionCapacityError,
    SessionManager,
    TryOnSession,
    WizardState,
)

logger = logging.getLogger("tryfit.routes.wardrobe")

router = APIRouter(prefix="/wardrobe", tags=["Step 1 — Wardrobe"])


# ── Helpers ─────────────────────────────────────────────────────

async def _read_upload(upload: UploadFile) -> ImagePayload:
    """Read and validate an uploaded image."""
    data = await upload.read()
    try:
        return load_image_payload(data, upload.filename or "upload")
    except CallerInputError as e:
        raise HTTPException(400, str(e))


def _request_id() -> str:
    return str(uuid.uuid4())[:8]


def _get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def _get_gemini(request: Request) -> GeminiClient | None:
    return getattr(request.app.state, "gemini", None)


def _lookup_session(sm: SessionManager, session_id: str) -> TryOnSession | None:
    try:
        return sm.lookup(session_id)
    except KeyError:
        raise HTTPException(404, f"Session {session_id} not found")


def _new_session(sm: SessionManager) -> TryOnSession:
    try:
        return sm.get(sm.create())
    except SessionCapacityError as e:
        raise HTTPException(503, str(e))


# ── Routes ──────────────────────────────────────────────────────

@router.post("/analyze")
async def wardrobe_analyze(
    request: Request,
    image: UploadFile = File(...),
    session_id: str = Query(DEFAULT_SESSION_ID),
):
    """Step 1: Classify a clothing image.

    A new upload clears the previous analysis and composites. If the
    analysis fails the uploaded image is dropped as well. The default
    session id starts a new session; any other id must already exist.
    """
    sm = _get_session_manager(request)
    gemini = _get_gemini(request)
    rid = _request_id()
    logger.info(f"[{rid}] Step 1: Clothing analysis (session={session_id})")

    if not gemini:
        raise HTTPException(503, "Gemini not available")

    session = _lookup_session(sm, session_id)
    payload = await _read_upload(image)
    if session is None:
        session = _new_session(sm)
    session_id = session.session_id

    try:
        sm.begin(session_id, WizardState.ANALYZING)
    except SessionBusyError as e:
        raise HTTPException(409, str(e))

    try:
        item = await analyze_clothing(payload, gemini)
    except Exception as e:
        sm.clear_clothing(session_id)
        sm.settle(session_id, error={"detail": str(e)})
        raise step_failure(STEP_ANALYSIS, e, rid)

    sm.update_clothing(session_id, item.image, item.analysis)
    sm.settle(session_id)

    return {
        "request_id": rid,
        "session_id": session_id,
        "analysis": {
            "garmentType": item.analysis.garment_type,
            "clothingFeatures": item.analysis.features,
            "suggestedGender": item.analysis.suggested_gender,
        },
        "clothing_description": item.description,
        "preferred_gender": item.analysis.preferred_gender(),
        "elapsed_sec": item.elapsed_sec,
    }
