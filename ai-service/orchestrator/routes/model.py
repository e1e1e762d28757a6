"""
TryFit AI Service — Orchestrator Route: Step 2 (Model)
POST /model/generate — generate the human model image from form attributes
"""

import logging
import uuid

from fastapi import APIRouter, Form, HTTPException, Query, Request

from core.config import DEFAULT_MODEL_ATTRIBUTES
from core.errors import CallerInputError
from core.gemini_client import GeminiClient
from core.model_generator import (
    ModelAttributes,
    build_model_description,
    build_model_prompt,
    generate_model_image,
)
from orchestrator.failures import STEP_MODEL, empty_result, step_failure
from orchestrator.serialization import payload_to_data_uri
from orchestrator.session import (
    DEFAULT_SESSION_ID,
    SessionBusyError,
    SessionCapacityError,
    SessionManager,
    TryOnSession,
    WizardState,
)

logger = logging.getLogger("tryfit.routes.model")

router = APIRouter(prefix="/model", tags=["Step 2 — Model"])


# ── Helpers ─────────────────────────────────────────────────────

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


def _resolve_gender(gender: str | None, session: TryOnSession | None) -> str:
    """Explicit form value, else the analysis suggestion, else the default."""
    if gender and gender.strip():
        return gender.strip()
    if session is not None and session.clothing_analysis is not None:
        suggested = session.clothing_analysis.preferred_gender()
        if suggested:
            return suggested
    return DEFAULT_MODEL_ATTRIBUTES["gender"]


# ── Routes ──────────────────────────────────────────────────────

@router.post("/generate")
async def model_generate(
    request: Request,
    session_id: str = Query(DEFAULT_SESSION_ID),
    gender: str | None = Form(None),
    pose: str = Form(DEFAULT_MODEL_ATTRIBUTES["pose"]),
    body_type: str = Form(DEFAULT_MODEL_ATTRIBUTES["body_type"]),
    skin_tone: str = Form(DEFAULT_MODEL_ATTRIBUTES["skin_tone"]),
):
    """Step 2: Generate a model image. Replaces any earlier model and composites.

    Form values are validated before the session is touched, so a rejected
    request leaves the stored model in place.
    """
    sm = _get_session_manager(request)
    gemini = _get_gemini(request)
    rid = _request_id()
    logger.info(f"[{rid}] Step 2: Model generation (session={session_id})")

    if not gemini:
        raise HTTPException(503, "Gemini not available")

    session = _lookup_session(sm, session_id)
    attrs = ModelAttributes(
        gender=_resolve_gender(gender, session),
        pose=pose,
        body_type=body_type,
        skin_tone=skin_tone,
    )
    try:
        attrs.validate()
    except CallerInputError as e:
        raise step_failure(STEP_MODEL, e, rid)

    if session is None:
        session = _new_session(sm)
    session_id = session.session_id

    try:
        sm.begin(session_id, WizardState.GENERATING_MODEL)
    except SessionBusyError as e:
        raise HTTPException(409, str(e))

    try:
        sm.clear_model(session_id)
        result = await generate_model_image(build_model_prompt(attrs), gemini)
    except Exception as e:
        sm.settle(session_id, error={"detail": str(e)})
        raise step_failure(STEP_MODEL, e, rid)

    if result.is_empty:
        sm.settle(session_id, error={"detail": "no image returned"})
        raise empty_result(STEP_MODEL, rid)

    sm.update_model(session_id, attrs, result.image)
    sm.settle(session_id)

    return {
        "request_id": rid,
        "session_id": session_id,
        "model_image": payload_to_data_uri(result.image),
        "model_description": build_model_description(attrs),
        "attributes": {
            "gender": attrs.gender,
            "pose": attrs.pose,
            "body_type": attrs.body_type,
            "skin_tone": attrs.skin_tone,
        },
    }
