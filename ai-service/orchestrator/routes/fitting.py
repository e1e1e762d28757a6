"""
TryFit AI Service — Orchestrator Route: Step 3 (Fitting)
POST /fitting/composite      — composite clothing onto the model for one view angle
POST /fitting/composite-all  — front, side and back concurrently
GET  /fitting/download       — composite image as a file attachment
"""

import logging
import uuid

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import Response

from core.config import DOWNLOAD_FILENAME_TEMPLATE
from core.fitting import generate_all_views, generate_view
from core.gemini_client import GeminiClient
from core.model_generator import ModelAttributes, build_model_description
from core.multiview import ViewAngle
from core.wardrobe import build_clothing_description
from orchestrator.failures import STEP_COMPOSITE, empty_result, step_failure
from orchestrator.serialization import payload_to_data_uri
from orchestrator.session import SessionBusyError, SessionManager, TryOnSession, WizardState

logger = logging.getLogger("tryfit.routes.fitting")

router = APIRouter(prefix="/fitting", tags=["Step 3 — Fitting"])


# ── Helpers ─────────────────────────────────────────────────────

def _request_id() -> str:
    return str(uuid.uuid4())[:8]


def _get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def _get_gemini(request: Request) -> GeminiClient | None:
    return getattr(request.app.state, "gemini", None)


def _get_session(sm: SessionManager, session_id: str) -> TryOnSession:
    try:
        return sm.get(session_id)
    except KeyError:
        raise HTTPException(404, f"Session {session_id} not found")


def _require_prerequisites(session: TryOnSession):
    if session.clothing_image is None or session.clothing_analysis is None:
        raise HTTPException(400, "Upload and analyze a clothing item first (Step 1)")
    if session.model_image is None:
        raise HTTPException(400, "Generate a model first (Step 2)")


def _descriptions(session: TryOnSession) -> tuple[str, str]:
    clothing_desc = build_clothing_description(session.clothing_analysis)
    model_desc = build_model_description(session.model_attributes or ModelAttributes())
    return clothing_desc, model_desc


# ── Routes ──────────────────────────────────────────────────────

@router.post("/composite")
async def fitting_composite(
    request: Request,
    session_id: str = Query(...),
    view_angle: ViewAngle = Query(ViewAngle.FRONT),
):
    """Step 3: Composite the clothing onto the model from one view angle.

    Any earlier composite for the angle is dropped first, so a failed
    attempt never leaves a stale image behind for download.
    """
    sm = _get_session_manager(request)
    gemini = _get_gemini(request)
    rid = _request_id()
    logger.info(f"[{rid}] Step 3: Composite {view_angle.value} (session={session_id})")

    session = _get_session(sm, session_id)
    _require_prerequisites(session)
    if not gemini:
        raise HTTPException(503, "Gemini not available")

    try:
        sm.begin(session_id, WizardState.COMPOSITING)
    except SessionBusyError as e:
        raise HTTPException(409, str(e))

    try:
        sm.discard_composites(session_id, view_angle)
        clothing_desc, model_desc = _descriptions(session)
        result = await generate_view(
            gemini,
            session.clothing_image,
            session.model_image,
            clothing_desc,
            model_desc,
            view_angle,
        )
    except Exception as e:
        sm.settle(session_id, error={"detail": str(e)})
        raise step_failure(STEP_COMPOSITE, e, rid)

    if result.is_empty:
        sm.settle(session_id, error={"detail": "no image returned"})
        raise empty_result(STEP_COMPOSITE, rid)

    sm.update_composite(session_id, view_angle, result.image)
    sm.settle(session_id)

    return {
        "request_id": rid,
        "session_id": session_id,
        "view_angle": view_angle.value,
        "composite_image": payload_to_data_uri(result.image),
    }


@router.post("/composite-all")
async def fitting_composite_all(
    request: Request,
    session_id: str = Query(...),
):
    """Step 3 (multi-angle): front, side and back composites issued together.

    Views that come back without an image are listed under ``missing``;
    the request fails only if all three are empty.
    """
    sm = _get_session_manager(request)
    gemini = _get_gemini(request)
    rid = _request_id()
    logger.info(f"[{rid}] Step 3: Multi-angle composite (session={session_id})")

    session = _get_session(sm, session_id)
    _require_prerequisites(session)
    if not gemini:
        raise HTTPException(503, "Gemini not available")

    try:
        sm.begin(session_id, WizardState.COMPOSITING)
    except SessionBusyError as e:
        raise HTTPException(409, str(e))

    try:
        sm.discard_composites(session_id, *ViewAngle)
        clothing_desc, model_desc = _descriptions(session)
        result = await generate_all_views(
            gemini,
            session.clothing_image,
            session.model_image,
            clothing_desc,
            model_desc,
        )
    except Exception as e:
        sm.settle(session_id, error={"detail": str(e)})
        raise step_failure(STEP_COMPOSITE, e, rid)

    if len(result.missing) == len(result.views):
        sm.settle(session_id, error={"detail": "no image returned"})
        raise empty_result(STEP_COMPOSITE, rid)

    images = {}
    for angle, view in result.views.items():
        if view.is_empty:
            continue
        sm.update_composite(session_id, angle, view.image)
        images[angle.value] = payload_to_data_uri(view.image)
    sm.settle(session_id)

    return {
        "request_id": rid,
        "session_id": session_id,
        "images": images,
        "missing": [a.value for a in result.missing],
        "elapsed_sec": result.elapsed_sec,
    }


@router.get("/download")
async def fitting_download(
    request: Request,
    session_id: str = Query(...),
    view_angle: ViewAngle = Query(ViewAngle.FRONT),
):
    """Download a generated composite as a file."""
    sm = _get_session_manager(request)
    session = _get_session(sm, session_id)

    image = session.composites.get(view_angle)
    if image is None:
        raise HTTPException(404, f"No {view_angle.value} composite generated yet")

    filename = DOWNLOAD_FILENAME_TEMPLATE.format(angle=view_angle.value, ext=image.extension)
    return Response(
        content=image.data,
        media_type=image.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
