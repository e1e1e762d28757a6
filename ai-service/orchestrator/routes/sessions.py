"""
TryFit AI Service — Orchestrator Route: Sessions
GET  /sessions       — list active sessions
POST /sessions       — create a session
GET  /sessions/{id}  — one session summary
"""

import logging

from fastapi import APIRouter, HTTPException, Request

from orchestrator.session import SessionCapacityError, SessionManager

logger = logging.getLogger("tryfit.routes.sessions")

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


@router.get("")
async def list_sessions(request: Request):
    """List all active try-on sessions."""
    sm = _get_session_manager(request)
    return {"sessions": sm.list_sessions()}


@router.post("")
async def create_session(request: Request):
    sm = _get_session_manager(request)
    try:
        session_id = sm.create()
    except SessionCapacityError as e:
        raise HTTPException(503, str(e))
    return sm.get(session_id).summary()


@router.get("/{session_id}")
async def get_session(request: Request, session_id: str):
    sm = _get_session_manager(request)
    try:
        session = sm.get(session_id)
    except KeyError:
        raise HTTPException(404, f"Session {session_id} not found")
    return session.summary()
