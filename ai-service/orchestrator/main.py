"""
TryFit AI Service — Orchestrator FastAPI Server

Three-step virtual try-on wizard backed by Gemini:
  1. Wardrobe: classify an uploaded clothing image
  2. Model: generate a human model image
  3. Fitting: composite the clothing onto the model (front / side / back)

Run: python -m orchestrator.main
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from orchestrator.config import (
    CORS_ORIGINS, GEMINI_ENABLED, HOST, LOG_LEVEL, PORT,
    SESSION_MAX, SESSION_TTL_SEC, VIEW_ANGLES,
    get_model_status,
)
from orchestrator.session import SessionManager
from orchestrator.routes import all_routers

logger = logging.getLogger("tryfit.orchestrator")
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize shared state on startup."""
    logger.info("TryFit AI Orchestrator starting...")
    logger.info(f"Model status: {get_model_status()}")

    # Session manager
    app.state.session_manager = SessionManager(
        max_sessions=SESSION_MAX,
        ttl_sec=SESSION_TTL_SEC,
    )

    # Gemini
    if GEMINI_ENABLED:
        from core.gemini_client import GeminiClient
        app.state.gemini = GeminiClient()
        logger.info("Gemini client initialized")
    else:
        app.state.gemini = None
        logger.warning("Gemini disabled — set GEMINI_API_KEY to enable the wizard")

    yield

    logger.info("TryFit Orchestrator shutdown complete")


# ── FastAPI App ───────────────────────────────────────────────

app = FastAPI(
    title="TryFit AI Orchestrator",
    version="1.0.0",
    description="3-Step Virtual Try-On: Wardrobe → Model → Fitting",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount all route modules
for router in all_routers:
    app.include_router(router)


# ── Root / Health ─────────────────────────────────────────────

@app.get("/")
async def root():
    """Service info and status."""
    return {
        "service": "TryFit AI Orchestrator",
        "version": "1.0.0",
        "models": get_model_status(),
        "view_angles": VIEW_ANGLES,
        "steps": {
            "step1_wardrobe": "ready",
            "step2_model": "ready",
            "step3_fitting": "ready",
        },
    }


@app.get("/health")
async def health(request: Request):
    """Detailed health check."""
    sm = request.app.state.session_manager
    return {
        "status": "healthy",
        "models": get_model_status(),
        "gemini": request.app.state.gemini is not None,
        "sessions": {
            "active": sm.active_count,
            "max": sm.max_sessions,
        },
    }


# ── Entry Point ───────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "orchestrator.main:app",
        host=HOST,
        port=PORT,
        reload=True,
    )
