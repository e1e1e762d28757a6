"""
TryFit AI Service — Orchestrator Configuration
Environment-based config for the HTTP layer.
"""

import os

# Re-export core config for convenience (importing it also loads .env)
from core.config import (
    LOG_LEVEL, VIEW_ANGLES, GEMINI_ENABLED,
    get_model_status,
)

# ── Session Management ────────────────────────────────────────
SESSION_MAX = int(os.getenv("SESSION_MAX", "50"))
SESSION_TTL_SEC = int(os.getenv("SESSION_TTL_SEC", "3600"))

# ── Server ────────────────────────────────────────────────────
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
