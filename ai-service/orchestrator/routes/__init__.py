"""
TryFit AI Service — Orchestrator Route Modules

All route modules expose an `APIRouter` instance named `router`.
Import and include them into the main FastAPI app via `include_router()`.

Usage in app factory:
    from orchestrator.routes import all_routers
    for r in all_routers:
        app.include_router(r)
"""

from orchestrator.routes.wardrobe import router as wardrobe_router
from orchestrator.routes.model import router as model_router
from orchestrator.routes.fitting import router as fitting_router
from orchestrator.routes.sessions import router as sessions_router

all_routers = [
    wardrobe_router,
    model_router,
    fitting_router,
    sessions_router,
]

__all__ = [
    "wardrobe_router",
    "model_router",
    "fitting_router",
    "sessions_router",
    "all_routers",
]
