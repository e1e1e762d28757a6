"""
TryFit AI Service — Configuration
Gemini model names, retry policy, upload limits, view angles.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# ── Paths ──────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

# ── Logging ────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ── Gemini ─────────────────────────────────────────────────────
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_ENABLED = bool(GEMINI_API_KEY)
GEMINI_TEXT_MODEL = os.getenv("GEMINI_TEXT_MODEL", "gemini-2.5-flash")     # clothing analysis
GEMINI_IMAGE_MODEL = os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image")  # model + composite

# ── Resilient generation call ──────────────────────────────────
# Upstream image endpoint returns transient 503s under load.
GENERATION_MAX_ATTEMPTS = int(os.getenv("GENERATION_MAX_ATTEMPTS", "3"))
GENERATION_BACKOFF_SEC = float(os.getenv("GENERATION_BACKOFF_SEC", "3.0"))

# ── Uploads ────────────────────────────────────────────────────
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
ALLOWED_IMAGE_FORMATS = {"PNG", "JPEG", "WEBP", "GIF"}

# ── Pipeline Constants ─────────────────────────────────────────
VIEW_ANGLES = ["front", "side", "back"]
DOWNLOAD_FILENAME_TEMPLATE = "tryfit-{angle}-view.{ext}"

# ── Model form defaults ────────────────────────────────────────
DEFAULT_MODEL_ATTRIBUTES = {
    "gender": "female",
    "pose": "standing confidently, hands on hips",
    "body_type": "athletic build",
    "skin_tone": "light brown skin",
}


def get_model_status() -> dict:
    """Return which upstream models are configured."""
    return {
        "gemini": GEMINI_ENABLED,
        "text_model": GEMINI_TEXT_MODEL,
        "image_model": GEMINI_IMAGE_MODEL,
        "max_attempts": GENERATION_MAX_ATTEMPTS,
        "backoff_sec": GENERATION_BACKOFF_SEC,
    }
