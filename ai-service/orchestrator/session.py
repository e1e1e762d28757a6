"""
TryFit AI Service — Session State Manager
Tracks the try-on wizard per session: uploaded clothing, analysis, generated
model, composites, and which step (if any) is currently in flight.
Supports multiple concurrent sessions with TTL-based cleanup.
"""

import time
import uuid
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from core.gemini_client import ClothingAnalysis
from core.media import ImagePayload
from core.model_generator import ModelAttributes
from core.multiview import ViewAngle

logger = logging.getLogger("tryfit.session")

# Session id that asks for a fresh session instead of naming an existing one
DEFAULT_SESSION_ID = "default"


class WizardState(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    GENERATING_MODEL = "generating_model"
    COMPOSITING = "compositing"


class SessionBusyError(Exception):
    """Raised when a step starts while another step of the same session is in flight."""

    def __init__(self, session_id: str, state: WizardState):
        self.session_id = session_id
        self.state = state
        super().__init__(f"Session {session_id} busy: {state.value} in progress")


class SessionCapacityError(Exception):
    """Raised when the session limit is reached and every session has a step in flight."""
    pass


@dataclass
class TryOnSession:
    """State of a single try-on session."""
    session_id: str
    created_at: float
    state: WizardState = WizardState.IDLE
    clothing_image: Optional[ImagePayload] = None
    clothing_analysis: Optional[ClothingAnalysis] = None
    model_attributes: Optional[ModelAttributes] = None
    model_image: Optional[ImagePayload] = None
    composites: dict = field(default_factory=dict)
    last_error: Optional[dict] = None
    last_accessed: float = 0.0

    def __post_init__(self):
        if self.last_accessed == 0.0:
            self.last_accessed = self.created_at

    def summary(self) -> dict:
        return {
            "session_id": self.session_id,
            "created_at": self.created_at,
            "state": self.state.value,
            "has_clothing": self.clothing_image is not None,
            "has_analysis": self.clothing_analysis is not None,
            "has_model": self.model_image is not None,
            "composites": sorted(a.value for a in self.composites),
            "last_error": self.last_error,
        }


class SessionManager:
    """Manages try-on sessions with TTL and max capacity."""

    def __init__(self, max_sessions: int = 50, ttl_sec: int = 3600):
        self._sessions: dict[str, TryOnSession] = {}
        self._max_sessions = max_sessions
        self._ttl_sec = ttl_sec

    def create(self) -> str:
        """Create a new session, evicting the least recently used idle one at capacity.

        Sessions with a step in flight are never evicted.

        Returns:
            session_id (UUID string)

        Raises:
            SessionCapacityError: at capacity with no idle session to evict
        """
        self.cleanup_expired()

        if len(self._sessions) >= self._max_sessions:
            idle = [sid for sid, s in self._sessions.items() if s.state == WizardState.IDLE]
            if not idle:
                raise SessionCapacityError(
                    f"Session limit {self._max_sessions} reached, all sessions busy"
                )
            oldest_id = min(
                idle,
                key=lambda sid: self._sessions[sid].last_accessed,
            )
            logger.info(f"Session limit reached, evicting {oldest_id}")
            del self._sessions[oldest_id]

        session_id = str(uuid.uuid4())
        now = time.time()
        self._sessions[session_id] = TryOnSession(
            session_id=session_id,
            created_at=now,
            last_accessed=now,
        )
        logger.info(f"Created session {session_id}")
        return session_id

    def get(self, session_id: str) -> TryOnSession:
        """Retrieve a session by ID.

        Raises:
            KeyError: If session not found or expired
        """
        if session_id not in self._sessions:
            raise KeyError(f"Session {session_id} not found")

        session = self._sessions[session_id]

        # Check TTL
        if self._expired(session, time.time()):
            del self._sessions[session_id]
            raise KeyError(f"Session {session_id} expired")

        session.last_accessed = time.time()
        return session

    def exists(self, session_id: str) -> bool:
        """Check if session exists and is not expired."""
        try:
            self.get(session_id)
            return True
        except KeyError:
            return False

    def lookup(self, session_id: str | None) -> TryOnSession | None:
        """Session named by a request, or None when the caller asked for a new one.

        Raises:
            KeyError: an explicit session id that is unknown or expired
        """
        if not session_id or session_id == DEFAULT_SESSION_ID:
            return None
        return self.get(session_id)

    def _expired(self, session: TryOnSession, now: float) -> bool:
        """Idle sessions past their TTL. A step in flight keeps its session alive."""
        return (session.state == WizardState.IDLE
                and now - session.last_accessed > self._ttl_sec)

    # ── Wizard state ────────────────────────────────────────

    def begin(self, session_id: str, state: WizardState) -> TryOnSession:
        """Mark a step as in flight. Only allowed from idle.

        Raises:
            SessionBusyError: another step is still running
        """
        if state == WizardState.IDLE:
            raise ValueError("begin() needs a step state, not idle")
        session = self.get(session_id)
        if session.state != WizardState.IDLE:
            raise SessionBusyError(session_id, session.state)
        session.state = state
        session.last_error = None
        logger.info(f"Session {session_id}: {state.value}")
        return session

    def settle(self, session_id: str, error: dict | None = None):
        """Return the session to idle after a step finishes, recording any failure."""
        session = self._sessions.get(session_id)
        if session is None:
            return
        if error is not None:
            session.last_error = {"step": session.state.value, **error}
        session.state = WizardState.IDLE
        session.last_accessed = time.time()

    # ── Step results ────────────────────────────────────────

    def update_clothing(self, session_id: str, image: ImagePayload,
                        analysis: ClothingAnalysis):
        """Store step 1 result. A new garment invalidates earlier composites."""
        session = self.get(session_id)
        session.clothing_image = image
        session.clothing_analysis = analysis
        session.composites.clear()

    def clear_clothing(self, session_id: str):
        session = self.get(session_id)
        session.clothing_image = None
        session.clothing_analysis = None
        session.composites.clear()

    def update_model(self, session_id: str, attributes: ModelAttributes,
                     image: ImagePayload):
        """Store step 2 result. A new model invalidates earlier composites."""
        session = self.get(session_id)
        session.model_attributes = attributes
        session.model_image = image
        session.composites.clear()

    def clear_model(self, session_id: str):
        session = self.get(session_id)
        session.model_image = None
        session.composites.clear()

    def update_composite(self, session_id: str, angle: ViewAngle, image: ImagePayload):
        """Store step 3 result for one view angle."""
        session = self.get(session_id)
        session.composites[angle] = image

    def discard_composites(self, session_id: str, *angles: ViewAngle):
        """Drop stored composites for the given angles before they are regenerated."""
        session = self.get(session_id)
        for angle in angles:
            session.composites.pop(angle, None)

    def cleanup_expired(self):
        """Remove all expired sessions."""
        now = time.time()
        expired = [
            sid for sid, s in self._sessions.items()
            if self._expired(s, now)
        ]
        for sid in expired:
            del self._sessions[sid]
            logger.debug(f"Cleaned up expired session {sid}")

    @property
    def active_count(self) -> int:
        """Number of active (non-expired) sessions."""
        self.cleanup_expired()
        return len(self._sessions)

    @property
    def max_sessions(self) -> int:
        return self._max_sessions

    def list_sessions(self) -> list[dict]:
        """List all active sessions with status summary."""
        self.cleanup_expired()
        return [s.summary() for s in self._sessions.values()]
