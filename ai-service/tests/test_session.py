"""
Tests for orchestrator/session.py — session state management.
"""

import time
import pytest

from core.gemini_client import ClothingAnalysis
from core.media import ImagePayload
from core.model_generator import ModelAttributes
from core.multiview import ViewAngle
from orchestrator.session import (
    DEFAULT_SESSION_ID,
    SessionBusyError,
    SessionCapacityError,
    SessionManager,
    TryOnSession,
    WizardState,
)

CLOTHING = ImagePayload(data=b"clothing", mime_type="image/jpeg")
MODEL = ImagePayload(data=b"model")
COMPOSITE = ImagePayload(data=b"composite")


class TestTryOnSession:
    """TryOnSession dataclass tests."""

    def test_defaults(self):
        """Session starts idle with nothing uploaded."""
        s = TryOnSession(session_id="test-123", created_at=time.time())
        assert s.state == WizardState.IDLE
        assert s.clothing_image is None
        assert s.clothing_analysis is None
        assert s.model_image is None
        assert s.composites == {}
        assert s.last_error is None

    def test_last_accessed_auto(self):
        """last_accessed auto-set from created_at."""
        now = time.time()
        s = TryOnSession(session_id="test", created_at=now)
        assert s.last_accessed == now

    def test_summary(self):
        s = TryOnSession(session_id="abc", created_at=1.0)
        s.composites[ViewAngle.SIDE] = COMPOSITE
        s.composites[ViewAngle.BACK] = COMPOSITE
        summary = s.summary()
        assert summary["state"] == "idle"
        assert summary["composites"] == ["back", "side"]
        assert summary["has_model"] is False


class TestSessionManager:
    """SessionManager lifecycle tests."""

    def test_create_session(self):
        """Create session returns valid UUID."""
        mgr = SessionManager(max_sessions=5)
        sid = mgr.create()
        assert isinstance(sid, str)
        assert len(sid) == 36  # UUID format
        assert mgr.active_count == 1

    def test_get_nonexistent_raises(self):
        mgr = SessionManager()
        with pytest.raises(KeyError):
            mgr.get("nonexistent-id")

    def test_lookup(self):
        """Default id asks for a new session; explicit ids must exist."""
        mgr = SessionManager()
        sid = mgr.create()
        assert mgr.lookup(sid).session_id == sid
        assert mgr.lookup(DEFAULT_SESSION_ID) is None
        assert mgr.lookup("") is None
        with pytest.raises(KeyError):
            mgr.lookup("unknown")
        assert mgr.active_count == 1

    def test_session_ttl_cleanup(self):
        """Expired sessions are cleaned up."""
        mgr = SessionManager(ttl_sec=1)
        sid = mgr.create()
        assert mgr.exists(sid)

        mgr._sessions[sid].last_accessed = time.time() - 2

        assert not mgr.exists(sid)
        assert mgr.active_count == 0

    def test_max_sessions_eviction(self):
        """Least recently used session evicted when limit reached."""
        mgr = SessionManager(max_sessions=3)
        s1 = mgr.create()
        s2 = mgr.create()
        s3 = mgr.create()
        mgr._sessions[s1].last_accessed -= 30

        s4 = mgr.create()
        assert mgr.active_count == 3
        assert not mgr.exists(s1)
        assert mgr.exists(s2)
        assert mgr.exists(s3)
        assert mgr.exists(s4)

    def test_eviction_prefers_idle(self):
        """A session with a step in flight is not evicted while idle ones exist."""
        mgr = SessionManager(max_sessions=2)
        busy = mgr.create()
        idle = mgr.create()
        mgr._sessions[busy].last_accessed -= 30
        mgr.begin(busy, WizardState.COMPOSITING)
        mgr._sessions[busy].last_accessed -= 30

        mgr.create()
        assert mgr.exists(busy)
        assert not mgr.exists(idle)

    def test_all_busy_at_capacity(self):
        """No idle session to evict: creation is refused, busy sessions survive."""
        mgr = SessionManager(max_sessions=2)
        s1 = mgr.create()
        s2 = mgr.create()
        mgr.begin(s1, WizardState.ANALYZING)
        mgr.begin(s2, WizardState.COMPOSITING)

        with pytest.raises(SessionCapacityError, match="all sessions busy"):
            mgr.create()

        assert mgr.get(s1).state == WizardState.ANALYZING
        assert mgr.get(s2).state == WizardState.COMPOSITING
        mgr.update_composite(s2, ViewAngle.FRONT, COMPOSITE)
        mgr.settle(s2)

        mgr.create()
        assert mgr.exists(s1)
        assert not mgr.exists(s2)

    def test_busy_session_outlives_ttl(self):
        """A step in flight keeps its session past the TTL."""
        mgr = SessionManager(ttl_sec=1)
        sid = mgr.create()
        mgr.begin(sid, WizardState.GENERATING_MODEL)
        mgr._sessions[sid].last_accessed = time.time() - 5

        mgr.cleanup_expired()
        assert mgr.get(sid).state == WizardState.GENERATING_MODEL

        mgr._sessions[sid].last_accessed = time.time() - 5
        mgr.settle(sid)
        assert mgr.exists(sid)


class TestWizardState:
    """begin / settle transitions."""

    def test_begin_and_settle(self):
        mgr = SessionManager()
        sid = mgr.create()

        session = mgr.begin(sid, WizardState.ANALYZING)
        assert session.state == WizardState.ANALYZING

        mgr.settle(sid)
        assert mgr.get(sid).state == WizardState.IDLE
        assert mgr.get(sid).last_error is None

    def test_busy_rejected(self):
        mgr = SessionManager()
        sid = mgr.create()
        mgr.begin(sid, WizardState.GENERATING_MODEL)

        with pytest.raises(SessionBusyError, match="generating_model in progress"):
            mgr.begin(sid, WizardState.COMPOSITING)
        assert mgr.get(sid).state == WizardState.GENERATING_MODEL

    def test_begin_idle_invalid(self):
        mgr = SessionManager()
        sid = mgr.create()
        with pytest.raises(ValueError):
            mgr.begin(sid, WizardState.IDLE)

    def test_settle_records_error(self):
        mgr = SessionManager()
        sid = mgr.create()
        mgr.begin(sid, WizardState.COMPOSITING)
        mgr.settle(sid, error={"detail": "503 UNAVAILABLE"})

        session = mgr.get(sid)
        assert session.state == WizardState.IDLE
        assert session.last_error == {"step": "compositing", "detail": "503 UNAVAILABLE"}

        mgr.begin(sid, WizardState.COMPOSITING)
        assert mgr.get(sid).last_error is None

    def test_settle_unknown_session(self):
        SessionManager().settle("gone")


class TestStepResults:
    """Step results and invalidation of downstream results."""

    def _with_composite(self) -> tuple[SessionManager, str]:
        mgr = SessionManager()
        sid = mgr.create()
        mgr.update_clothing(sid, CLOTHING, ClothingAnalysis(garment_type="shirt"))
        mgr.update_model(sid, ModelAttributes(), MODEL)
        mgr.update_composite(sid, ViewAngle.FRONT, COMPOSITE)
        return mgr, sid

    def test_full_progression(self):
        mgr, sid = self._with_composite()
        session = mgr.get(sid)
        assert session.clothing_image is CLOTHING
        assert session.model_image is MODEL
        assert session.composites == {ViewAngle.FRONT: COMPOSITE}

    def test_new_clothing_clears_composites(self):
        mgr, sid = self._with_composite()
        mgr.update_clothing(sid, CLOTHING, ClothingAnalysis(garment_type="skirt"))
        session = mgr.get(sid)
        assert session.composites == {}
        assert session.model_image is MODEL

    def test_new_model_clears_composites(self):
        mgr, sid = self._with_composite()
        mgr.update_model(sid, ModelAttributes(gender="male"), MODEL)
        assert mgr.get(sid).composites == {}

    def test_clear_clothing(self):
        mgr, sid = self._with_composite()
        mgr.clear_clothing(sid)
        session = mgr.get(sid)
        assert session.clothing_image is None
        assert session.clothing_analysis is None
        assert session.composites == {}

    def test_clear_model(self):
        mgr, sid = self._with_composite()
        mgr.clear_model(sid)
        session = mgr.get(sid)
        assert session.model_image is None
        assert session.composites == {}

    def test_discard_composites(self):
        mgr, sid = self._with_composite()
        mgr.update_composite(sid, ViewAngle.BACK, COMPOSITE)

        mgr.discard_composites(sid, ViewAngle.FRONT, ViewAngle.SIDE)

        session = mgr.get(sid)
        assert session.composites == {ViewAngle.BACK: COMPOSITE}
        assert session.model_image is MODEL

    def test_list_sessions(self):
        """List sessions returns correct summary."""
        mgr, s1 = self._with_composite()
        mgr.create()

        listings = mgr.list_sessions()
        assert len(listings) == 2

        s1_info = next(l for l in listings if l["session_id"] == s1)
        assert s1_info["has_clothing"] is True
        assert s1_info["has_analysis"] is True
        assert s1_info["composites"] == ["front"]
