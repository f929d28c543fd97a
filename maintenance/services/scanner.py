"""
Quick scanner services: scan session state, the transition dispatcher and
the read-only inquiry path.

Both entry points turn every failure into a log entry / outcome object;
nothing raised while handling a scan reaches the caller.
"""

import logging
import threading
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

from django.conf import settings
from django.utils import timezone

from ..exceptions import IllegalTransitionError, NotFoundError, ScannerError
from ..transitions import get_transition
from ..utils.barcode import extract_from_url_if_present
from .repository import MaintenanceRepository

logger = logging.getLogger(__name__)


def _setting(name, default):
    return getattr(settings, 'MAINTENANCE_SCANNER', {}).get(name, default)


# ============================================
# FEEDBACK CUES
# ============================================

@dataclass(frozen=True)
class FeedbackCue:
    """A short sine tone the scanner page (or kiosk) plays after a scan."""

    name: str
    frequency: int
    duration: float
    gain: float

    def as_dict(self):
        return {
            'name': self.name,
            'frequency': self.frequency,
            'duration': self.duration,
            'gain': self.gain,
        }


SUCCESS_CUE = FeedbackCue('success', frequency=800, duration=0.3, gain=0.3)
FAILURE_CUE = FeedbackCue('failure', frequency=400, duration=0.2, gain=0.2)
INQUIRY_CUE = FeedbackCue('inquiry', frequency=600, duration=0.2, gain=0.2)


# ============================================
# SESSION STATE
# ============================================

@dataclass
class ScanLogEntry:
    maint_no: str
    success: bool
    message: str
    item_name: Optional[str] = None
    customer_name: Optional[str] = None
    transition_id: Optional[str] = None
    cue: Optional[FeedbackCue] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:7])
    timestamp: object = field(default_factory=timezone.now)

    def as_dict(self):
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat(),
            'maint_no': self.maint_no,
            'success': self.success,
            'message': self.message,
            'item_name': self.item_name,
            'customer_name': self.customer_name,
            'transition_id': self.transition_id,
            'cue': self.cue.as_dict() if self.cue else None,
        }


class ScanSession:
    """
    State of one operator's scanner screen.

    ``busy`` and ``inquiring`` are single-slot guards: a scan arriving while
    its guard is held is dropped, not queued. The log keeps the most recent
    entries only, newest first.
    """

    def __init__(self, active_transition_id=None, log_capacity=None):
        self.active_transition_id = active_transition_id
        self.log_capacity = log_capacity or _setting('LOG_CAPACITY', 50)
        self.busy = False
        self.inquiring = False
        self._log = deque(maxlen=self.log_capacity)
        self._lock = threading.Lock()

    def __repr__(self):
        return (
            f"<ScanSession transition={self.active_transition_id!r} "
            f"busy={self.busy} entries={len(self._log)}>"
        )

    @property
    def active_transition(self):
        return get_transition(self.active_transition_id)

    def select_transition(self, transition_id):
        """Activate a catalog transition (None clears it); unknown ids raise KeyError."""
        if transition_id and get_transition(transition_id) is None:
            raise KeyError(transition_id)
        self.active_transition_id = transition_id or None

    def _try_set(self, flag):
        with self._lock:
            if getattr(self, flag):
                return False
            setattr(self, flag, True)
            return True

    def _clear(self, flag):
        with self._lock:
            setattr(self, flag, False)

    def acquire_scan(self):
        return self._try_set('busy')

    def release_scan(self):
        self._clear('busy')

    def acquire_inquiry(self):
        return self._try_set('inquiring')

    def release_inquiry(self):
        self._clear('inquiring')

    def add_log(self, entry):
        with self._lock:
            self._log.appendleft(entry)
        return entry

    @property
    def log(self):
        with self._lock:
            return list(self._log)

    def clear_log(self):
        with self._lock:
            self._log.clear()


def session_registry_key(user_pk, session_key):
    return f"{user_pk}:{session_key}"


class SessionRegistry:
    """
    In-process ScanSession per operator, keyed by user and Django session key.

    Sessions are discarded on logout and evicted once unused for longer than
    ``max_idle`` seconds (SESSION_COOKIE_AGE by default).
    """

    def __init__(self, max_idle=None):
        self.max_idle = max_idle
        self._sessions = {}
        self._last_seen = {}
        self._lock = threading.Lock()

    def get(self, key, now=None):
        now = time.monotonic() if now is None else now
        with self._lock:
            self._evict_idle(now)
            session = self._sessions.get(key)
            if session is None:
                session = ScanSession()
                self._sessions[key] = session
            self._last_seen[key] = now
            return session

    def discard(self, key):
        with self._lock:
            self._last_seen.pop(key, None)
            return self._sessions.pop(key, None) is not None

    def _evict_idle(self, now):
        max_idle = self.max_idle if self.max_idle is not None else settings.SESSION_COOKIE_AGE
        stale = [
            key for key, seen in self._last_seen.items()
            if now - seen > max_idle and not self._sessions[key].busy
        ]
        for key in stale:
            del self._sessions[key]
            del self._last_seen[key]
        if stale:
            logger.debug(f"Evicted {len(stale)} idle scan session(s)")

    def __contains__(self, key):
        return key in self._sessions

    def __len__(self):
        return len(self._sessions)


sessions = SessionRegistry()


# ============================================
# DISPATCHER
# ============================================

def _clean(code):
    if not isinstance(code, str):
        return ''
    return code.strip()


class _FeedbackMixin:

    def _emit(self, cue):
        if self.feedback is None:
            return
        try:
            self.feedback(cue)
        except Exception:
            # A speaker problem never changes the outcome of a scan
            logger.warning(f"Feedback cue '{cue.name}' could not be played", exc_info=True)


class ScanDispatcher(_FeedbackMixin):
    """
    Applies the session's active transition to a scanned maintenance number.

    ``feedback`` is an optional callable receiving the FeedbackCue of each
    outcome (the camera kiosk plays it; the web page reads it from the
    returned entry).
    """

    def __init__(self, repository=None, feedback=None):
        self.repository = repository or MaintenanceRepository()
        self.feedback = feedback

    def dispatch(self, session, code, actor=None):
        """
        Returns the ScanLogEntry appended to ``session``, or None when the
        scan was ignored (no active transition, empty code, or another scan
        still in flight).
        """
        transition = session.active_transition
        cleaned = _clean(code)
        if transition is None or not cleaned:
            return None

        if not session.acquire_scan():
            logger.debug(f"Scan of {cleaned!r} dropped: another scan is in flight")
            return None

        try:
            entry = self._outcome(transition, cleaned, actor)
            session.add_log(entry)
            self._emit(entry.cue)
        finally:
            # Released only once the entry is logged
            session.release_scan()
        return entry

    def _outcome(self, transition, cleaned, actor):
        maint_no = cleaned
        try:
            maint_no = extract_from_url_if_present(cleaned)
            return self._apply(transition, maint_no, actor)
        except ScannerError as e:
            logger.info(f"Scan rejected [{transition.id}] {maint_no}: {e.message}")
            return ScanLogEntry(
                maint_no=maint_no,
                success=False,
                message=e.message,
                transition_id=transition.id,
                cue=FAILURE_CUE,
            )
        except Exception:
            logger.exception(f"Unexpected error scanning {maint_no} [{transition.id}]")
            return ScanLogEntry(
                maint_no=maint_no,
                success=False,
                message=ScannerError.default_message,
                transition_id=transition.id,
                cue=FAILURE_CUE,
            )

    def _apply(self, transition, maint_no, actor):
        record = self.repository.fetch_maintenance_record(maint_no)
        if record is None:
            raise NotFoundError(maint_no=maint_no)

        current_status = record.status
        if not transition.is_legal(current_status):
            raise IllegalTransitionError(
                current_status, maint_no=maint_no, transition_id=transition.id
            )

        next_status = transition.compute_next_status(current_status)
        self.repository.update_maintenance_record(
            maint_no,
            status=next_status,
            history_note=f'تم النقل عبر الماسح السريع: {transition.label}',
            changed_by=actor,
            expected_status=current_status,
        )

        logger.info(
            f"Scan moved {maint_no}: {current_status} → {next_status} "
            f"[{transition.id}] by {getattr(actor, 'username', None) or 'System'}"
        )

        return ScanLogEntry(
            maint_no=maint_no,
            success=True,
            message=f'تم النقل بنجاح إلى: {next_status}',
            item_name=record.item_name,
            customer_name=record.customer_name,
            transition_id=transition.id,
            cue=SUCCESS_CUE,
        )


# ============================================
# INQUIRY
# ============================================

@dataclass
class InquiryOutcome:
    FOUND = 'found'
    NOT_FOUND = 'not_found'
    ERROR = 'error'

    kind: str
    maint_no: str
    record: object = None
    message: str = ''
    cue: Optional[FeedbackCue] = None

    @property
    def found(self):
        return self.kind == self.FOUND


class InquiryService(_FeedbackMixin):
    """Read-only status lookup; never touches the dispatcher's busy flag."""

    def __init__(self, repository=None, feedback=None):
        self.repository = repository or MaintenanceRepository()
        self.feedback = feedback

    def inquire(self, code, session=None):
        """
        Returns an InquiryOutcome, or None when the code is empty or the
        session already has an inquiry in flight.
        """
        cleaned = _clean(code)
        if not cleaned:
            return None
        if session is not None and not session.acquire_inquiry():
            return None

        maint_no = extract_from_url_if_present(cleaned)
        try:
            record = self.repository.fetch_maintenance_record(maint_no)
        except Exception:
            logger.exception(f"Inquiry for {maint_no} failed")
            return InquiryOutcome(
                InquiryOutcome.ERROR, maint_no, message='حدث خطأ أثناء الاستعلام'
            )
        finally:
            if session is not None:
                session.release_inquiry()

        if record is None:
            return InquiryOutcome(
                InquiryOutcome.NOT_FOUND, maint_no, message=f'لا توجد معاملة بالرقم {maint_no}'
            )

        self._emit(INQUIRY_CUE)
        return InquiryOutcome(InquiryOutcome.FOUND, maint_no, record=record, cue=INQUIRY_CUE)
