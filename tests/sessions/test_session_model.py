from datetime import datetime, timedelta

from src.hostel_attendance.hostel_attendance.core.enums import SessionState
from src.hostel_attendance.hostel_attendance.sessions.model import AttendanceSession

START = datetime(2026, 3, 1, 7, 0)


def _session(active: bool = True) -> AttendanceSession:
    return AttendanceSession(
        session_id=5,
        title="Morning",
        created_by=1,
        start_at=START,
        expires_at=START + timedelta(hours=1),
        duration_hours=1,
        late_after_minutes=15,
        active=active,
    )


def test_state_follows_the_window():
    s = _session()

    assert s.state_at(START - timedelta(seconds=1)) == SessionState.NOT_STARTED
    assert s.state_at(START) == SessionState.OPEN
    assert s.state_at(START + timedelta(minutes=59, seconds=59)) == SessionState.OPEN
    assert s.state_at(START + timedelta(hours=1)) == SessionState.CLOSED_PENDING_RECONCILIATION


def test_inactive_session_is_reconciled_regardless_of_time():
    s = _session(active=False)

    assert s.state_at(START + timedelta(minutes=5)) == SessionState.RECONCILED


def test_late_threshold_and_serialization():
    s = _session()

    assert s.late_threshold == START + timedelta(minutes=15)
    data = s.to_dict()
    assert data["id"] == 5
    assert data["expiresAt"] == "2026-03-01T08:00:00"
    assert data["active"] is True
