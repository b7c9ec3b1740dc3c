from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import pytest
from werkzeug.security import generate_password_hash

from src.hostel_attendance.hostel_attendance.attendance.model import (
    AttendanceRecord,
    AttendanceSummary,
    BulkInsertResult,
    NewAttendanceRecord,
)
from src.hostel_attendance.hostel_attendance.attendance.service import AttendanceService
from src.hostel_attendance.hostel_attendance.core.enums import AttendanceStatus, Role
from src.hostel_attendance.hostel_attendance.core.exceptions import (
    DuplicateRecordError,
    NotFoundError,
    ValidationError,
)
from src.hostel_attendance.hostel_attendance.reconciliation.worker import ReconciliationWorker
from src.hostel_attendance.hostel_attendance.sessions.model import AttendanceSession, NewSession
from src.hostel_attendance.hostel_attendance.users.model import Identity, User


class InMemorySessions:
    def __init__(self):
        self._by_id: dict[int, AttendanceSession] = {}
        self._id = 0
        self.deactivate_calls: list[int] = []

    def create(self, new_session: NewSession) -> AttendanceSession:
        if new_session.expires_at <= new_session.start_at:
            raise ValidationError("expiresAt must be after startAt")
        self._id += 1
        session = AttendanceSession(
            session_id=self._id,
            title=new_session.title,
            created_by=new_session.created_by,
            start_at=new_session.start_at,
            expires_at=new_session.expires_at,
            duration_hours=new_session.duration_hours,
            late_after_minutes=new_session.late_after_minutes,
            active=True,
            created_at=new_session.start_at,
        )
        self._by_id[session.session_id] = session
        return session

    def get_by_id(self, session_id: int) -> AttendanceSession:
        session = self._by_id.get(int(session_id))
        if not session:
            raise NotFoundError("Session not found")
        return session

    def find_expired_active(self, now: datetime):
        return [s for s in self._by_id.values() if s.active and s.expires_at < now]

    def deactivate(self, session_id: int) -> bool:
        self.deactivate_calls.append(int(session_id))
        session = self.get_by_id(session_id)
        if not session.active:
            return False
        self._by_id[session.session_id] = replace(session, active=False)
        return True

    def list_recent(self, limit: int):
        items = sorted(self._by_id.values(), key=lambda s: s.start_at, reverse=True)
        return items[:limit]


class InMemoryLedger:
    """Ledger fake whose uniqueness check and write happen under one lock, like a unique index."""

    def __init__(self):
        self._rows: dict[tuple[int, int], AttendanceRecord] = {}
        self._lock = threading.Lock()
        self._id = 0

    def _insert(self, record: NewAttendanceRecord) -> int:
        key = (record.session_id, record.participant_id)
        with self._lock:
            if key in self._rows:
                raise DuplicateRecordError(f"duplicate {key}")
            self._id += 1
            self._rows[key] = AttendanceRecord(
                record_id=self._id,
                session_id=record.session_id,
                participant_id=record.participant_id,
                record_date=record.record_date,
                status=record.status,
                check_in_time=record.check_in_time,
            )
            return self._id

    def insert_one(self, record: NewAttendanceRecord) -> int:
        return self._insert(record)

    def insert_many(self, records: Iterable[NewAttendanceRecord]) -> BulkInsertResult:
        inserted = duplicates = 0
        for record in records:
            try:
                self._insert(record)
            except DuplicateRecordError:
                duplicates += 1
            else:
                inserted += 1
        return BulkInsertResult(inserted=inserted, duplicates=duplicates)

    def find_by_session(self, session_id: int):
        return [r for (sid, _), r in self._rows.items() if sid == session_id]

    def count_and_status_for_participant(self, participant_id: int, *, since_days: int, today: date):
        since = today - timedelta(days=since_days)
        rows = [r for r in self._rows.values() if r.participant_id == participant_id and r.record_date > since]
        return AttendanceSummary(
            total=len(rows),
            present=sum(1 for r in rows if r.status == AttendanceStatus.PRESENT),
            late=sum(1 for r in rows if r.status == AttendanceStatus.LATE),
            absent=sum(1 for r in rows if r.status == AttendanceStatus.ABSENT),
        )

    def list_for_participant(self, participant_id: int, limit: int):
        items = [r for r in self._rows.values() if r.participant_id == participant_id]
        items.sort(key=lambda r: (r.record_date, r.record_id), reverse=True)
        return items[:limit]

    def rows_for(self, session_id: int) -> dict[int, AttendanceStatus]:
        return {r.participant_id: r.status for r in self.find_by_session(session_id)}


class InMemoryUsers:
    def __init__(self, users: Iterable[User] = ()):
        self._by_id = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._by_id.values() if u.email == email), None)

    def list_ids_by_role(self, role: Role, *, batch: Optional[str] = None):
        return [
            u.user_id
            for u in self._by_id.values()
            if u.role == role and u.is_active and (batch is None or u.batch == batch)
        ]


class StaticRoster:
    def __init__(self, ids: Iterable[int]):
        self.ids = set(ids)
        self.requested_cohorts: list[Optional[str]] = []

    def participant_ids(self, cohort: Optional[str] = None):
        self.requested_cohorts.append(cohort)
        return set(self.ids)


T0 = datetime(2026, 2, 1, 8, 0, 0)


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def sessions_repo() -> InMemorySessions:
    return InMemorySessions()


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def roster() -> StaticRoster:
    return StaticRoster({1, 2, 3})


@pytest.fixture
def service(sessions_repo, ledger) -> AttendanceService:
    return AttendanceService(sessions_repo, ledger)


@pytest.fixture
def worker(sessions_repo, ledger, roster) -> ReconciliationWorker:
    return ReconciliationWorker(sessions_repo, ledger, roster)


@pytest.fixture
def warden() -> Identity:
    return Identity(participant_id=100, role=Role.WARDEN)


@pytest.fixture
def student() -> Identity:
    return Identity(participant_id=1, role=Role.STUDENT)


@pytest.fixture
def hour_session(service, warden, t0) -> AttendanceSession:
    """startAt=T0, 1 hour window, late after 30 minutes."""
    return service.create_session(
        creator=warden,
        title="Evening roll call",
        start_at=t0,
        duration_hours=1,
        late_after_minutes=30,
        now=t0,
    ).session


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers(
        [
            User(1, "Asha", "asha@hostel.local", generate_password_hash("pw-1"), Role.STUDENT, batch="2025"),
            User(2, "Ravi", "ravi@hostel.local", generate_password_hash("pw-2"), Role.STUDENT, batch="2026"),
            User(3, "Old", "old@hostel.local", generate_password_hash("pw-3"), Role.STUDENT, batch="2025", is_active=False),
            User(9, "Warden", "warden@hostel.local", generate_password_hash("pw-9"), Role.WARDEN),
            User(10, "Broken", "broken@hostel.local", "CHANGE_ME", Role.STUDENT),
        ]
    )
