from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional, Sequence

from ..common.datetime_utils import format_date, format_time, now_local, parse_iso_datetime
from ..common.validators import require_number
from ..core.constants import (
    DEFAULT_DURATION_HOURS,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_LATE_AFTER_MINUTES,
    DEFAULT_SESSION_LIST_LIMIT,
    DEFAULT_SESSION_TITLE,
    DEFAULT_SUMMARY_DAYS,
    MAX_DURATION_HOURS,
    MAX_LATE_AFTER_MINUTES,
    MAX_SESSION_LIST_LIMIT,
    MAX_SUMMARY_DAYS,
    MAX_TITLE_LENGTH,
)
from ..core.enums import AttendanceStatus, SessionState
from ..core.exceptions import (
    AlreadyMarkedError,
    AuthorizationError,
    DuplicateRecordError,
    SessionClosedError,
    ValidationError,
)
from ..sessions.model import AttendanceSession, NewSession
from ..sessions.repository import SessionRepository
from ..users.model import Identity
from .factory import AttendanceStrategyFactory
from .model import AttendanceSummary, NewAttendanceRecord
from .proof import decode_proof, encode_proof
from .repository import AttendanceRepository

logger = logging.getLogger("hostel_attendance.attendance")


@dataclass(frozen=True)
class CreatedSession:
    session: AttendanceSession
    proof: str


@dataclass(frozen=True)
class CheckInResult:
    session_id: int
    status: AttendanceStatus
    time: str

    def to_dict(self) -> dict:
        return {"sessionId": self.session_id, "status": self.status.value, "time": self.time}


class AttendanceService:
    """Interactive surface: session creation, proof issuing and check-in."""

    def __init__(
        self,
        sessions: SessionRepository,
        records: AttendanceRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        default_duration_hours: float = DEFAULT_DURATION_HOURS,
        default_late_after_minutes: int = DEFAULT_LATE_AFTER_MINUTES,
        default_title: str = DEFAULT_SESSION_TITLE,
    ):
        self._sessions = sessions
        self._records = records
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._default_duration_hours = float(default_duration_hours)
        self._default_late_after_minutes = int(default_late_after_minutes)
        self._default_title = default_title

    @staticmethod
    def _parse_instant(value: Any, field_name: str) -> Optional[datetime]:
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return value.replace(microsecond=0)
        if isinstance(value, str):
            try:
                return parse_iso_datetime(value).replace(microsecond=0)
            except ValueError:
                raise ValidationError(f"{field_name} is not a valid ISO-8601 timestamp")
        raise ValidationError(f"{field_name} is not a valid ISO-8601 timestamp")

    def _clean_title(self, title: Any) -> str:
        if title is None:
            return self._default_title
        if not isinstance(title, str):
            raise ValidationError("title must be a string")
        title = title.strip()
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(f"title must be at most {MAX_TITLE_LENGTH} characters")
        return title or self._default_title

    def create_session(
        self,
        *,
        creator: Identity,
        title: Optional[str] = None,
        start_at: Any = None,
        duration_hours: Any = None,
        late_after_minutes: Any = None,
        expires_at: Any = None,
        now: datetime | None = None,
    ) -> CreatedSession:
        if not creator.is_elevated:
            raise AuthorizationError("Only admins and wardens can create attendance sessions")

        now = now or now_local()
        title = self._clean_title(title)
        # DATETIME columns hold whole seconds; a rounded-up start would reject an immediate check-in.
        start = self._parse_instant(start_at, "startAt") or now.replace(microsecond=0)

        hours = require_number(
            self._default_duration_hours if duration_hours is None else duration_hours,
            "durationHours",
            maximum=MAX_DURATION_HOURS,
        )
        late_minutes = require_number(
            self._default_late_after_minutes if late_after_minutes is None else late_after_minutes,
            "lateAfterMinutes",
            inclusive=True,
            maximum=MAX_LATE_AFTER_MINUTES,
        )
        if late_minutes != int(late_minutes):
            raise ValidationError("lateAfterMinutes must be a whole number of minutes")

        if start > datetime.max - timedelta(hours=MAX_DURATION_HOURS):
            raise ValidationError("startAt is out of range")
        expires = self._parse_instant(expires_at, "expiresAt") or (start + timedelta(hours=hours)).replace(microsecond=0)
        if expires <= start:
            raise ValidationError("expiresAt must be after startAt")

        session = self._sessions.create(
            NewSession(
                title=title,
                created_by=creator.participant_id,
                start_at=start,
                expires_at=expires,
                duration_hours=hours,
                late_after_minutes=int(late_minutes),
            )
        )
        logger.info(
            "session %s created by %s (%s -> %s, late after %s min)",
            session.session_id,
            creator.participant_id,
            session.start_at.isoformat(),
            session.expires_at.isoformat(),
            session.late_after_minutes,
        )
        return CreatedSession(session=session, proof=encode_proof(session.session_id))

    def issue_proof(self, session_id: int) -> str:
        session = self._sessions.get_by_id(int(session_id))
        return encode_proof(session.session_id)

    def get_session(self, session_id: int, *, requester: Identity) -> AttendanceSession:
        # Any authenticated identity may read session metadata; nothing in it is participant-specific.
        return self._sessions.get_by_id(int(session_id))

    def list_sessions(self, *, requester: Identity, limit: int = DEFAULT_SESSION_LIST_LIMIT) -> Sequence[AttendanceSession]:
        if not requester.is_elevated:
            raise AuthorizationError("Only admins and wardens can list attendance sessions")
        limit = require_number(limit, "limit", minimum=1, inclusive=True, maximum=MAX_SESSION_LIST_LIMIT)
        return self._sessions.list_recent(int(limit))

    @staticmethod
    def _resolve_session_id(session_id: Any, proof: Any) -> int:
        if session_id not in (None, ""):
            try:
                return int(str(session_id).strip())
            except ValueError:
                raise ValidationError("Session ID must be an integer")
        if proof not in (None, ""):
            return decode_proof(proof)
        raise ValidationError("Session ID required")

    def check_in(
        self,
        *,
        participant: Identity,
        session_id: Any = None,
        proof: Any = None,
        now: datetime | None = None,
    ) -> CheckInResult:
        target_id = self._resolve_session_id(session_id, proof)
        session = self._sessions.get_by_id(target_id)

        now = now or now_local()
        state = session.state_at(now)
        if state == SessionState.NOT_STARTED:
            raise SessionClosedError("Session has not started yet")
        if state != SessionState.OPEN:
            raise SessionClosedError("Session is not active or already expired")

        strategy = self._factory.for_checkin(now=now, session=session)
        decision = strategy.decide_checkin(now=now, session=session)

        try:
            self._records.insert_one(
                NewAttendanceRecord(
                    session_id=session.session_id,
                    participant_id=participant.participant_id,
                    record_date=now.date(),
                    status=decision.status,
                    check_in_time=now.time().replace(microsecond=0),
                )
            )
        except DuplicateRecordError:
            raise AlreadyMarkedError("You are already recorded for this session")

        logger.info(
            "participant %s checked in to session %s as %s",
            participant.participant_id,
            session.session_id,
            decision.status.value,
        )
        return CheckInResult(session_id=session.session_id, status=decision.status, time=format_time(now))

    def get_participant_summary(
        self,
        participant_id: int,
        *,
        days: int = DEFAULT_SUMMARY_DAYS,
        now: datetime | None = None,
    ) -> AttendanceSummary:
        now = now or now_local()
        days = int(require_number(days, "days", maximum=MAX_SUMMARY_DAYS))
        return self._records.count_and_status_for_participant(int(participant_id), since_days=days, today=now.date())

    def get_history_ui(self, participant_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT):
        rows = self._records.list_for_participant(int(participant_id), int(limit))
        return [self._to_ui(r) for r in rows]

    def _to_ui(self, r) -> dict:
        label = {
            AttendanceStatus.PRESENT: "Present",
            AttendanceStatus.LATE: "Late",
            AttendanceStatus.ABSENT: "Absent",
        }.get(r.status, r.status.value)

        return {
            "sessionId": r.session_id,
            "date": format_date(r.record_date),
            "checkInTime": format_time(r.check_in_time) if r.check_in_time else None,
            "status": r.status.value,
            "label": label,
        }
