from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..core.enums import SessionState


@dataclass(frozen=True)
class NewSession:
    """Input for SessionRepository.create (no id yet)."""

    title: str
    created_by: int
    start_at: datetime
    expires_at: datetime
    duration_hours: float
    late_after_minutes: int


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: a time-windowed check-in session.

    `active` only ever goes from True to False, and only the reconciliation
    worker flips it.
    """

    session_id: int
    title: str
    created_by: int
    start_at: datetime
    expires_at: datetime
    duration_hours: float
    late_after_minutes: int
    active: bool = True
    created_at: Optional[datetime] = None

    @property
    def late_threshold(self) -> datetime:
        return self.start_at + timedelta(minutes=self.late_after_minutes)

    def state_at(self, now: datetime) -> SessionState:
        if not self.active:
            return SessionState.RECONCILED
        if now >= self.expires_at:
            return SessionState.CLOSED_PENDING_RECONCILIATION
        if now < self.start_at:
            return SessionState.NOT_STARTED
        return SessionState.OPEN

    def to_dict(self) -> dict:
        return {
            "id": self.session_id,
            "title": self.title,
            "createdBy": self.created_by,
            "startAt": self.start_at.isoformat(),
            "expiresAt": self.expires_at.isoformat(),
            "durationHours": self.duration_hours,
            "lateAfterMinutes": self.late_after_minutes,
            "active": self.active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
