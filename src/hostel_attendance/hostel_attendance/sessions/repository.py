from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .model import AttendanceSession, NewSession


class SessionRepository(Protocol):
    """Session Store interface.

    Services depend on this protocol, not on a concrete database.
    """

    def create(self, new_session: NewSession) -> AttendanceSession:
        """Persist a session; raises ValidationError unless expires_at > start_at."""

        raise NotImplementedError

    def get_by_id(self, session_id: int) -> AttendanceSession:
        """Raises NotFoundError when the session does not exist."""

        raise NotImplementedError

    def find_expired_active(self, now: datetime) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def deactivate(self, session_id: int) -> bool:
        """Set active=False; idempotent. Returns True only if the row changed."""

        raise NotImplementedError

    def list_recent(self, limit: int) -> Sequence[AttendanceSession]:
        raise NotImplementedError
