from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...sessions.model import AttendanceSession
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in."""

    def decide_checkin(self, *, now: datetime, session: AttendanceSession) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE)
