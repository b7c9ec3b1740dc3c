from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..sessions.model import AttendanceSession
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, now: datetime, session: AttendanceSession) -> AttendanceStrategy:
        # "After" is strict: a check-in exactly at the threshold is still present.
        if now > session.late_threshold:
            return LateStrategy()
        return PresentStrategy()
