from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class NewAttendanceRecord:
    session_id: int
    participant_id: int
    record_date: date
    status: AttendanceStatus
    check_in_time: Optional[time] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one outcome per (session, participant). Never updated."""

    record_id: int
    session_id: int
    participant_id: int
    record_date: date
    status: AttendanceStatus
    check_in_time: Optional[time]
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class BulkInsertResult:
    inserted: int
    duplicates: int


@dataclass(frozen=True)
class AttendanceSummary:
    """Read-model for the participant summary view."""

    total: int
    present: int
    late: int
    absent: int

    @property
    def percentage(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.present / self.total * 100)

    def to_dict(self) -> dict:
        return {
            "totalDays": self.total,
            "presentDays": self.present,
            "lateDays": self.late,
            "absentDays": self.absent,
            "attendancePercentage": self.percentage,
        }
