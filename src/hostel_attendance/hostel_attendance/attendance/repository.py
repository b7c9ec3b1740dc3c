from __future__ import annotations

from datetime import date
from typing import Iterable, Protocol, Sequence

from .model import AttendanceRecord, AttendanceSummary, BulkInsertResult, NewAttendanceRecord


class AttendanceRepository(Protocol):
    """Attendance Ledger interface.

    Implementations must enforce the (session_id, participant_id) uniqueness in
    storage, not in application code.
    """

    def insert_one(self, record: NewAttendanceRecord) -> int:
        """Insert a row; raises DuplicateRecordError if the pair already exists."""

        raise NotImplementedError

    def insert_many(self, records: Iterable[NewAttendanceRecord]) -> BulkInsertResult:
        """Best-effort bulk insert; duplicate rows are skipped and counted."""

        raise NotImplementedError

    def find_by_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count_and_status_for_participant(
        self, participant_id: int, *, since_days: int, today: date
    ) -> AttendanceSummary:
        raise NotImplementedError

    def list_for_participant(self, participant_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
