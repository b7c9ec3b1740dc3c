from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, Iterable, Sequence

from ..core.enums import AttendanceStatus
from ..core.exceptions import DuplicateRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, normalize_mysql_time
from .model import AttendanceRecord, AttendanceSummary, BulkInsertResult, NewAttendanceRecord
from .repository import AttendanceRepository

_INSERT_SQL = """
    INSERT INTO attendance_records(session_id, participant_id, record_date, status, check_in_time)
    VALUES(%s,%s,%s,%s,%s)
"""


def _params(record: NewAttendanceRecord) -> tuple:
    return (
        int(record.session_id),
        int(record.participant_id),
        record.record_date,
        record.status.value,
        record.check_in_time,
    )


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        session_id=int(r["session_id"]),
        participant_id=int(r["participant_id"]),
        record_date=r["record_date"],
        status=AttendanceStatus(r["status"]),
        check_in_time=normalize_mysql_time(r.get("check_in_time")),
        created_at=r.get("created_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert_one(self, record: NewAttendanceRecord) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(_INSERT_SQL, _params(record))
                return int(cur.lastrowid)
        except Exception as exc:
            if is_duplicate_key(exc):
                raise DuplicateRecordError(
                    f"record exists for session={record.session_id} participant={record.participant_id}"
                ) from exc
            raise

    def insert_many(self, records: Iterable[NewAttendanceRecord]) -> BulkInsertResult:
        # Row by row inside one transaction: InnoDB rolls back only the failing
        # statement on a duplicate key, so the rest of the batch still commits.
        inserted = 0
        duplicates = 0
        with db_cursor(self._conn_factory) as (_, cur):
            for record in records:
                try:
                    cur.execute(_INSERT_SQL, _params(record))
                except Exception as exc:
                    if not is_duplicate_key(exc):
                        raise
                    duplicates += 1
                else:
                    inserted += 1
        return BulkInsertResult(inserted=inserted, duplicates=duplicates)

    def find_by_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT record_id, session_id, participant_id, record_date, status, check_in_time, created_at
                FROM attendance_records
                WHERE session_id=%s
                """,
                (int(session_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def count_and_status_for_participant(
        self, participant_id: int, *, since_days: int, today: date
    ) -> AttendanceSummary:
        since = today - timedelta(days=int(since_days))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    COUNT(*) AS total,
                    COALESCE(SUM(status='present'), 0) AS present,
                    COALESCE(SUM(status='late'), 0) AS late,
                    COALESCE(SUM(status='absent'), 0) AS absent
                FROM attendance_records
                WHERE participant_id=%s AND record_date > %s
                """,
                (int(participant_id), since),
            )
            r = fetchone(cur) or {}
            return AttendanceSummary(
                total=int(r.get("total") or 0),
                present=int(r.get("present") or 0),
                late=int(r.get("late") or 0),
                absent=int(r.get("absent") or 0),
            )

    def list_for_participant(self, participant_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT record_id, session_id, participant_id, record_date, status, check_in_time, created_at
                FROM attendance_records
                WHERE participant_id=%s
                ORDER BY record_date DESC, record_id DESC
                LIMIT %s
                """,
                (int(participant_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]
