from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Sequence

from ..core.exceptions import NotFoundError, ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceSession, NewSession
from .repository import SessionRepository

_COLUMNS = """
    session_id, title, created_by, start_at, expires_at,
    duration_hours, late_after_minutes, active, created_at
"""


def _to_session(r: Dict[str, Any]) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["session_id"]),
        title=r["title"],
        created_by=int(r["created_by"]),
        start_at=r["start_at"],
        expires_at=r["expires_at"],
        duration_hours=float(r["duration_hours"]),
        late_after_minutes=int(r["late_after_minutes"]),
        active=bool(r["active"]),
        created_at=r.get("created_at"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, new_session: NewSession) -> AttendanceSession:
        if new_session.expires_at <= new_session.start_at:
            raise ValidationError("expiresAt must be after startAt")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_sessions
                    (title, created_by, start_at, expires_at, duration_hours, late_after_minutes, active)
                VALUES(%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    new_session.title,
                    int(new_session.created_by),
                    new_session.start_at,
                    new_session.expires_at,
                    new_session.duration_hours,
                    int(new_session.late_after_minutes),
                ),
            )
            session_id = int(cur.lastrowid)
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_sessions WHERE session_id=%s", (session_id,))
            return _to_session(fetchone(cur))

    def get_by_id(self, session_id: int) -> AttendanceSession:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            if not r:
                raise NotFoundError("Session not found")
            return _to_session(r)

    def find_expired_active(self, now: datetime) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE active=1 AND expires_at < %s
                """,
                (now,),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def deactivate(self, session_id: int) -> bool:
        # Guarding on active=1 keeps the transition one-way and the call idempotent.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_sessions SET active=0 WHERE session_id=%s AND active=1",
                (int(session_id),),
            )
            return cur.rowcount > 0

    def list_recent(self, limit: int) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                ORDER BY start_at DESC, session_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_to_session(r) for r in fetchall(cur)]
