from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_DURATION_HOURS, DEFAULT_LATE_AFTER_MINUTES, DEFAULT_SESSION_TITLE
from .database.connection import DBConfig, DatabaseConnection
from .reconciliation.worker import ReconciliationWorker
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.roster import RosterProvider, UserRosterProvider
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository
    roster: RosterProvider

    auth_service: AuthService
    attendance_service: AttendanceService
    reconciliation_worker: ReconciliationWorker

    conn: Optional[DatabaseConnection] = None


def build_container(
    *,
    db_config: dict,
    session_defaults: Optional[dict] = None,
    roster_cohort: Optional[str] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    defaults = session_defaults or {}

    users_repo = MySQLUserRepository(conn)
    sessions_repo = MySQLSessionRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    roster = UserRosterProvider(users_repo)

    auth_service = AuthService(users_repo)
    attendance_service = AttendanceService(
        sessions_repo,
        attendance_repo,
        strategy_factory=AttendanceStrategyFactory(),
        default_duration_hours=defaults.get("duration_hours", DEFAULT_DURATION_HOURS),
        default_late_after_minutes=defaults.get("late_after_minutes", DEFAULT_LATE_AFTER_MINUTES),
        default_title=defaults.get("title", DEFAULT_SESSION_TITLE),
    )
    reconciliation_worker = ReconciliationWorker(sessions_repo, attendance_repo, roster, cohort=roster_cohort)

    return Container(
        users_repo=users_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        roster=roster,
        auth_service=auth_service,
        attendance_service=attendance_service,
        reconciliation_worker=reconciliation_worker,
        conn=conn,
    )
