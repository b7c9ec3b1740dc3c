from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..attendance.model import NewAttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.enums import AttendanceStatus
from ..sessions.model import AttendanceSession
from ..sessions.repository import SessionRepository
from ..users.roster import RosterProvider

logger = logging.getLogger("hostel_attendance.reconciliation")


@dataclass(frozen=True)
class SessionOutcome:
    session_id: int
    marked_absent: int = 0
    duplicates: int = 0
    deactivated: bool = False
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class ReconciliationReport:
    run_at: datetime
    outcomes: List[SessionOutcome] = field(default_factory=list)

    @property
    def sessions_processed(self) -> int:
        return len(self.outcomes)

    @property
    def marked_absent(self) -> int:
        return sum(o.marked_absent for o in self.outcomes)

    @property
    def failures(self) -> List[SessionOutcome]:
        return [o for o in self.outcomes if o.failed]


class ReconciliationWorker:
    """Close expired sessions and write `absent` rows for roster members who never checked in.

    Holds no state between runs; whatever triggers `run` (Flask CLI command,
    cron script) only needs to call it. Each session is an independent unit:
    a failure is logged and recorded, and the next session is still processed.
    A session whose deactivate call failed is picked up again on the next run,
    and its already-written absent rows then come back as harmless duplicates.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        records: AttendanceRepository,
        roster: RosterProvider,
        *,
        cohort: Optional[str] = None,
    ):
        self._sessions = sessions
        self._records = records
        self._roster = roster
        self._cohort = cohort

    def run(self, *, now: datetime | None = None) -> ReconciliationReport:
        now = now or now_local()
        report = ReconciliationReport(run_at=now)

        expired = self._sessions.find_expired_active(now)
        if not expired:
            logger.info("no expired active sessions found")
            return report

        for session in expired:
            try:
                outcome = self._reconcile(session, now=now)
            except Exception as exc:
                logger.exception("reconciliation failed for session %s", session.session_id)
                outcome = SessionOutcome(session_id=session.session_id, error=f"{type(exc).__name__}: {exc}")
            report.outcomes.append(outcome)

        logger.info(
            "reconciled %d session(s), %d absent row(s) written, %d failure(s)",
            report.sessions_processed,
            report.marked_absent,
            len(report.failures),
        )
        return report

    def _reconcile(self, session: AttendanceSession, *, now: datetime) -> SessionOutcome:
        roster = self._roster.participant_ids(self._cohort)
        marked = {r.participant_id for r in self._records.find_by_session(session.session_id)}
        to_mark = sorted(roster - marked)

        inserted = 0
        duplicates = 0
        if to_mark:
            # Stamped with the run date, not the session's own date.
            today = now.date()
            result = self._records.insert_many(
                NewAttendanceRecord(
                    session_id=session.session_id,
                    participant_id=participant_id,
                    record_date=today,
                    status=AttendanceStatus.ABSENT,
                    check_in_time=None,
                )
                for participant_id in to_mark
            )
            inserted = result.inserted
            duplicates = result.duplicates

        changed = self._sessions.deactivate(session.session_id)
        logger.info(
            "session %s: marked %d absent (%d already present), deactivated=%s",
            session.session_id,
            inserted,
            duplicates,
            changed,
        )
        return SessionOutcome(
            session_id=session.session_id,
            marked_absent=inserted,
            duplicates=duplicates,
            deactivated=changed,
        )
