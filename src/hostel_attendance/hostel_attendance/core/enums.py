from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles issued by the identity provider."""

    ADMIN = "admin"
    WARDEN = "warden"
    STUDENT = "student"


ELEVATED_ROLES = frozenset({Role.ADMIN, Role.WARDEN})


class AttendanceStatus(str, Enum):
    """Outcome stored on a ledger row."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"


class SessionState(str, Enum):
    """Lifecycle of a check-in session as seen by the service."""

    NOT_STARTED = "NOT_STARTED"
    OPEN = "OPEN"
    CLOSED_PENDING_RECONCILIATION = "CLOSED_PENDING_RECONCILIATION"
    RECONCILED = "RECONCILED"
