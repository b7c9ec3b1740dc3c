from __future__ import annotations

import json
import threading
from datetime import datetime, time, timedelta

import pytest

from src.hostel_attendance.hostel_attendance.core.enums import AttendanceStatus, Role
from src.hostel_attendance.hostel_attendance.core.exceptions import (
    AlreadyMarkedError,
    AuthorizationError,
    InvalidProofError,
    NotFoundError,
    SessionClosedError,
    ValidationError,
)
from src.hostel_attendance.hostel_attendance.users.model import Identity


def test_create_session_defaults(service, warden, t0):
    created = service.create_session(creator=warden, now=t0)

    session = created.session
    assert session.title == "Daily Attendance"
    assert session.start_at == t0
    assert session.expires_at == t0 + timedelta(hours=24)
    assert session.late_after_minutes == 480
    assert session.active is True
    assert json.loads(created.proof) == {"sessionId": str(session.session_id)}


def test_create_session_parses_iso_start(service, warden, t0):
    created = service.create_session(creator=warden, start_at="2026-02-01T20:00:00", duration_hours=2, now=t0)

    assert created.session.start_at == datetime(2026, 2, 1, 20, 0)
    assert created.session.expires_at == datetime(2026, 2, 1, 22, 0)


def test_create_session_accepts_explicit_expiry(service, warden, t0):
    created = service.create_session(creator=warden, start_at=t0, expires_at=t0 + timedelta(minutes=90), now=t0)

    assert created.session.expires_at == t0 + timedelta(minutes=90)


def test_student_cannot_create_session(service, student, t0):
    with pytest.raises(AuthorizationError):
        service.create_session(creator=student, now=t0)


@pytest.mark.parametrize("duration", [0, -2, "abc"])
def test_create_session_rejects_bad_duration(service, warden, t0, duration):
    with pytest.raises(ValidationError):
        service.create_session(creator=warden, duration_hours=duration, now=t0)


def test_create_session_rejects_negative_late_threshold(service, warden, t0):
    with pytest.raises(ValidationError):
        service.create_session(creator=warden, late_after_minutes=-1, now=t0)


def test_create_session_rejects_expiry_before_start(service, warden, t0):
    with pytest.raises(ValidationError):
        service.create_session(creator=warden, start_at=t0, expires_at=t0 - timedelta(minutes=1), now=t0)


def test_create_session_rejects_unparsable_start(service, warden, t0):
    with pytest.raises(ValidationError):
        service.create_session(creator=warden, start_at="tomorrow-ish", now=t0)


def test_issue_proof_for_existing_and_missing_session(service, hour_session):
    assert json.loads(service.issue_proof(hour_session.session_id)) == {"sessionId": str(hour_session.session_id)}

    with pytest.raises(NotFoundError):
        service.issue_proof(999)


def test_get_session_is_open_to_any_identity(service, hour_session, student):
    assert service.get_session(hour_session.session_id, requester=student) == hour_session


def test_list_sessions_requires_elevated_role(service, hour_session, warden, student):
    assert [s.session_id for s in service.list_sessions(requester=warden)] == [hour_session.session_id]
    with pytest.raises(AuthorizationError):
        service.list_sessions(requester=student)


def test_scenario_a_present_then_closed(service, ledger, hour_session, t0):
    p1 = Identity(participant_id=1, role=Role.STUDENT)
    result = service.check_in(participant=p1, session_id=hour_session.session_id, now=t0 + timedelta(minutes=10))

    assert result.status == AttendanceStatus.PRESENT
    assert result.time == "08:10:00"

    p2 = Identity(participant_id=2, role=Role.STUDENT)
    with pytest.raises(SessionClosedError):
        service.check_in(participant=p2, session_id=hour_session.session_id, now=t0 + timedelta(minutes=61))
    assert ledger.rows_for(hour_session.session_id) == {1: AttendanceStatus.PRESENT}


def test_check_in_after_threshold_but_before_expiry_is_late(service, hour_session, student, t0):
    result = service.check_in(participant=student, session_id=hour_session.session_id, now=t0 + timedelta(minutes=45))

    assert result.status == AttendanceStatus.LATE


def test_late_boundary_is_strict(service, hour_session, t0):
    at_threshold = service.check_in(
        participant=Identity(1, Role.STUDENT),
        session_id=hour_session.session_id,
        now=t0 + timedelta(minutes=30),
    )
    just_after = service.check_in(
        participant=Identity(2, Role.STUDENT),
        session_id=hour_session.session_id,
        now=t0 + timedelta(minutes=30, seconds=1),
    )

    assert at_threshold.status == AttendanceStatus.PRESENT
    assert just_after.status == AttendanceStatus.LATE


def test_check_in_exactly_at_expiry_is_closed(service, hour_session, student, t0):
    with pytest.raises(SessionClosedError):
        service.check_in(participant=student, session_id=hour_session.session_id, now=t0 + timedelta(hours=1))


def test_check_in_before_start_is_rejected(service, warden, student, t0):
    later = service.create_session(creator=warden, start_at=t0 + timedelta(hours=2), now=t0).session

    with pytest.raises(SessionClosedError):
        service.check_in(participant=student, session_id=later.session_id, now=t0)


def test_check_in_on_reconciled_session_is_rejected(service, sessions_repo, hour_session, student, t0):
    sessions_repo.deactivate(hour_session.session_id)

    with pytest.raises(SessionClosedError):
        service.check_in(participant=student, session_id=hour_session.session_id, now=t0 + timedelta(minutes=5))


def test_scenario_b_second_check_in_is_already_marked(service, ledger, hour_session, student, t0):
    first = service.check_in(participant=student, session_id=hour_session.session_id, now=t0 + timedelta(minutes=5))
    with pytest.raises(AlreadyMarkedError):
        service.check_in(participant=student, session_id=hour_session.session_id, now=t0 + timedelta(minutes=6))

    assert first.status == AttendanceStatus.PRESENT
    rows = ledger.find_by_session(hour_session.session_id)
    assert len(rows) == 1
    assert rows[0].check_in_time == time(8, 5, 0)


def test_already_marked_keeps_original_status(service, ledger, hour_session, student, t0):
    service.check_in(participant=student, session_id=hour_session.session_id, now=t0 + timedelta(minutes=5))
    with pytest.raises(AlreadyMarkedError):
        service.check_in(participant=student, session_id=hour_session.session_id, now=t0 + timedelta(minutes=50))

    assert ledger.rows_for(hour_session.session_id) == {student.participant_id: AttendanceStatus.PRESENT}


def test_concurrent_check_ins_write_exactly_one_row(service, ledger, hour_session, student, t0):
    attempts = 16
    barrier = threading.Barrier(attempts)
    outcomes: list[str] = []
    outcomes_lock = threading.Lock()

    def attempt():
        barrier.wait()
        try:
            service.check_in(participant=student, session_id=hour_session.session_id, now=t0 + timedelta(minutes=1))
            outcome = "ok"
        except AlreadyMarkedError:
            outcome = "already"
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=attempt) for _ in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("already") == attempts - 1
    assert len(ledger.find_by_session(hour_session.session_id)) == 1


def test_check_in_with_proof_payload(service, hour_session, student, t0):
    proof = service.issue_proof(hour_session.session_id)

    result = service.check_in(participant=student, proof=proof, now=t0 + timedelta(minutes=1))

    assert result.session_id == hour_session.session_id


@pytest.mark.parametrize("proof", ["{not json", '["x"]', '{"other": 1}', '{"sessionId": "abc"}'])
def test_malformed_proof_is_invalid(service, student, t0, proof):
    with pytest.raises(InvalidProofError):
        service.check_in(participant=student, proof=proof, now=t0)


def test_missing_target_is_validation_error(service, student, t0):
    with pytest.raises(ValidationError):
        service.check_in(participant=student, now=t0)


def test_unknown_session_is_not_found(service, student, t0):
    with pytest.raises(NotFoundError):
        service.check_in(participant=student, session_id=404, now=t0)


def test_summary_and_history(service, warden, student, t0):
    s1 = service.create_session(creator=warden, start_at=t0, duration_hours=1, late_after_minutes=30, now=t0).session
    s2 = service.create_session(creator=warden, start_at=t0, duration_hours=1, late_after_minutes=30, now=t0).session
    service.check_in(participant=student, session_id=s1.session_id, now=t0 + timedelta(minutes=5))
    service.check_in(participant=student, session_id=s2.session_id, now=t0 + timedelta(minutes=40))

    summary = service.get_participant_summary(student.participant_id, days=30, now=t0 + timedelta(hours=2))
    history = service.get_history_ui(student.participant_id)

    assert (summary.total, summary.present, summary.late, summary.absent) == (2, 1, 1, 0)
    assert summary.percentage == 50
    assert {h["status"] for h in history} == {"present", "late"}
    assert all(h["date"] == "2026-02-01" for h in history)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"duration_hours": 1e9},
        {"late_after_minutes": 1e12},
        {"start_at": "9999-12-31T00:00:00"},
        {"title": 5},
        {"title": "x" * 201},
    ],
)
def test_create_session_rejects_out_of_range_input(service, warden, t0, kwargs):
    with pytest.raises(ValidationError):
        service.create_session(creator=warden, now=t0, **kwargs)


def test_session_start_is_truncated_to_whole_seconds(service, warden, t0):
    created_at = t0.replace(microsecond=700000)
    session = service.create_session(creator=warden, duration_hours=1, now=created_at).session

    assert session.start_at == t0
    assert session.expires_at == t0 + timedelta(hours=1)
    result = service.check_in(
        participant=Identity(1, Role.STUDENT),
        session_id=session.session_id,
        now=created_at,
    )
    assert result.status == AttendanceStatus.PRESENT


@pytest.mark.parametrize("limit", [0, -1, "abc", 10_000])
def test_list_sessions_rejects_bad_limit(service, warden, limit):
    with pytest.raises(ValidationError):
        service.list_sessions(requester=warden, limit=limit)


@pytest.mark.parametrize("days", [0, -3, 10**9])
def test_summary_rejects_bad_window(service, student, t0, days):
    with pytest.raises(ValidationError):
        service.get_participant_summary(student.participant_id, days=days, now=t0)
