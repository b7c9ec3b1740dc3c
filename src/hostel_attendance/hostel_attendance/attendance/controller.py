from __future__ import annotations

import io
import logging
from functools import wraps

from flask import Flask, jsonify, request, send_file, session

from ..core.constants import DEFAULT_SESSION_LIST_LIMIT, DEFAULT_SUMMARY_DAYS
from ..core.enums import Role
from ..core.exceptions import (
    AlreadyMarkedError,
    AuthorizationError,
    DomainError,
    InvalidProofError,
    NotFoundError,
    SessionClosedError,
    ValidationError,
)
from ..container import Container
from ..users.model import Identity
from .proof import decode_qr_image, render_qr_data_url, render_qr_png

logger = logging.getLogger("hostel_attendance.http")

_STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (AuthorizationError, 403),
    (ValidationError, 400),
    (InvalidProofError, 400),
    (SessionClosedError, 400),
)


def register(app: Flask, container: Container) -> None:
    def _current_identity() -> Identity:
        return Identity(participant_id=int(session["user_id"]), role=Role(session["role"]))

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "Authentication required"}), 401
            return view(*args, **kwargs)

        return wrapper

    def elevated_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "Authentication required"}), 401

            if session.get("role") not in {Role.ADMIN.value, Role.WARDEN.value}:
                return jsonify({"success": False, "message": "Insufficient permissions"}), 403

            return view(*args, **kwargs)

        return wrapper

    def _json_object():
        data = request.get_json(silent=True)
        if data is None:
            return {}
        return data if isinstance(data, dict) else None

    def _fail(exc: DomainError):
        for error_type, status in _STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                return jsonify({"success": False, "message": str(exc)}), status
        return jsonify({"success": False, "message": str(exc)}), 400

    def _check_in(*, session_id=None, proof=None):
        """Shared tail of the JSON and image check-in endpoints."""
        try:
            result = container.attendance_service.check_in(
                participant=_current_identity(),
                session_id=session_id,
                proof=proof,
            )
        except AlreadyMarkedError as e:
            # A retried or double-submitted check-in: confirm, don't alarm.
            return jsonify({"success": True, "alreadyMarked": True, "message": str(e)}), 200
        except DomainError as e:
            return _fail(e)
        except Exception:
            logger.exception("check-in failed")
            return jsonify({"success": False, "message": "Failed to mark attendance"}), 500

        return jsonify({"success": True, "message": "Attendance marked", "data": result.to_dict()}), 200

    @app.route("/api/attendance/sessions", methods=["POST"], endpoint="attendance_create_session")
    @elevated_required
    def create_session():
        data = _json_object()
        if data is None:
            return jsonify({"success": False, "message": "Request body must be a JSON object"}), 400
        try:
            created = container.attendance_service.create_session(
                creator=_current_identity(),
                title=data.get("title"),
                start_at=data.get("startAt"),
                duration_hours=data.get("durationHours"),
                late_after_minutes=data.get("lateAfterMinutes"),
                expires_at=data.get("expiresAt"),
            )
        except DomainError as e:
            return _fail(e)
        except Exception:
            logger.exception("create session failed")
            return jsonify({"success": False, "message": "Failed to create session"}), 500

        return (
            jsonify(
                {
                    "success": True,
                    "message": "Attendance session created",
                    "data": {
                        "session": created.session.to_dict(),
                        "proof": created.proof,
                        "qrCode": render_qr_data_url(created.proof),
                    },
                }
            ),
            201,
        )

    @app.route("/api/attendance/sessions", methods=["GET"], endpoint="attendance_list_sessions")
    @elevated_required
    def list_sessions():
        limit = request.args.get("limit", DEFAULT_SESSION_LIST_LIMIT)
        try:
            items = container.attendance_service.list_sessions(requester=_current_identity(), limit=limit)
        except DomainError as e:
            return _fail(e)
        return jsonify({"success": True, "data": [s.to_dict() for s in items]})

    @app.route("/api/attendance/sessions/<int:session_id>", methods=["GET"], endpoint="attendance_get_session")
    @login_required
    def get_session(session_id: int):
        try:
            item = container.attendance_service.get_session(session_id, requester=_current_identity())
        except DomainError as e:
            return _fail(e)
        except Exception:
            logger.exception("get session %s failed", session_id)
            return jsonify({"success": False, "message": "Failed to fetch session"}), 500
        return jsonify({"success": True, "data": {"session": item.to_dict()}})

    @app.route("/api/attendance/sessions/<int:session_id>/qr", methods=["GET"], endpoint="attendance_session_qr")
    @elevated_required
    def session_qr(session_id: int):
        try:
            proof = container.attendance_service.issue_proof(session_id)
        except DomainError as e:
            return _fail(e)
        except Exception:
            logger.exception("generate QR for session %s failed", session_id)
            return jsonify({"success": False, "message": "Failed to generate QR"}), 500
        return jsonify({"success": True, "data": {"proof": proof, "qrCode": render_qr_data_url(proof)}})

    @app.route("/api/attendance/sessions/<int:session_id>/qr.png", methods=["GET"], endpoint="attendance_session_qr_png")
    @elevated_required
    def session_qr_png(session_id: int):
        try:
            proof = container.attendance_service.issue_proof(session_id)
        except DomainError as e:
            return _fail(e)
        return send_file(io.BytesIO(render_qr_png(proof)), mimetype="image/png")

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @login_required
    def mark():
        data = _json_object()
        if data is None:
            return jsonify({"success": False, "message": "Request body must be a JSON object"}), 400
        return _check_in(session_id=data.get("sessionId"), proof=data.get("qrData"))

    @app.route("/api/attendance/mark/image", methods=["POST"], endpoint="attendance_mark_image")
    @login_required
    def mark_image():
        if "image" not in request.files:
            return jsonify({"success": False, "message": "Image file is required"}), 400
        try:
            scanned = decode_qr_image(request.files["image"].stream)
        except InvalidProofError as e:
            return _fail(e)
        return _check_in(proof=scanned)

    @app.route("/api/attendance/me", methods=["GET"], endpoint="attendance_me")
    @login_required
    def me():
        user_id = int(session["user_id"])
        days = request.args.get("days", DEFAULT_SUMMARY_DAYS)
        try:
            summary = container.attendance_service.get_participant_summary(user_id, days=days)
            history = container.attendance_service.get_history_ui(user_id)
        except DomainError as e:
            return _fail(e)
        return jsonify({"success": True, "data": {**summary.to_dict(), "records": history}})
