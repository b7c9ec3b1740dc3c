from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..core.exceptions import AuthenticationError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = request.form
        try:
            s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        except (AuthenticationError, ValidationError) as e:
            return jsonify({"success": False, "message": str(e)}), 401

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value
        session["batch"] = s_user.batch

        return jsonify(
            {
                "success": True,
                "message": "Login successful",
                "data": {"id": s_user.user_id, "name": s_user.name, "role": s_user.role.value},
            }
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True, "message": "Logged out"})
