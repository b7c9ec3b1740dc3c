"""Settings shared by every environment module."""

import os


def _db_config(default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "hostel_management"),
    }


def _session_defaults() -> dict:
    return {
        "title": os.getenv("SESSION_DEFAULT_TITLE", "Daily Attendance"),
        "duration_hours": float(os.getenv("SESSION_DEFAULT_DURATION_HOURS", "24")),
        "late_after_minutes": int(os.getenv("SESSION_DEFAULT_LATE_AFTER_MINUTES", "480")),
    }


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Optional batch filter for the reconciliation roster; empty means every student.
ROSTER_COHORT = os.getenv("ROSTER_COHORT", "")
