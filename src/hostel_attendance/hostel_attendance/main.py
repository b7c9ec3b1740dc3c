from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .users.controller import register as register_users

logger = logging.getLogger("hostel_attendance")

_REPO_ROOT = Path(__file__).resolve().parents[3]


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def load_settings():
    load_dotenv(override=False)
    settings_module = get_settings_module()
    return settings_module, importlib.import_module(settings_module)


def container_from_settings(settings) -> Container:
    return build_container(
        db_config=getattr(settings, "DB_CONFIG"),
        session_defaults=getattr(settings, "SESSION_DEFAULTS", None),
        roster_cohort=getattr(settings, "ROSTER_COHORT", None) or None,
    )


def create_app(container: Optional[Container] = None) -> Flask:
    settings_module, settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.permanent_session_lifetime = timedelta(days=7)

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=_REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)
            apply_seed_sql(db_config, seed_path=_REPO_ROOT / "database" / "seed.sql")
            logger.info("demo seed ready")

        container = container_from_settings(settings)

    app.extensions["hostel_attendance"] = container

    register_users(app, container)
    register_attendance(app, container)

    @app.cli.command("reconcile-attendance")
    def reconcile_attendance_command():
        """Close expired sessions and mark missing participants absent."""
        report = container.reconciliation_worker.run()
        click.echo(
            f"sessions={report.sessions_processed} absent={report.marked_absent} failures={len(report.failures)}"
        )
        if report.failures:
            raise SystemExit(1)

    return app
