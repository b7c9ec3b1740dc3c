"""Mark absentees for expired attendance sessions.

Meant for cron, once a day shortly before midnight server time:

    59 23 * * * cd /srv/hostel && APP_ENV=production python scripts/reconcile_attendance.py
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.hostel_attendance.hostel_attendance.main import configure_logging, container_from_settings, load_settings

logger = logging.getLogger("hostel_attendance.reconciliation")


def main() -> int:
    _, settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = container_from_settings(settings)
    report = container.reconciliation_worker.run()

    for outcome in report.failures:
        logger.error("session %s not reconciled: %s", outcome.session_id, outcome.error)
    return 1 if report.failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
