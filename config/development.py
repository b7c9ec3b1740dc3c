import os

from .config import LOG_LEVEL, ROSTER_COHORT, _db_config, _session_defaults

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = _db_config()
SESSION_DEFAULTS = _session_defaults()

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
