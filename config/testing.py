import os

from .config import _db_config, _session_defaults

SECRET_KEY = "test-secret"

DB_CONFIG = _db_config()
SESSION_DEFAULTS = _session_defaults()

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
ROSTER_COHORT = ""

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
