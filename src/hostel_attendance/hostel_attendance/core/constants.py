"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_TITLE = "Daily Attendance"
DEFAULT_DURATION_HOURS = 24
DEFAULT_LATE_AFTER_MINUTES = 480
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_SUMMARY_DAYS = 30
DEFAULT_SESSION_LIST_LIMIT = 50

# MySQL error code for a violated UNIQUE KEY.
MYSQL_DUPLICATE_ENTRY = 1062

# Upper bounds for request-supplied values; keeps datetime arithmetic in range.
MAX_DURATION_HOURS = 24 * 366
MAX_LATE_AFTER_MINUTES = MAX_DURATION_HOURS * 60
MAX_TITLE_LENGTH = 200
MAX_SESSION_LIST_LIMIT = 500
MAX_SUMMARY_DAYS = 3660
