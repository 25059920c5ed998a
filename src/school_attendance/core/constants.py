"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_NOTIFY_WORKERS = 8
DEFAULT_RECENT_ACTIVITY = 5
DEFAULT_RESET_TOKEN_TTL_MINUTES = 60
MIN_PASSWORD_LENGTH = 6

UNKNOWN_STUDENT = "Unknown Student"
UNKNOWN_TEACHER = "Unknown Teacher"

ALREADY_RECORDED_MESSAGE = "attendance already recorded for one or more students on this date"
