"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_HISTORY_LIMIT = 200
DEFAULT_PENDING_LIMIT = 500
MAX_SUBJECT_LENGTH = 200
