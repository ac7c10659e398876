"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TIMEZONE = "UTC"
DEFAULT_WORKDAYS = (1, 2, 3, 4, 5)
DEFAULT_LIST_LIMIT = 200

MAX_NOTES_LENGTH = 500
MAX_REASON_LENGTH = 1000
MAX_COMMENTS_LENGTH = 500

MIN_SEVERITY = 1
MAX_SEVERITY = 5
DEFAULT_PENALTY_PER_SEVERITY = 2.0
MAX_SCORE = 100.0
