"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SETTINGS_ID = "global_settings"

DEFAULT_WORK_START_HOUR = 8
DEFAULT_WORK_START_MINUTE = 0
DEFAULT_LATE_TOLERANCE_MINUTES = 15
DEFAULT_WORK_END_HOUR = 17
DEFAULT_WORK_END_MINUTE = 0

# Monday=0 ... Sunday=6
WORKING_WEEKDAYS = frozenset({0, 1, 2, 3, 4})

MIN_PASSWORD_LENGTH = 6
DEFAULT_LIST_LIMIT = 200
