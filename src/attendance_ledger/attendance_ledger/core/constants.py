"""Constants and policy defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

STANDARD_WORKDAY_MINUTES = 480

# Arrival categories, in minutes since local midnight.
EARLY_BEFORE_MINUTES = 540  # 09:00
ON_TIME_UNTIL_MINUTES = 570  # 09:30
LATE_UNTIL_MINUTES = 720  # 12:00

DAILY_FIRST_HOUR = 6
DAILY_LAST_HOUR = 20

DEFAULT_LOCATION = "Office"
QR_LOCATION = "QR Point"
QR_TOKEN_TTL_SECONDS = 300
QR_TOKEN_TYPE = "qr-action"
QR_SECRET_CONTEXT = b"qr-action-token"

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_HISTORY_LIMIT = 100
ACCESS_TOKEN_TTL_MINUTES = 60
