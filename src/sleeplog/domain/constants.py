"""Centralized constants for sleeplog.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Ledger ----------
LEDGER_COLUMNS = [
    "Timezone local time",
    "Latitude",
    "Longitude",
    "Timezone",
    "UTC time",
    "Duration",
]
LEDGER_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
INVALID_DURATION = "N/A"

# ---------- Sleep stats ----------
SLEEP_TARGET_HOURS = 8.0
DEBT_WINDOW_SESSIONS = 5
MAX_SESSION_HOURS = 24.0
CIRCULAR_R_FLOOR = 1e-12
RECENT_ENTRIES_COUNT = 20

# ---------- Reminders ----------
START_REMINDER_HOURS = 15.5  # awake since last stop
STOP_REMINDER_HOURS = 8.5  # asleep since last start
REMINDER_CHECK_INTERVAL = 5 * 60  # seconds

# ---------- Notification gate ----------
QUIET_HOURS_START = 2
QUIET_HOURS_END = 8
MIN_NOTIFICATION_SPACING_HOURS = 2.0
DAILY_NOTIFICATION_CAP = 3
NOTIFICATION_WINDOW_HOURS = 24.0

# ---------- Insight notifications ----------
AI_CHECK_INTERVAL = 30 * 60  # seconds
AI_MAX_TOKENS = 300
AI_REQUEST_TIMEOUT = 60.0
ANTHROPIC_API_VERSION = "2023-06-01"

# ---------- Push delivery ----------
MAX_SUBSCRIPTIONS = 10
EXPIRED_SUBSCRIPTION_STATUSES = (404, 410)
PUSHBULLET_URL = "https://api.pushbullet.com/v2/pushes"
REQUEST_TIMEOUT = 30.0
