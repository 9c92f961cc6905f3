# vanishchat/core/config.py

import os

# =========================
# DATABASE
# =========================

DB_USER = os.getenv("DB_USER", "vanishchat_user")
DB_PASS = os.getenv("DB_PASS", "vanishchat")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "vanishchat")

# A full URL wins over the individual DB_* settings (tests point this at SQLite)
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# =========================
# MESSAGE LIFECYCLE
# =========================

BASE_LIFETIME_SECONDS = int(os.getenv("BASE_LIFETIME_SECONDS", "600"))
ACTIVITY_WINDOW_SECONDS = int(os.getenv("ACTIVITY_WINDOW_SECONDS", "300"))
SCAN_INTERVAL_SECONDS = float(os.getenv("SCAN_INTERVAL_SECONDS", "1"))
JANITOR_INTERVAL_SECONDS = float(os.getenv("JANITOR_INTERVAL_SECONDS", "60"))
MAX_MESSAGE_LENGTH = int(os.getenv("MAX_MESSAGE_LENGTH", "2000"))

# =========================
# HTTP
# =========================

MESSAGES_RATE_LIMIT = os.getenv("MESSAGES_RATE_LIMIT", "60/minute")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
