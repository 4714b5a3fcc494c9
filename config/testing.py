import os

SECRET_KEY = "test-secret"

QR_SECRET = ""
QR_TOKEN_TTL_SECONDS = 300

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_ledger_test"),
    "connect_timeout": 5,
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_DB = False

LOG_LEVEL = "WARNING"
LOG_DIR = ""
