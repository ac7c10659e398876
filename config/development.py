import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "squadops"),
}

DEBUG = True

# Applies database/schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "UTC")
# "truncate" (whole hours, rounded down) or "round" (nearest hour)
HOURS_POLICY = os.getenv("HOURS_POLICY", "truncate")
COMPLIANCE_PENALTY_PER_SEVERITY = float(os.getenv("COMPLIANCE_PENALTY_PER_SEVERITY", "2.0"))
LIST_LIMIT = int(os.getenv("LIST_LIMIT", "200"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
