import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "squadops"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "squadops"),
}

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "UTC")
HOURS_POLICY = os.getenv("HOURS_POLICY", "truncate")
COMPLIANCE_PENALTY_PER_SEVERITY = float(os.getenv("COMPLIANCE_PENALTY_PER_SEVERITY", "2.0"))
LIST_LIMIT = int(os.getenv("LIST_LIMIT", "200"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
