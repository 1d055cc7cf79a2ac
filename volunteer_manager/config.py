import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./volunteer_manager.db")

# Connection pool, only used for server databases
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))

# Queries slower than the threshold (in seconds) are logged as warnings
DB_LOG_SLOW_QUERIES = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
DB_SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "0.5"))

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Lifetime of an encrypted session token, in seconds (default: 30 days)
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", str(30 * 24 * 60 * 60)))

# Frontend base URL, used for CORS and links in outgoing messages
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
CORS_ORIGINS = [
    origin.strip() for origin in os.getenv("CORS_ORIGINS", FRONTEND_URL).split(",") if origin.strip()
]

# Forces the environment to resolve to the given domain regardless of the Host header
APP_ENVIRONMENT_OVERRIDE = os.getenv("APP_ENVIRONMENT_OVERRIDE")

# Timezone in which events take place when the event does not specify one
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "Europe/Amsterdam")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "noreply@animecon.nl")

# Background tasks are only enqueued when a Redis-backed ARQ worker is available
TASK_QUEUE_ENABLED = os.getenv("TASK_QUEUE_ENABLED", "false").lower() == "true"

# Schedule rendering defaults, in hours relative to the event's opening and closing times
SCHEDULE_EVENT_VIEW_START_HOURS = int(os.getenv("SCHEDULE_EVENT_VIEW_START_HOURS", "4"))
SCHEDULE_EVENT_VIEW_END_HOURS = int(os.getenv("SCHEDULE_EVENT_VIEW_END_HOURS", "2"))
SCHEDULE_DAY_VIEW_START_TIME = os.getenv("SCHEDULE_DAY_VIEW_START_TIME", "08:00")
