import os
from dotenv import load_dotenv

load_dotenv()


def _bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _limit(value: str):
    # "<max>/<window seconds>"
    max_requests, window = value.split("/", 1)
    return int(max_requests), int(window)


APP_NAME = "payments-portal"
APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./payments_portal.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")

JWT_SECRET = os.getenv("JWT_SECRET", "your-super-secret-jwt-key-change-in-production")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_IN_DAYS = int(os.getenv("JWT_EXPIRES_IN_DAYS", "90"))
JWT_COOKIE_EXPIRES_IN_DAYS = int(os.getenv("JWT_COOKIE_EXPIRES_IN_DAYS", "90"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

FRONTEND_URLS = [
    origin.strip()
    for origin in os.getenv("FRONTEND_URL", "http://localhost:3000").split(",")
    if origin.strip()
]

RATE_LIMIT_ENABLED = _bool(os.getenv("RATE_LIMIT_ENABLED", "true"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900"))
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
LOGIN_RATE_LIMIT = _limit(os.getenv("LOGIN_RATE_LIMIT", "5/900"))
TRANSACTION_RATE_LIMIT = _limit(os.getenv("TRANSACTION_RATE_LIMIT", "10/60"))
# progressive delay once SPEED_LIMIT is used up, per extra request, capped
SPEED_LIMIT = _limit(os.getenv("SPEED_LIMIT", "50/900"))
SPEED_LIMIT_DELAY_SECONDS = float(os.getenv("SPEED_LIMIT_DELAY_SECONDS", "0.5"))
SPEED_LIMIT_MAX_DELAY_SECONDS = float(os.getenv("SPEED_LIMIT_MAX_DELAY_SECONDS", "20"))

SWIFT_SUCCESS_RATE = float(os.getenv("SWIFT_SUCCESS_RATE", "0.9"))
SWIFT_DELAY_SECONDS = float(os.getenv("SWIFT_DELAY_SECONDS", "1.0"))

MAX_BODY_BYTES = int(os.getenv("MAX_BODY_BYTES", "10240"))

MAX_LOGIN_ATTEMPTS = 5
LOCK_DURATION_HOURS = 2
DUPLICATE_WINDOW_MINUTES = 60
BULK_SUBMIT_LIMIT = 50

IS_PRODUCTION = APP_ENV.lower() == "production"
