"""
Password hashing, JWT handling and failed-login lockout.
"""
import time
from datetime import datetime, timedelta

import bcrypt
import jwt

from .config import (
    BCRYPT_ROUNDS,
    JWT_ALGORITHM,
    JWT_EXPIRES_IN_DAYS,
    JWT_SECRET,
    LOCK_DURATION_HOURS,
    MAX_LOGIN_ATTEMPTS,
)
from .errors import AppError


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(candidate: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(candidate.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def sign_token(user_id: int) -> str:
    now = int(time.time())
    payload = {
        "id": user_id,
        "iat": now,
        "exp": now + JWT_EXPIRES_IN_DAYS * 24 * 60 * 60,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Verify signature and expiry and return the claims.

    Raises AppError(401) for anything that is not a valid, unexpired token
    carrying a user id.
    """
    try:
        claims = jwt.decode(
            token, JWT_SECRET, algorithms=[JWT_ALGORITHM], options={"require": ["id", "iat", "exp"]}
        )
    except jwt.PyJWTError:
        raise AppError("Invalid token! Please log in again.", 401)
    return claims


def register_failed_login(user, now=None) -> None:
    """Bump the failed login counter on ``user`` and lock it at the threshold."""
    now = now or datetime.utcnow()
    if user.lock_until and user.lock_until < now:
        user.login_attempts = 1
        user.lock_until = None
        return

    was_locked = bool(user.lock_until and user.lock_until > now)
    user.login_attempts = (user.login_attempts or 0) + 1
    if user.login_attempts >= MAX_LOGIN_ATTEMPTS and not was_locked:
        user.lock_until = now + timedelta(hours=LOCK_DURATION_HOURS)


def reset_login_attempts(user) -> None:
    user.login_attempts = 0
    user.lock_until = None
