import time

import redis
from fastapi import Request

from .broker import r
from .config import (
    LOGIN_RATE_LIMIT,
    RATE_LIMIT_ENABLED,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
    SPEED_LIMIT,
    SPEED_LIMIT_DELAY_SECONDS,
    SPEED_LIMIT_MAX_DELAY_SECONDS,
    TRANSACTION_RATE_LIMIT,
)
from .logging_config import get_logger

logger = get_logger(__name__)


class RateLimitExceeded(Exception):
    def __init__(self, retry_after: int):
        super().__init__("Too many requests. Please try again later.")
        self.retry_after = retry_after


def client_ip(request: Request) -> str:
    # socket peer only; behind a proxy run uvicorn with --proxy-headers and
    # --forwarded-allow-ips so the peer is rewritten from trusted hops
    return request.client.host if request.client else "unknown"


class RateLimiter:
    """
    Fixed-window counter in Redis.

    Keys are ``ratelimit:<name>:<identity>:<window index>`` and expire with
    the window. If Redis cannot be reached the request is let through.
    """

    def __init__(self, name: str, max_requests: int, window_seconds: int,
                 connection=None, enabled: bool = RATE_LIMIT_ENABLED):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.connection = connection
        self.enabled = enabled

    def _key(self, identity: str, now: float) -> str:
        window = int(now // self.window_seconds)
        return f"ratelimit:{self.name}:{identity}:{window}"

    def hit(self, identity: str, now: float = None) -> int:
        """Count one request for ``identity`` and return the running total."""
        now = time.time() if now is None else now
        conn = self.connection if self.connection is not None else r
        key = self._key(identity, now)
        pipe = conn.pipeline()
        pipe.incr(key)
        pipe.expire(key, self.window_seconds)
        count, _ = pipe.execute()
        return int(count)

    def check(self, identity: str, now: float = None) -> None:
        if not self.enabled:
            return
        try:
            count = self.hit(identity, now)
        except redis.RedisError as exc:
            logger.warning("rate_limit_unavailable", limiter=self.name, error=str(exc))
            return
        if count > self.max_requests:
            logger.warning("rate_limit_exceeded", limiter=self.name, identity=identity, count=count)
            raise RateLimitExceeded(self.window_seconds)

    def __call__(self, request: Request) -> None:
        self.check(client_ip(request))


class SpeedLimiter(RateLimiter):
    """
    Slows clients down instead of rejecting them.

    The first ``max_requests`` in a window pass untouched; each one after that
    waits ``delay_seconds`` longer than the previous, up to ``max_delay_seconds``.
    """

    def __init__(self, name: str, max_requests: int, window_seconds: int,
                 delay_seconds: float, max_delay_seconds: float, **kwargs):
        super().__init__(name, max_requests, window_seconds, **kwargs)
        self.delay_seconds = delay_seconds
        self.max_delay_seconds = max_delay_seconds

    def delay_for(self, identity: str, now: float = None) -> float:
        if not self.enabled:
            return 0.0
        try:
            count = self.hit(identity, now)
        except redis.RedisError as exc:
            logger.warning("rate_limit_unavailable", limiter=self.name, error=str(exc))
            return 0.0
        over = count - self.max_requests
        if over <= 0:
            return 0.0
        return min(over * self.delay_seconds, self.max_delay_seconds)


general_limiter = RateLimiter("general", RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS)
login_limiter = RateLimiter("login", *LOGIN_RATE_LIMIT)
transaction_limiter = RateLimiter("transaction", *TRANSACTION_RATE_LIMIT)
speed_limiter = SpeedLimiter("speed", *SPEED_LIMIT, delay_seconds=SPEED_LIMIT_DELAY_SECONDS,
                             max_delay_seconds=SPEED_LIMIT_MAX_DELAY_SECONDS)
