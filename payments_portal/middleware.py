"""
HTTP hardening: security headers, body size cap, suspicious input
detection and the general per-IP rate limit.
"""
import asyncio
import re

from fastapi import Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import FRONTEND_URLS, MAX_BODY_BYTES
from .errors import error_body
from .logging_config import get_logger
from .ratelimit import RateLimitExceeded, client_ip, general_limiter, speed_limiter

logger = get_logger(__name__)

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'; img-src 'self' data: https:; frame-ancestors 'none'",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
}

SUSPICIOUS_PATTERNS = [
    re.compile(r"\.\./"),
    re.compile(r"%2e%2e%2f", re.IGNORECASE),
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"onload=", re.IGNORECASE),
    re.compile(r"onerror=", re.IGNORECASE),
    re.compile(r"eval\(", re.IGNORECASE),
    re.compile(r"expression\(", re.IGNORECASE),
]


def is_suspicious(*values: str) -> bool:
    return any(pattern.search(value) for value in values if value for pattern in SUSPICIOUS_PATTERNS)


def rate_limited_response(exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=error_body(str(exc), status.HTTP_429_TOO_MANY_REQUESTS, retry_after=exc.retry_after),
        headers={"Retry-After": str(exc.retry_after)},
    )


def entity_too_large_response() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        content=error_body("Request entity too large", status.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
    )


async def read_body(request: Request):
    """The request body, or None once it grows past MAX_BODY_BYTES."""
    chunks = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > MAX_BODY_BYTES:
            return None
        chunks.append(chunk)
    body = b"".join(chunks)
    # cache it so the route can still read the body
    request._body = body
    return body


async def guard_request(request: Request, call_next):
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > MAX_BODY_BYTES:
        return entity_too_large_response()

    raw_body = await read_body(request)
    if raw_body is None:
        return entity_too_large_response()
    body = raw_body.decode("utf-8", errors="replace")
    raw_url = request.url.path + ("?" + request.url.query if request.url.query else "")
    if is_suspicious(raw_url, request.headers.get("user-agent", ""),
                     request.headers.get("referer", ""), body):
        logger.warning("suspicious_request", ip=client_ip(request), url=raw_url)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("Suspicious activity detected", status.HTTP_400_BAD_REQUEST),
        )

    if request.url.path.startswith("/api/"):
        try:
            general_limiter(request)
        except RateLimitExceeded as exc:
            return rate_limited_response(exc)
        delay = speed_limiter.delay_for(client_ip(request))
        if delay:
            logger.info("request_slowed", ip=client_ip(request), delay=delay)
            await asyncio.sleep(delay)

    return await call_next(request)


async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


def register_middleware(app) -> None:
    # added last runs first: CORS, then headers, then the request guard
    app.middleware("http")(guard_request)
    app.middleware("http")(add_security_headers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=FRONTEND_URLS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
