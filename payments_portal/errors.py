from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging_config import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """Operational error with an HTTP status, rendered as a fail/error envelope."""

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def error_body(message: str, status_code: int, **extra) -> dict:
    body = {"status": "fail" if 400 <= status_code < 500 else "error", "message": message}
    body.update(extra)
    return body


def _validation_message(err: dict) -> str:
    ctx = err.get("ctx") or {}
    if isinstance(ctx.get("error"), ValueError):
        return str(ctx["error"])
    field = err.get("loc", ())[-1] if err.get("loc") else None
    if err.get("type") == "missing" and field is not None:
        return f"{field} is required"
    return err.get("msg", "Invalid input")


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.status_code))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = [_validation_message(err) for err in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(", ".join(messages), status.HTTP_400_BAD_REQUEST),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Can't find {request.url.path} on this server!"
    else:
        message = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=error_body(message, exc.status_code))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Something went wrong", status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


def register_error_handlers(app) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
