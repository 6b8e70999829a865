# payments_portal/main.py
from datetime import datetime

from fastapi import FastAPI, Request

from . import admin, auth, customer, employee
from .config import APP_ENV
from .database import engine, Base
from .errors import register_error_handlers
from .logging_config import get_logger, setup_logging
from .middleware import rate_limited_response, register_middleware
from .ratelimit import RateLimitExceeded

setup_logging()
logger = get_logger(__name__)

# create tables (simple approach)
Base.metadata.create_all(bind=engine)

app = FastAPI(title="International Payments Portal API")

register_error_handlers(app)
register_middleware(app)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return rate_limited_response(exc)


@app.get("/api/health")
def health():
    return {
        "status": "success",
        "message": "International Payments Portal API is running",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "environment": APP_ENV,
    }


app.include_router(auth.router)
app.include_router(customer.router)
app.include_router(employee.router)
app.include_router(admin.router)

logger.info("app_started", environment=APP_ENV)
