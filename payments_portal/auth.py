from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy import select, or_

from .config import IS_PRODUCTION, JWT_COOKIE_EXPIRES_IN_DAYS
from .database import SessionLocal
from .errors import AppError
from .logging_config import get_logger
from .models import User, UserRole
from .ratelimit import login_limiter
from .schemas import LoginIn, PasswordUpdateIn, RegisterIn, UserOut
from .security import (
    decode_token,
    hash_password,
    register_failed_login,
    reset_login_attempts,
    sign_token,
    verify_password,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


# ---------- dependencies ----------

def _token_from_request(request: Request):
    authorization = request.headers.get("authorization", "")
    if authorization.startswith("Bearer"):
        parts = authorization.split(" ")
        return parts[1] if len(parts) > 1 else None
    return request.cookies.get("jwt")


def protect(request: Request) -> User:
    """Resolve the logged-in user from a bearer token or the ``jwt`` cookie."""
    token = _token_from_request(request)
    if not token:
        raise AppError("You are not logged in! Please log in to get access.", 401)

    claims = decode_token(token)
    with SessionLocal() as session:
        user = session.get(User, claims["id"])
    if user is None or not user.is_active:
        raise AppError("The user belonging to this token no longer exists.", 401)
    if user.changed_password_after(claims["iat"]):
        raise AppError("User recently changed password! Please log in again.", 401)
    if user.is_locked:
        raise AppError(
            "Your account is temporarily locked due to too many failed login attempts.", 423
        )
    return user


def restrict_to(*roles: UserRole):
    allowed = {UserRole(role) for role in roles}

    def dependency(user: User = Depends(protect)) -> User:
        if UserRole(user.role) not in allowed:
            raise AppError("You do not have permission to perform this action", 403)
        return user

    return dependency


# ---------- helpers shared with admin ----------

def ensure_unique(session, id_number: str, account_number: str, username: str) -> None:
    existing = session.execute(
        select(User).where(
            or_(
                User.id_number == id_number,
                User.account_number == account_number,
                User.username == username,
            )
        )
    ).scalars().first()
    if existing is None:
        return
    if existing.id_number == id_number:
        field = "ID number"
    elif existing.account_number == account_number:
        field = "account number"
    else:
        field = "username"
    raise AppError(f"User with this {field} already exists", 400)


def create_user(session, payload: RegisterIn, role: UserRole) -> User:
    ensure_unique(session, payload.id_number, payload.account_number, payload.username)
    user = User(
        full_name=payload.full_name,
        id_number=payload.id_number,
        account_number=payload.account_number,
        username=payload.username,
        password_hash=hash_password(payload.password),
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("user_created", user_id=user.id, role=UserRole(role).value)
    return user


def send_token(user: User, response: Response) -> dict:
    token = sign_token(user.id)
    response.set_cookie(
        "jwt",
        token,
        max_age=JWT_COOKIE_EXPIRES_IN_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="strict",
    )
    return {
        "status": "success",
        "token": token,
        "data": {"user": UserOut.model_validate(user).model_dump(mode="json")},
    }


# ---------- routes ----------

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn, response: Response):
    with SessionLocal() as session:
        # registration always yields a customer
        user = create_user(session, payload, UserRole.CUSTOMER)
        return send_token(user, response)


@router.post("/login", dependencies=[Depends(login_limiter)])
def login(payload: LoginIn, response: Response):
    if not payload.username or not payload.password:
        raise AppError("Please provide username and password", 400)

    with SessionLocal() as session:
        user = session.execute(
            select(User).where(User.username == payload.username.strip().lower(), User.is_active.is_(True))
        ).scalar_one_or_none()

        if user is not None and user.is_locked:
            raise AppError(
                "Your account is temporarily locked due to too many failed login attempts.", 423
            )

        if user is None or not verify_password(payload.password, user.password_hash):
            if user is not None:
                register_failed_login(user)
                session.commit()
                logger.warning("login_failed", user_id=user.id, attempts=user.login_attempts)
            raise AppError("Incorrect username or password", 401)

        if user.login_attempts or user.lock_until:
            reset_login_attempts(user)
            session.commit()

        logger.info("login_succeeded", user_id=user.id)
        return send_token(user, response)


@router.post("/logout")
def logout(response: Response):
    response.set_cookie("jwt", "loggedout", max_age=10, httponly=True)
    return {"status": "success", "message": "Logged out successfully"}


@router.get("/me")
def get_me(user: User = Depends(protect)):
    return {"status": "success", "data": {"user": UserOut.model_validate(user).model_dump(mode="json")}}


@router.patch("/update-password")
def update_password(payload: PasswordUpdateIn, response: Response, current: User = Depends(protect)):
    with SessionLocal() as session:
        user = session.get(User, current.id)
        if not verify_password(payload.password_current, user.password_hash):
            raise AppError("Your current password is wrong.", 401)

        user.password_hash = hash_password(payload.password)
        # one second back so the token issued below is not already stale
        user.password_changed_at = datetime.utcnow() - timedelta(seconds=1)
        session.commit()
        logger.info("password_changed", user_id=user.id)
        return send_token(user, response)
