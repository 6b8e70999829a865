from fastapi import APIRouter, Depends, status
from sqlalchemy import select, func

from .auth import create_user, restrict_to
from .database import SessionLocal
from .errors import AppError
from .logging_config import get_logger
from .models import User, UserRole
from .pagination import PageParams, paginate
from .schemas import AdminUserIn, AdminUserUpdate, UserOut

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/admin", tags=["admin"], dependencies=[Depends(restrict_to(UserRole.EMPLOYEE))]
)


def _out(user: User) -> dict:
    return UserOut.model_validate(user).model_dump(mode="json")


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create(payload: AdminUserIn):
    with SessionLocal() as session:
        user = create_user(session, payload, payload.role)
        return {"status": "success", "message": "User created successfully", "data": {"user": _out(user)}}


@router.get("/users")
def list_users(page_params=Depends(PageParams(20))):
    page, limit = page_params
    with SessionLocal() as session:
        stmt = select(User).where(User.is_active.is_(True)).order_by(User.created_at.desc(), User.id.desc())
        count_stmt = select(func.count(User.id)).where(User.is_active.is_(True))
        users, pagination = paginate(session, stmt, count_stmt, page, limit)
        return {
            "status": "success",
            "results": len(users),
            "data": {"users": [_out(user) for user in users]},
            "pagination": pagination,
        }


@router.patch("/users/{user_id}")
def update(user_id: int, payload: AdminUserUpdate):
    with SessionLocal() as session:
        user = session.get(User, user_id)
        if user is None:
            raise AppError("No user found with that ID", 404)
        for field, value in payload.model_dump(exclude_none=True).items():
            setattr(user, field, value)
        session.commit()
        logger.info("user_updated", user_id=user.id)
        return {"status": "success", "data": {"user": _out(user)}}


@router.delete("/users/{user_id}")
def deactivate(user_id: int):
    with SessionLocal() as session:
        user = session.get(User, user_id)
        if user is None:
            raise AppError("No user found with that ID", 404)
        user.is_active = False
        session.commit()
        logger.info("user_deactivated", user_id=user.id)
        return {"status": "success", "message": "User deactivated successfully"}
