import math
from typing import Optional

from fastapi import Query

from .schemas import Pagination


class PageParams:
    """Query parameters ``page`` and ``limit`` with a per-route default limit."""

    def __init__(self, default_limit: int):
        self.default_limit = default_limit

    def __call__(self, page: int = Query(1, ge=1), limit: Optional[int] = Query(None, ge=1, le=100)):
        return page, limit or self.default_limit


def paginate(session, stmt, count_stmt, page: int, limit: int):
    items = session.execute(stmt.offset((page - 1) * limit).limit(limit)).scalars().all()
    total = session.execute(count_stmt).scalar_one()
    pagination = Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit))
    return items, pagination.model_dump()
