from fastapi import APIRouter, Depends, status
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from .auth import restrict_to
from .config import DUPLICATE_WINDOW_MINUTES
from .database import SessionLocal
from .errors import AppError
from .lifecycle import find_recent_duplicate
from .logging_config import get_logger
from .models import Currency, Provider, Transaction, TransactionStatus, User, UserRole
from .pagination import PageParams, paginate
from .ratelimit import transaction_limiter
from .schemas import TransactionIn, TransactionOut

logger = get_logger(__name__)

customer_only = restrict_to(UserRole.CUSTOMER)

router = APIRouter(prefix="/api/customer", tags=["customer"], dependencies=[Depends(customer_only)])


def _out(tx: Transaction) -> dict:
    return TransactionOut.model_validate(tx).model_dump(mode="json")


@router.post("/transactions", status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(transaction_limiter)])
def create_transaction(payload: TransactionIn, user: User = Depends(customer_only)):
    with SessionLocal() as session:
        duplicate = find_recent_duplicate(
            session, user.id, payload.amount, payload.payee_account,
            window_minutes=DUPLICATE_WINDOW_MINUTES,
        )
        if duplicate is not None:
            raise AppError("Similar transaction already pending. Please wait or contact support.", 400)

        tx = Transaction(
            customer_id=user.id,
            amount=payload.amount,
            currency=Currency(payload.currency),
            provider=Provider(payload.provider),
            payee_account=payload.payee_account,
            swift_code=payload.swift_code,
            payee_name=payload.payee_name,
            payee_bank=payload.payee_bank,
            purpose=payload.purpose,
            status=TransactionStatus.PENDING,
        )
        session.add(tx)
        session.commit()
        session.refresh(tx)
        logger.info("transaction_created", transaction_id=tx.id, customer_id=user.id,
                    currency=payload.currency)
        return {"status": "success", "data": {"transaction": _out(tx)}}


@router.get("/transactions")
def get_my_transactions(page_params=Depends(PageParams(10)), user: User = Depends(customer_only)):
    page, limit = page_params
    with SessionLocal() as session:
        stmt = (
            select(Transaction)
            .options(selectinload(Transaction.submitted_by))
            .where(Transaction.customer_id == user.id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        )
        count_stmt = select(func.count(Transaction.id)).where(Transaction.customer_id == user.id)
        transactions, pagination = paginate(session, stmt, count_stmt, page, limit)
        return {
            "status": "success",
            "results": len(transactions),
            "data": {"transactions": [_out(tx) for tx in transactions]},
            "pagination": pagination,
        }


@router.get("/transactions/{transaction_id}")
def get_transaction(transaction_id: int, user: User = Depends(customer_only)):
    with SessionLocal() as session:
        tx = session.execute(
            select(Transaction)
            .options(selectinload(Transaction.customer), selectinload(Transaction.submitted_by))
            .where(Transaction.id == transaction_id, Transaction.customer_id == user.id)
        ).scalar_one_or_none()
        if tx is None:
            raise AppError("No transaction found with that ID", 404)
        return {"status": "success", "data": {"transaction": _out(tx)}}
