from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from . import broker
from .auth import restrict_to
from .database import SessionLocal
from .errors import AppError
from .lifecycle import (
    SubmissionOutcome,
    bulk_submit,
    complete,
    dashboard_stats,
    find_submittable,
    submit_to_swift,
    verify,
)
from .logging_config import get_logger
from .models import Transaction, TransactionStatus, User, UserRole
from .pagination import PageParams, paginate
from .schemas import BulkSubmitIn, TransactionOut
from .swift import get_gateway
from .worker import submit_transaction_job

logger = get_logger(__name__)

employee_only = restrict_to(UserRole.EMPLOYEE)

router = APIRouter(prefix="/api/employee", tags=["employee"], dependencies=[Depends(employee_only)])


def _out(tx: Transaction) -> dict:
    return TransactionOut.model_validate(tx).model_dump(mode="json")


def _load(session, transaction_id: int) -> Transaction:
    tx = session.get(Transaction, transaction_id)
    if tx is None:
        raise AppError("Transaction not found", 404)
    return tx


@router.get("/transactions/pending")
def get_pending_transactions(page_params=Depends(PageParams(20))):
    page, limit = page_params
    with SessionLocal() as session:
        stmt = (
            select(Transaction)
            .options(selectinload(Transaction.customer))
            .where(Transaction.status == TransactionStatus.PENDING)
            .order_by(Transaction.created_at.asc(), Transaction.id.asc())
        )
        count_stmt = select(func.count(Transaction.id)).where(Transaction.status == TransactionStatus.PENDING)
        transactions, pagination = paginate(session, stmt, count_stmt, page, limit)
        return {
            "status": "success",
            "results": len(transactions),
            "data": {"transactions": [_out(tx) for tx in transactions]},
            "pagination": pagination,
        }


@router.patch("/transactions/{transaction_id}/verify")
def verify_transaction(transaction_id: int):
    with SessionLocal() as session:
        tx = verify(_load(session, transaction_id))
        session.commit()
        return {
            "status": "success",
            "message": "Transaction verified successfully",
            "data": {"transaction": _out(tx)},
        }


@router.patch("/transactions/{transaction_id}/submit")
def submit_transaction(transaction_id: int, user: User = Depends(employee_only),
                       gateway=Depends(get_gateway)):
    with SessionLocal() as session:
        tx = _load(session, transaction_id)
        outcome = submit_to_swift(tx, user.id, gateway)
        session.commit()

        if outcome is SubmissionOutcome.FAILED:
            raise AppError("SWIFT submission failed. Please try again.", 502)
        if outcome is SubmissionOutcome.ERROR:
            raise AppError("Failed to submit transaction to SWIFT", 500)
        return {
            "status": "success",
            "message": "Transaction submitted to SWIFT successfully",
            "data": {"transaction": _out(tx)},
        }


@router.patch("/transactions/{transaction_id}/complete")
def complete_transaction(transaction_id: int):
    with SessionLocal() as session:
        tx = complete(_load(session, transaction_id))
        session.commit()
        return {
            "status": "success",
            "message": "Transaction marked as completed",
            "data": {"transaction": _out(tx)},
        }


@router.post("/transactions/bulk-submit")
def bulk_submit_transactions(payload: BulkSubmitIn, defer: bool = Query(False),
                             user: User = Depends(employee_only), gateway=Depends(get_gateway)):
    with SessionLocal() as session:
        if not defer:
            results = bulk_submit(session, payload.transaction_ids, user.id, gateway)
            return {
                "status": "success",
                "message": (
                    f"Bulk submission completed: {results['successful']} successful, "
                    f"{results['failed']} failed"
                ),
                "data": results,
            }

        # Enqueue background processing
        jobs = []
        for tx in find_submittable(session, payload.transaction_ids):
            job = broker.q.enqueue(submit_transaction_job, tx.id, user.id)
            tx.last_enqueued_at = datetime.utcnow()
            jobs.append({"transaction_id": tx.id, "job_id": job.id})
        session.commit()
        logger.info("bulk_submission_enqueued", employee_id=user.id, count=len(jobs))
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={
                "status": "success",
                "message": f"{len(jobs)} transactions queued for SWIFT submission",
                "data": {"jobs": jobs},
            },
        )


@router.get("/dashboard/stats")
def get_dashboard_stats():
    with SessionLocal() as session:
        return {"status": "success", "data": {"stats": dashboard_stats(session)}}
