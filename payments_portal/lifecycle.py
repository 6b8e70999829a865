"""
Transaction status lifecycle.

    pending -> verified -> submitted -> completed
       |          |           |
       +----------+-----------+--> failed

Transactions may also go straight from pending to submitted. ``completed``
and ``failed`` are terminal. Functions here mutate ORM objects inside the
caller's session; committing is left to the caller.
"""
import enum
from datetime import datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy import select, func

from .config import BULK_SUBMIT_LIMIT
from .errors import AppError
from .logging_config import get_logger
from .models import Transaction, TransactionStatus

logger = get_logger(__name__)

ALLOWED_TRANSITIONS = {
    TransactionStatus.PENDING: {
        TransactionStatus.VERIFIED, TransactionStatus.SUBMITTED, TransactionStatus.FAILED,
    },
    TransactionStatus.VERIFIED: {TransactionStatus.SUBMITTED, TransactionStatus.FAILED},
    TransactionStatus.SUBMITTED: {TransactionStatus.COMPLETED, TransactionStatus.FAILED},
    TransactionStatus.COMPLETED: set(),
    TransactionStatus.FAILED: set(),
}

SUBMITTABLE = (TransactionStatus.PENDING, TransactionStatus.VERIFIED)

SWIFT_REJECTED_REASON = "SWIFT network error - please try again"
SWIFT_ERROR_REASON = "Internal server error during submission"


class InvalidTransition(AppError):
    def __init__(self, current: TransactionStatus, new: TransactionStatus):
        super().__init__(f"Invalid status transition: {current.value} -> {new.value}", 400)
        self.current = current
        self.new = new


class SubmissionOutcome(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    ERROR = "error"


def transition(tx: Transaction, new_status: TransactionStatus) -> None:
    current = TransactionStatus(tx.status)
    if new_status not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(current, new_status)
    tx.status = new_status


def verify(tx: Transaction, now: Optional[datetime] = None) -> Transaction:
    if tx.status != TransactionStatus.PENDING:
        raise AppError("Transaction already processed", 400)
    transition(tx, TransactionStatus.VERIFIED)
    tx.verified_at = now or datetime.utcnow()
    logger.info("transaction_verified", transaction_id=tx.id)
    return tx


def complete(tx: Transaction, now: Optional[datetime] = None) -> Transaction:
    if tx.status != TransactionStatus.SUBMITTED:
        raise AppError("Only submitted transactions can be completed", 400)
    transition(tx, TransactionStatus.COMPLETED)
    tx.completed_at = now or datetime.utcnow()
    logger.info("transaction_completed", transaction_id=tx.id)
    return tx


def _mark_failed(tx: Transaction, reason: str) -> None:
    transition(tx, TransactionStatus.FAILED)
    tx.failure_reason = reason


def submit_to_swift(tx: Transaction, employee_id: int, gateway,
                    delay_seconds: Optional[float] = None) -> SubmissionOutcome:
    """
    Push one transaction through the SWIFT gateway and record the result on it.

    A rejection or a gateway error both leave the transaction ``failed`` with
    a ``failure_reason``; the returned outcome tells them apart.
    """
    if not tx.can_be_submitted():
        raise AppError("Transaction cannot be submitted in its current state", 400)

    try:
        result = gateway.submit(tx, delay_seconds=delay_seconds)
    except Exception:
        logger.exception("swift_submission_error", transaction_id=tx.id)
        _mark_failed(tx, SWIFT_ERROR_REASON)
        return SubmissionOutcome.ERROR

    if not result.success:
        _mark_failed(tx, SWIFT_REJECTED_REASON)
        return SubmissionOutcome.FAILED

    transition(tx, TransactionStatus.SUBMITTED)
    tx.submitted_by_id = employee_id
    tx.submitted_at = datetime.utcnow()
    tx.swift_reference = result.reference
    logger.info("transaction_submitted", transaction_id=tx.id, employee_id=employee_id,
                reference=result.reference)
    return SubmissionOutcome.SUCCESS


def find_submittable(session, transaction_ids: Iterable[int]) -> list:
    ids = list(transaction_ids)
    if not ids:
        raise AppError("No transaction IDs provided", 400)
    if len(ids) > BULK_SUBMIT_LIMIT:
        raise AppError(f"Cannot submit more than {BULK_SUBMIT_LIMIT} transactions at once", 400)

    transactions = session.execute(
        select(Transaction)
        .where(Transaction.id.in_(set(ids)), Transaction.status.in_(SUBMITTABLE))
        .order_by(Transaction.id)
    ).scalars().all()
    if not transactions:
        raise AppError("No valid transactions found for submission", 404)
    return transactions


def bulk_submit(session, transaction_ids: Iterable[int], employee_id: int, gateway) -> dict:
    transactions = find_submittable(session, transaction_ids)
    delay = gateway.delay_seconds / 2

    results = {"successful": 0, "failed": 0, "details": []}
    for tx in transactions:
        outcome = submit_to_swift(tx, employee_id, gateway, delay_seconds=delay)
        session.commit()
        if outcome is SubmissionOutcome.SUCCESS:
            results["successful"] += 1
            message = "Submitted to SWIFT"
        elif outcome is SubmissionOutcome.FAILED:
            results["failed"] += 1
            message = "SWIFT network error"
        else:
            results["failed"] += 1
            message = "Internal server error"
        results["details"].append(
            {"transaction_id": tx.id, "status": outcome.value, "message": message}
        )

    logger.info("bulk_submission_completed", employee_id=employee_id,
                successful=results["successful"], failed=results["failed"])
    return results


def find_recent_duplicate(session, customer_id: int, amount, payee_account: str,
                          now: Optional[datetime] = None, window_minutes: int = 60):
    """A pending transaction with the same amount and payee created inside the window."""
    since = (now or datetime.utcnow()) - timedelta(minutes=window_minutes)
    return session.execute(
        select(Transaction).where(
            Transaction.customer_id == customer_id,
            Transaction.amount == amount,
            Transaction.payee_account == payee_account,
            Transaction.status == TransactionStatus.PENDING,
            Transaction.created_at >= since,
        )
    ).scalars().first()


def dashboard_stats(session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow = today + timedelta(days=1)

    total = session.execute(select(func.count(Transaction.id))).scalar_one()
    pending = session.execute(
        select(func.count(Transaction.id)).where(Transaction.status == TransactionStatus.PENDING)
    ).scalar_one()
    today_count = session.execute(
        select(func.count(Transaction.id)).where(
            Transaction.created_at >= today, Transaction.created_at < tomorrow
        )
    ).scalar_one()
    by_status = session.execute(
        select(Transaction.status, func.count(Transaction.id)).group_by(Transaction.status)
    ).all()
    by_currency = session.execute(
        select(Transaction.currency, func.sum(Transaction.amount), func.count(Transaction.id))
        .group_by(Transaction.currency)
    ).all()

    return {
        "total_transactions": total,
        "pending_transactions": pending,
        "today_transactions": today_count,
        "transactions_by_status": [
            {"status": status.value, "count": count} for status, count in by_status
        ],
        "transactions_by_currency": [
            {"currency": currency.value, "total_amount": str(total_amount or 0), "count": count}
            for currency, total_amount, count in by_currency
        ],
    }
