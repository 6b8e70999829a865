# payments_portal/worker.py
from sqlalchemy import select

from .database import SessionLocal
from .lifecycle import submit_to_swift
from .logging_config import get_logger
from .models import Transaction
from .swift import get_gateway

logger = get_logger(__name__)


def submit_transaction_job(transaction_id: int, employee_id: int):
    """
    This function runs inside an RQ worker.
    Submits one transaction to the (mock) SWIFT gateway and records the outcome.
    """
    session = SessionLocal()
    try:
        tx = session.execute(select(Transaction).where(Transaction.id == transaction_id)).scalar_one_or_none()
        if tx is None:
            # nothing to do
            return {"error": "not found"}
        # verified/pending only; anything else was handled already
        if not tx.can_be_submitted():
            return {"status": "already processed", "transaction_status": tx.status.value}

        outcome = submit_to_swift(tx, employee_id, get_gateway())
        session.commit()
        logger.info("submission_job_finished", transaction_id=transaction_id, outcome=outcome.value)
        return {"status": outcome.value, "transaction_status": tx.status.value}
    except Exception:
        session.rollback()
        logger.exception("submission_job_failed", transaction_id=transaction_id)
        raise
    finally:
        session.close()
