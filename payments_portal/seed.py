"""
Load demo users and transactions.

    python -m payments_portal.seed

Existing users and transactions are deleted first.
"""
import sys
from datetime import datetime
from decimal import Decimal

from sqlalchemy import delete

from .database import Base, SessionLocal, engine
from .logging_config import get_logger, setup_logging
from .models import Currency, Transaction, TransactionStatus, User, UserRole
from .security import hash_password

logger = get_logger(__name__)

CUSTOMERS = [
    ("John Smith", "8901234567890", "1234567890", "johnsmith", "Password123!"),
    ("Sarah Johnson", "8901234567891", "1234567891", "sarahj", "Password123!"),
    ("Michael Brown", "8901234567892", "1234567892", "michaelb", "Password123!"),
]

EMPLOYEES = [
    ("Admin User", "8901234567888", "1000000001", "admin", "Admin123!"),
    ("Payment Officer", "8901234567889", "1000000002", "officer", "Officer123!"),
]


def _user(row, role):
    full_name, id_number, account_number, username, password = row
    return User(
        full_name=full_name,
        id_number=id_number,
        account_number=account_number,
        username=username,
        password_hash=hash_password(password),
        role=role,
    )


def seed(session) -> dict:
    session.execute(delete(Transaction))
    session.execute(delete(User))

    customers = [_user(row, UserRole.CUSTOMER) for row in CUSTOMERS]
    employees = [_user(row, UserRole.EMPLOYEE) for row in EMPLOYEES]
    session.add_all(customers + employees)
    session.flush()

    now = datetime.utcnow()
    transactions = [
        Transaction(
            customer_id=customers[0].id, amount=Decimal("1500.00"), currency=Currency.USD,
            payee_account="GB29NWBK60161331926819", swift_code="NWBKGB2L",
            payee_name="Robert Wilson", payee_bank="National Westminster Bank",
            purpose="Business payment", status=TransactionStatus.PENDING,
        ),
        Transaction(
            customer_id=customers[1].id, amount=Decimal("2500.50"), currency=Currency.EUR,
            payee_account="DE89370400440532013000", swift_code="DEUTDEFF",
            payee_name="Anna Schmidt", payee_bank="Deutsche Bank",
            purpose="Invoice payment", status=TransactionStatus.PENDING,
        ),
        Transaction(
            customer_id=customers[2].id, amount=Decimal("500.75"), currency=Currency.GBP,
            payee_account="FR1420041010050500013M02606", swift_code="BNPAFRPP",
            payee_name="Pierre Dubois", payee_bank="BNP Paribas",
            purpose="Personal transfer", status=TransactionStatus.VERIFIED, verified_at=now,
        ),
        Transaction(
            customer_id=customers[0].id, amount=Decimal("1200.00"), currency=Currency.USD,
            payee_account="CH9300762011623852957", swift_code="UBSWCHZH80A",
            payee_name="Hans Muller", payee_bank="UBS Switzerland",
            purpose="Investment", status=TransactionStatus.SUBMITTED,
            submitted_by_id=employees[0].id, submitted_at=now,
        ),
    ]
    session.add_all(transactions)
    session.commit()

    return {"customers": len(customers), "employees": len(employees), "transactions": len(transactions)}


def main() -> int:
    setup_logging()
    Base.metadata.create_all(bind=engine)
    try:
        with SessionLocal() as session:
            counts = seed(session)
    except Exception:
        logger.exception("seed_failed")
        return 1

    logger.info("seed_completed", **counts)
    logger.info("sample_credentials", customer="johnsmith / Password123!", employee="admin / Admin123!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
