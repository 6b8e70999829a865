from sqlalchemy import func, select

from conftest import bearer
from payments_portal.models import Transaction, TransactionStatus, User, UserRole
from payments_portal.security import verify_password
from payments_portal.seed import seed


def test_seed_replaces_existing_data(db, make_user):
    make_user(username="leftover")

    counts = seed(db)

    assert counts == {"customers": 3, "employees": 2, "transactions": 4}
    assert db.execute(select(User).where(User.username == "leftover")).scalar_one_or_none() is None
    admin = db.execute(select(User).where(User.username == "admin")).scalar_one()
    assert admin.role == UserRole.EMPLOYEE
    assert verify_password("Admin123!", admin.password_hash)
    statuses = sorted(s.value for s in db.execute(select(Transaction.status)).scalars())
    assert statuses == ["pending", "pending", "submitted", "verified"]


def test_seeded_data_is_usable_through_the_api(client, db):
    seed(db)
    officer = db.execute(select(User).where(User.username == "officer")).scalar_one()
    body = client.get("/api/employee/transactions/pending", headers=bearer(officer)).json()
    assert body["pagination"]["total"] == 2
    assert db.execute(
        select(func.count(Transaction.id)).where(Transaction.status == TransactionStatus.SUBMITTED)
    ).scalar_one() == 1
