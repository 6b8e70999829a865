"""
Pytest configuration and fixtures.

The application reads its configuration at import time, so the test
environment is set up before anything from payments_portal is imported.
"""
import os
import tempfile
from decimal import Decimal

_DB_PATH = os.path.join(tempfile.gettempdir(), f"payments_portal_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_PATH}"
os.environ["APP_ENV"] = "test"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SWIFT_DELAY_SECONDS"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from payments_portal.database import Base, SessionLocal, engine  # noqa: E402
from payments_portal.main import app  # noqa: E402
from payments_portal.models import (  # noqa: E402
    Currency,
    Provider,
    Transaction,
    TransactionStatus,
    User,
    UserRole,
)
from payments_portal.security import hash_password, sign_token  # noqa: E402
from payments_portal.swift import MockSwiftGateway, SwiftResult, get_gateway  # noqa: E402

PASSWORD = "Secret123!"


class StubGateway:
    """Gateway returning (or raising) a scripted sequence of outcomes."""

    delay_seconds = 0

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def submit(self, transaction, delay_seconds=None):
        self.calls.append(transaction.id)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


ACCEPTED = SwiftResult(success=True, reference="SWF0000TEST01", message="Submitted to SWIFT")
REJECTED = SwiftResult(success=False, message="SWIFT network error")


@pytest.fixture(autouse=True)
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="session", autouse=True)
def _remove_db_file():
    yield
    engine.dispose()
    if os.path.exists(_DB_PATH):
        os.remove(_DB_PATH)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def use_gateway():
    """Install a gateway for the submit endpoints."""

    def install(gateway):
        app.dependency_overrides[get_gateway] = lambda: gateway
        return gateway

    return install


@pytest.fixture
def always_accept(use_gateway):
    return use_gateway(MockSwiftGateway(success_rate=1.0, delay_seconds=0))


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def factory(role=UserRole.CUSTOMER, username=None, password=PASSWORD, **fields):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            full_name=fields.pop("full_name", "Test User"),
            id_number=fields.pop("id_number", f"{8000000000000 + n}"),
            account_number=fields.pop("account_number", f"{1000000000 + n}"),
            username=username or f"user{n}",
            password_hash=hash_password(password),
            role=role,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return factory


@pytest.fixture
def customer(make_user):
    return make_user(UserRole.CUSTOMER, username="johnsmith", full_name="John Smith")


@pytest.fixture
def employee(make_user):
    return make_user(UserRole.EMPLOYEE, username="officer", full_name="Payment Officer")


def bearer(user) -> dict:
    return {"Authorization": f"Bearer {sign_token(user.id)}"}


@pytest.fixture
def make_transaction(db):
    def factory(customer, **fields):
        values = {
            "amount": Decimal("1500.00"),
            "currency": "USD",
            "provider": "SWIFT",
            "payee_account": "GB29NWBK60161331926819",
            "swift_code": "NWBKGB2L",
            "payee_name": "Robert Wilson",
            "payee_bank": "National Westminster Bank",
            "purpose": "Business payment",
            "status": TransactionStatus.PENDING,
        }
        values.update(fields)
        values["currency"] = Currency(values["currency"])
        values["provider"] = Provider(values["provider"])
        tx = Transaction(customer_id=customer.id, **values)
        db.add(tx)
        db.commit()
        db.refresh(tx)
        return tx

    return factory


@pytest.fixture
def transaction_payload():
    return {
        "amount": "250.00",
        "currency": "EUR",
        "provider": "SWIFT",
        "payee_account": "de89370400440532013000",
        "swift_code": "deutdeff",
        "payee_name": "Anna Schmidt",
        "payee_bank": "Deutsche Bank",
        "purpose": "Invoice 42",
    }


@pytest.fixture
def registration_payload():
    return {
        "full_name": "Jane Doe",
        "id_number": "9001015009087",
        "account_number": "1234567890",
        "username": "JaneDoe",
        "password": PASSWORD,
    }
