import calendar
import enum
import math
from datetime import datetime

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship

from .database import Base


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    EMPLOYEE = "employee"


class Currency(str, enum.Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    ZAR = "ZAR"


class Provider(str, enum.Enum):
    SWIFT = "SWIFT"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    SUBMITTED = "submitted"
    COMPLETED = "completed"
    FAILED = "failed"


def _values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(50), nullable=False)
    id_number = Column(String(13), nullable=False, unique=True, index=True)
    account_number = Column(String(12), nullable=False, unique=True, index=True)
    username = Column(String(20), nullable=False, unique=True, index=True)
    password_hash = Column(String(128), nullable=False)
    role = Column(Enum(UserRole, values_callable=_values), nullable=False, default=UserRole.CUSTOMER, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    login_attempts = Column(Integer, nullable=False, default=0)
    lock_until = Column(DateTime, nullable=True)
    password_changed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    transactions = relationship(
        "Transaction", back_populates="customer", foreign_keys="Transaction.customer_id"
    )

    @property
    def is_locked(self) -> bool:
        return bool(self.lock_until and self.lock_until > datetime.utcnow())

    def changed_password_after(self, jwt_timestamp: int) -> bool:
        """True when the password changed after a token issued at ``jwt_timestamp``."""
        if self.password_changed_at:
            changed = calendar.timegm(self.password_changed_at.utctimetuple())
            return jwt_timestamp < changed
        return False


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_customer_created", "customer_id", "created_at"),
    )
    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    currency = Column(Enum(Currency, values_callable=_values), nullable=False, default=Currency.USD)
    provider = Column(Enum(Provider, values_callable=_values), nullable=False, default=Provider.SWIFT)
    payee_account = Column(String(34), nullable=False)
    swift_code = Column(String(11), nullable=False)
    payee_name = Column(String(100), nullable=False)
    payee_bank = Column(String(100), nullable=False)
    purpose = Column(String(200), nullable=False, default="")
    status = Column(
        Enum(TransactionStatus, values_callable=_values),
        nullable=False,
        default=TransactionStatus.PENDING,
        index=True,
    )
    submitted_by_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    swift_reference = Column(String(32), nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    verified_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    failure_reason = Column(String(200), nullable=True)
    last_enqueued_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("User", back_populates="transactions", foreign_keys=[customer_id])
    submitted_by = relationship("User", foreign_keys=[submitted_by_id])

    @property
    def age_in_days(self) -> int:
        if self.created_at is None:
            return 0
        seconds = abs((datetime.utcnow() - self.created_at).total_seconds())
        return math.ceil(seconds / 86400)

    def can_be_submitted(self) -> bool:
        return self.status in (TransactionStatus.PENDING, TransactionStatus.VERIFIED)
