import re
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import Currency, Provider, UserRole

FULL_NAME_RE = re.compile(r"^[a-zA-Z\s]{2,50}$")
ID_NUMBER_RE = re.compile(r"^[0-9]{13}$")
ACCOUNT_NUMBER_RE = re.compile(r"^[0-9]{10,12}$")
USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]{3,20}$")
PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")
PAYEE_ACCOUNT_RE = re.compile(r"^[A-Z0-9]{8,34}$")
SWIFT_CODE_RE = re.compile(r"^[A-Z]{6}[A-Z0-9]{2}([A-Z0-9]{3})?$")
PAYEE_NAME_RE = re.compile(r"^[a-zA-Z\s]{2,100}$")

# Numeric(18, 2) leaves 16 integer digits
MAX_AMOUNT = Decimal("1e16")

_SCRIPT_TAG_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_JS_PROTOCOL_RE = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)


def sanitize_text(value: str) -> str:
    """Strip script tags, javascript: URLs and inline event handlers."""
    value = _SCRIPT_TAG_RE.sub("", value)
    value = _JS_PROTOCOL_RE.sub("", value)
    return _EVENT_HANDLER_RE.sub("", value)


def check_password_strength(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not PASSWORD_RE.match(value):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, "
            "one number and one special character"
        )
    return value


# ---------- requests ----------

class RegisterIn(BaseModel):
    full_name: str
    id_number: str
    account_number: str
    username: str
    password: str

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        v = v.strip()
        if not FULL_NAME_RE.match(v):
            raise ValueError("Full name must contain only letters and spaces (2-50 characters)")
        return v

    @field_validator("id_number")
    @classmethod
    def validate_id_number(cls, v: str) -> str:
        if not ID_NUMBER_RE.match(v):
            raise ValueError("ID number must be exactly 13 digits")
        return v

    @field_validator("account_number")
    @classmethod
    def validate_account_number(cls, v: str) -> str:
        if not ACCOUNT_NUMBER_RE.match(v):
            raise ValueError("Account number must be between 10 and 12 digits")
        return v

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not USERNAME_RE.match(v):
            raise ValueError(
                "Username must be 3-20 characters (letters, numbers and underscores only)"
            )
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class AdminUserIn(RegisterIn):
    role: UserRole = UserRole.CUSTOMER


class AdminUserUpdate(BaseModel):
    full_name: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not FULL_NAME_RE.match(v):
            raise ValueError("Full name must contain only letters and spaces (2-50 characters)")
        return v


class LoginIn(BaseModel):
    username: str = ""
    password: str = ""


class PasswordUpdateIn(BaseModel):
    password_current: str
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class TransactionIn(BaseModel):
    amount: Decimal
    currency: str = Currency.USD.value
    provider: str = Provider.SWIFT.value
    payee_account: str
    swift_code: str
    payee_name: str
    payee_bank: str
    purpose: str = ""

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if v < Decimal("0.01"):
            raise ValueError("Amount must be a number greater than 0")
        if v >= MAX_AMOUNT:
            raise ValueError("Amount is too large")
        if v != v.quantize(Decimal("0.01")):
            raise ValueError("Amount must be a valid number with up to 2 decimal places")
        return v.quantize(Decimal("0.01"))

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        if v not in {c.value for c in Currency}:
            raise ValueError("Currency must be USD, EUR, GBP, or ZAR")
        return v

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if v != Provider.SWIFT.value:
            raise ValueError("Provider must be SWIFT")
        return v

    @field_validator("payee_account")
    @classmethod
    def validate_payee_account(cls, v: str) -> str:
        v = v.strip().upper()
        if not PAYEE_ACCOUNT_RE.match(v):
            raise ValueError("Invalid account number format (8-34 alphanumeric characters)")
        return v

    @field_validator("swift_code")
    @classmethod
    def validate_swift_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not SWIFT_CODE_RE.match(v):
            raise ValueError("Invalid SWIFT code format")
        return v

    @field_validator("payee_name")
    @classmethod
    def validate_payee_name(cls, v: str) -> str:
        if not PAYEE_NAME_RE.match(v):
            raise ValueError("Payee name must contain only letters and spaces (2-100 characters)")
        return v

    @field_validator("payee_bank")
    @classmethod
    def validate_payee_bank(cls, v: str) -> str:
        v = sanitize_text(v).strip()
        if not 2 <= len(v) <= 100:
            raise ValueError("Bank name must be between 2 and 100 characters")
        return v

    @field_validator("purpose")
    @classmethod
    def validate_purpose(cls, v: str) -> str:
        v = sanitize_text(v).strip()
        if len(v) > 200:
            raise ValueError("Purpose cannot exceed 200 characters")
        return v


class BulkSubmitIn(BaseModel):
    transaction_ids: List[int] = Field(default_factory=list)


# ---------- responses ----------

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    id_number: str
    account_number: str
    username: str
    role: UserRole
    is_active: bool
    created_at: Optional[datetime]


class CustomerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    account_number: str
    id_number: str


class SubmitterSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    customer: Optional[CustomerSummary] = None
    amount: Decimal
    currency: str
    provider: str
    payee_account: str
    swift_code: str
    payee_name: str
    payee_bank: str
    purpose: str
    status: str
    submitted_by: Optional[SubmitterSummary] = None
    swift_reference: Optional[str] = None
    submitted_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    last_enqueued_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    age_in_days: int = 0

    @field_validator("currency", "provider", "status", mode="before")
    @classmethod
    def enum_value(cls, v):
        return getattr(v, "value", v)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
