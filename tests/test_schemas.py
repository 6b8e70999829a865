"""Unit tests for request validation."""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from payments_portal.schemas import AdminUserUpdate, RegisterIn, TransactionIn, sanitize_text


def _registration(**overrides):
    data = {
        "full_name": "  Jane Doe ",
        "id_number": "9001015009087",
        "account_number": "1234567890",
        "username": "Jane_Doe",
        "password": "Secret123!",
    }
    data.update(overrides)
    return data


def _transaction(**overrides):
    data = {
        "amount": "99.99",
        "payee_account": "gb29nwbk60161331926819",
        "swift_code": "nwbkgb2l",
        "payee_name": "Robert Wilson",
        "payee_bank": "National Westminster Bank",
    }
    data.update(overrides)
    return data


class TestRegistration:
    def test_valid_registration_is_normalised(self):
        payload = RegisterIn(**_registration())
        assert payload.full_name == "Jane Doe"
        assert payload.username == "jane_doe"

    @pytest.mark.parametrize(
        "field, value, message",
        [
            ("full_name", "J4ne", "Full name must contain only letters and spaces"),
            ("id_number", "12345", "ID number must be exactly 13 digits"),
            ("account_number", "12345678901234", "Account number must be between 10 and 12 digits"),
            ("username", "ab", "Username must be 3-20 characters"),
            ("password", "Short1!", "Password must be at least 8 characters"),
            ("password", "alllowercase1!", "Password must contain at least one uppercase letter"),
        ],
    )
    def test_invalid_fields_are_rejected(self, field, value, message):
        with pytest.raises(ValidationError, match=message):
            RegisterIn(**_registration(**{field: value}))

    def test_password_needs_special_character(self):
        with pytest.raises(ValidationError):
            RegisterIn(**_registration(password="NoSpecial123"))


class TestTransaction:
    def test_defaults_and_upper_casing(self):
        payload = TransactionIn(**_transaction())
        assert payload.currency == "USD"
        assert payload.provider == "SWIFT"
        assert payload.payee_account == "GB29NWBK60161331926819"
        assert payload.swift_code == "NWBKGB2L"
        assert payload.amount == Decimal("99.99")
        assert payload.purpose == ""

    def test_eleven_character_swift_code(self):
        assert TransactionIn(**_transaction(swift_code="UBSWCHZH80A")).swift_code == "UBSWCHZH80A"

    @pytest.mark.parametrize("amount", ["0", "-5", "0.001"])
    def test_amount_must_be_positive_with_two_decimals(self, amount):
        with pytest.raises(ValidationError):
            TransactionIn(**_transaction(amount=amount))

    def test_three_decimal_places_message(self):
        with pytest.raises(ValidationError, match="up to 2 decimal places"):
            TransactionIn(**_transaction(amount="10.505"))

    @pytest.mark.parametrize("amount", ["1.500", "10.000", "7"])
    def test_trailing_zeros_are_accepted(self, amount):
        assert TransactionIn(**_transaction(amount=amount)).amount == Decimal(amount)

    def test_amount_must_fit_the_column(self):
        assert TransactionIn(**_transaction(amount="9999999999999999.99")).amount == Decimal("9999999999999999.99")
        with pytest.raises(ValidationError, match="Amount is too large"):
            TransactionIn(**_transaction(amount="100000000000000000"))

    def test_unknown_currency(self):
        with pytest.raises(ValidationError, match="Currency must be USD, EUR, GBP, or ZAR"):
            TransactionIn(**_transaction(currency="JPY"))

    def test_only_swift_provider(self):
        with pytest.raises(ValidationError, match="Provider must be SWIFT"):
            TransactionIn(**_transaction(provider="SEPA"))

    @pytest.mark.parametrize("code", ["NWBK", "1WBKGB2L", "NWBKGB2LX"])
    def test_bad_swift_codes(self, code):
        with pytest.raises(ValidationError, match="Invalid SWIFT code format"):
            TransactionIn(**_transaction(swift_code=code))

    def test_payee_account_length(self):
        with pytest.raises(ValidationError, match="Invalid account number format"):
            TransactionIn(**_transaction(payee_account="ABC123"))

    def test_payee_name_letters_only(self):
        with pytest.raises(ValidationError, match="Payee name must contain only letters"):
            TransactionIn(**_transaction(payee_name="R0bert"))

    def test_purpose_is_sanitised(self):
        payload = TransactionIn(**_transaction(purpose="Rent <script>steal()</script>payment"))
        assert payload.purpose == "Rent payment"

    def test_purpose_length(self):
        with pytest.raises(ValidationError, match="Purpose cannot exceed 200 characters"):
            TransactionIn(**_transaction(purpose="x" * 201))


def test_sanitize_text_strips_handlers_and_protocols():
    assert sanitize_text('<a onclick="x">javascript:go</a>') == '<a "x">go</a>'


def test_admin_update_allows_partial_payload():
    update = AdminUserUpdate(is_active=False)
    assert update.model_dump(exclude_none=True) == {"is_active": False}
