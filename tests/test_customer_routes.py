"""Tests for the customer transaction endpoints."""
from decimal import Decimal

from conftest import bearer
from payments_portal.models import Transaction, TransactionStatus


def test_create_transaction(client, db, customer, transaction_payload):
    response = client.post("/api/customer/transactions", headers=bearer(customer), json=transaction_payload)

    assert response.status_code == 201
    tx = response.json()["data"]["transaction"]
    assert tx["status"] == "pending"
    assert tx["payee_account"] == "DE89370400440532013000"
    assert tx["swift_code"] == "DEUTDEFF"
    assert tx["currency"] == "EUR"
    assert Decimal(tx["amount"]) == Decimal("250.00")
    assert tx["customer"]["full_name"] == "John Smith"
    assert db.get(Transaction, tx["id"]).customer_id == customer.id


def test_duplicate_pending_transaction_rejected(client, customer, transaction_payload):
    client.post("/api/customer/transactions", headers=bearer(customer), json=transaction_payload)
    response = client.post("/api/customer/transactions", headers=bearer(customer), json=transaction_payload)

    assert response.status_code == 400
    assert response.json()["message"] == "Similar transaction already pending. Please wait or contact support."


def test_same_payee_different_amount_is_allowed(client, customer, transaction_payload):
    client.post("/api/customer/transactions", headers=bearer(customer), json=transaction_payload)
    response = client.post(
        "/api/customer/transactions", headers=bearer(customer), json={**transaction_payload, "amount": "300"}
    )
    assert response.status_code == 201


def test_invalid_transaction_payload(client, customer, transaction_payload):
    response = client.post(
        "/api/customer/transactions",
        headers=bearer(customer),
        json={**transaction_payload, "currency": "JPY", "swift_code": "BAD"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Currency must be USD, EUR, GBP, or ZAR, Invalid SWIFT code format"


def test_employees_cannot_create_transactions(client, employee, transaction_payload):
    response = client.post("/api/customer/transactions", headers=bearer(employee), json=transaction_payload)
    assert response.status_code == 403


def test_list_is_scoped_and_paginated(client, customer, make_user, make_transaction):
    other = make_user()
    for amount in ("10.00", "20.00", "30.00"):
        make_transaction(customer, amount=Decimal(amount))
    make_transaction(other)

    response = client.get("/api/customer/transactions?page=1&limit=2", headers=bearer(customer))

    assert response.status_code == 200
    body = response.json()
    assert body["results"] == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
    amounts = [Decimal(tx["amount"]) for tx in body["data"]["transactions"]]
    # newest first
    assert amounts == [Decimal("30.00"), Decimal("20.00")]


def test_default_page_size_is_ten(client, customer, make_transaction):
    for i in range(12):
        make_transaction(customer, amount=Decimal(10 + i))
    body = client.get("/api/customer/transactions", headers=bearer(customer)).json()
    assert body["results"] == 10
    assert body["pagination"]["pages"] == 2


def test_get_own_transaction(client, customer, employee, make_transaction):
    tx = make_transaction(customer, status=TransactionStatus.SUBMITTED, submitted_by_id=employee.id)
    response = client.get(f"/api/customer/transactions/{tx.id}", headers=bearer(customer))
    assert response.status_code == 200
    assert response.json()["data"]["transaction"]["submitted_by"]["full_name"] == "Payment Officer"


def test_cannot_read_someone_elses_transaction(client, customer, make_user, make_transaction):
    tx = make_transaction(make_user())
    response = client.get(f"/api/customer/transactions/{tx.id}", headers=bearer(customer))
    assert response.status_code == 404
    assert response.json()["message"] == "No transaction found with that ID"


def test_oversized_amount_is_a_validation_error(client, customer, transaction_payload):
    response = client.post(
        "/api/customer/transactions",
        headers=bearer(customer),
        json={**transaction_payload, "amount": "100000000000000000"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Amount is too large"
