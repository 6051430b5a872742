from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm.exc import StaleDataError

from backend.facturo.core.security import get_password_hash
from backend.facturo.db.base import Base
from backend.facturo.db.session import SessionLocal, engine
from backend.facturo.main import app
from backend.facturo.models.user import User
from backend.facturo.services.concurrency import run_with_retry
from backend.facturo.services.invoices import get_owned_invoice, record_payment
from backend.facturo.services.ledger import apply_payment


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def create_and_login(email: str, password: str = "secret123") -> TestClient:
    db = SessionLocal()
    db.add(User(email=email, password_hash=get_password_hash(password), name="Owner", company="Acme"))
    db.commit()
    db.close()
    client = TestClient(app)
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    return client


def create_invoice(client: TestClient, unit_price: str = "200.00") -> dict:
    resp = client.post(
        "/invoices",
        json={"client_name": "Client Co", "items": [{"description": "Work", "quantity": 1, "unit_price": unit_price}]},
    )
    assert resp.status_code == 201
    return resp.json()["data"]


def pay(client: TestClient, invoice_id: int, amount: str, method: str = "cash", note: str | None = None):
    payload = {"invoice_id": invoice_id, "amount": amount, "method": method}
    if note is not None:
        payload["note"] = note
    return client.post("/payments", json=payload)


def test_partial_then_full_payment():
    client = create_and_login("pay1@example.com")
    invoice = create_invoice(client)

    resp = pay(client, invoice["id"], "50.00", note="deposit")
    assert resp.status_code == 201
    receipt = resp.json()["data"]
    assert receipt["invoice"]["status"] == "partial"
    assert receipt["paid_until_now"] == "50.00"
    assert receipt["remaining"] == "150.00"
    assert receipt["payment"]["note"] == "deposit"

    resp = pay(client, invoice["id"], "150.00", method="transfer")
    assert resp.status_code == 201
    receipt = resp.json()["data"]
    assert receipt["invoice"]["status"] == "paid"
    assert receipt["remaining"] == "0.00"
    assert len(receipt["invoice"]["payment_history"]) == 2


def test_overpayment_is_rejected_and_invoice_unchanged():
    client = create_and_login("pay2@example.com")
    invoice = create_invoice(client)
    pay(client, invoice["id"], "150.00")

    resp = pay(client, invoice["id"], "60.00")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Payment amount cannot exceed remaining balance"}

    data = client.get(f"/invoices/{invoice['id']}").json()["data"]
    assert data["paid_amount"] == "150.00"
    assert data["status"] == "partial"
    assert len(data["payment_history"]) == 1


@pytest.mark.parametrize("amount", ["0", "-10.00"])
def test_non_positive_payment_is_rejected(amount):
    client = create_and_login("pay3@example.com")
    invoice = create_invoice(client)
    resp = pay(client, invoice["id"], amount)
    assert resp.status_code == 400
    assert client.get(f"/invoices/{invoice['id']}").json()["data"]["paid_amount"] == "0.00"


def test_payment_on_missing_invoice_returns_404():
    client = create_and_login("pay4@example.com")
    assert pay(client, 9999, "10.00").status_code == 404


def test_cannot_pay_another_owners_invoice():
    owner = create_and_login("pay5@example.com")
    intruder = create_and_login("pay5b@example.com")
    invoice = create_invoice(owner)
    assert pay(intruder, invoice["id"], "10.00").status_code == 404
    assert owner.get(f"/invoices/{invoice['id']}").json()["data"]["paid_amount"] == "0.00"


def test_refunded_status_survives_later_payment():
    client = create_and_login("pay6@example.com")
    invoice = create_invoice(client)
    pay(client, invoice["id"], "50.00")

    resp = client.put("/payments", json={"invoice_id": invoice["id"], "status": "refunded"})
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "refunded"
    assert resp.json()["data"]["paid_amount"] == "50.00"

    resp = pay(client, invoice["id"], "10.00")
    assert resp.status_code == 201
    assert resp.json()["data"]["invoice"]["status"] == "refunded"


def test_status_override_rejects_unknown_status():
    client = create_and_login("pay7@example.com")
    invoice = create_invoice(client)
    resp = client.put("/payments", json={"invoice_id": invoice["id"], "status": "archived"})
    assert resp.status_code == 400
    assert resp.json()["fields"]


def test_list_payments_across_invoices_with_filters():
    client = create_and_login("pay8@example.com")
    first = create_invoice(client)
    second = create_invoice(client)
    pay(client, first["id"], "20.00", method="cash")
    pay(client, second["id"], "80.00", method="card")

    all_payments = client.get("/payments").json()["data"]
    assert len(all_payments) == 2
    assert {p["invoice_number"] for p in all_payments} == {first["invoice_number"], second["invoice_number"]}

    cards = client.get("/payments", params={"method": "card"}).json()["data"]
    assert [p["amount"] for p in cards] == ["80.00"]

    large = client.get("/payments", params={"min_amount": "50"}).json()["data"]
    assert [p["invoice_id"] for p in large] == [second["id"]]

    other = create_and_login("pay8b@example.com")
    assert other.get("/payments").json()["data"] == []


def test_stale_invoice_write_is_rejected_by_version_check():
    client = create_and_login("pay9@example.com")
    invoice = create_invoice(client)
    owner_id = client.get("/auth/me").json()["user"]["id"]

    first = SessionLocal()
    second = SessionLocal()
    try:
        stale = get_owned_invoice(first, invoice["id"], owner_id)
        assert stale.paid_amount == Decimal("0.00")

        record_payment(second, invoice["id"], owner_id, "30.00", "card")

        apply_payment(stale, "50.00", "cash")
        with pytest.raises(StaleDataError):
            first.commit()
    finally:
        first.close()
        second.close()

    data = client.get(f"/invoices/{invoice['id']}").json()["data"]
    assert data["paid_amount"] == "30.00"
    assert len(data["payment_history"]) == 1


def test_retry_applies_payment_on_top_of_interleaved_one():
    client = create_and_login("pay10@example.com")
    invoice = create_invoice(client)
    owner_id = client.get("/auth/me").json()["user"]["id"]

    first = SessionLocal()
    second = SessionLocal()
    attempts = []

    def pay_with_interleaving():
        loaded = get_owned_invoice(first, invoice["id"], owner_id)
        if not attempts:
            record_payment(second, invoice["id"], owner_id, "30.00", "card")
        attempts.append(1)
        return apply_payment(loaded, "50.00", "cash")

    try:
        receipt = run_with_retry(first, pay_with_interleaving)
    finally:
        first.close()
        second.close()

    assert len(attempts) == 2
    assert receipt.paid_until_now == Decimal("80.00")
    data = client.get(f"/invoices/{invoice['id']}").json()["data"]
    assert data["paid_amount"] == "80.00"
    assert data["status"] == "partial"
    assert len(data["payment_history"]) == 2
