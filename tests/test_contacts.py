import pytest
from fastapi.testclient import TestClient

from backend.facturo.core.security import get_password_hash
from backend.facturo.db.base import Base
from backend.facturo.db.session import SessionLocal, engine
from backend.facturo.main import app
from backend.facturo.models.user import User


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def create_and_login(email: str, password: str = "secret123", role: str = "user") -> TestClient:
    db = SessionLocal()
    db.add(User(email=email, password_hash=get_password_hash(password), name="Owner", company="Acme", role=role))
    db.commit()
    db.close()
    client = TestClient(app)
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    return client


def create_contact(client: TestClient, name: str = "Ada", **extra) -> dict:
    payload = {"name": name, "email": f"{name.lower()}@client.com", "company": f"{name} Ltd", **extra}
    resp = client.post("/contacts", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_contact_codes_are_sequential_per_owner():
    client = create_and_login("contacts1@example.com")
    assert create_contact(client, "Ada")["contact_code"] == "CMT-001"
    assert create_contact(client, "Bob")["contact_code"] == "CMT-002"

    other = create_and_login("contacts1b@example.com")
    assert create_contact(other, "Cy")["contact_code"] == "CMT-001"


def test_create_contact_requires_name_email_company():
    client = create_and_login("contacts2@example.com")
    resp = client.post("/contacts", json={"name": "Ada"})
    assert resp.status_code == 400
    fields = {field["field"] for field in resp.json()["fields"]}
    assert {"email", "company"} <= fields


def test_get_update_delete_contact():
    client = create_and_login("contacts3@example.com")
    contact = create_contact(client, "Ada", phone="555-0100")
    assert contact["status"] == "active"

    resp = client.get(f"/contacts/{contact['id']}")
    assert resp.status_code == 200
    assert resp.json()["data"]["phone"] == "555-0100"

    resp = client.put(f"/contacts/{contact['id']}", json={"status": "inactive", "address": "1 Main St"})
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "inactive"
    assert resp.json()["data"]["address"] == "1 Main St"

    assert client.delete(f"/contacts/{contact['id']}").status_code == 200
    assert client.get(f"/contacts/{contact['id']}").status_code == 404


def test_contacts_are_isolated_between_owners():
    owner = create_and_login("contacts4@example.com")
    intruder = create_and_login("contacts4b@example.com")
    contact = create_contact(owner)

    assert intruder.get(f"/contacts/{contact['id']}").status_code == 404
    assert intruder.put(f"/contacts/{contact['id']}", json={"name": "Hacked"}).status_code == 404
    assert intruder.delete(f"/contacts/{contact['id']}").status_code == 404
    assert intruder.get("/contacts").json()["data"] == []


def test_list_contacts_search():
    client = create_and_login("contacts5@example.com")
    create_contact(client, "Ada")
    create_contact(client, "Bob")
    names = [c["name"] for c in client.get("/contacts", params={"search": "bob"}).json()["data"]]
    assert names == ["Bob"]
