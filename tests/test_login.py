import pytest
from fastapi.testclient import TestClient

from backend.facturo.core.security import get_password_hash
from backend.facturo.db.base import Base
from backend.facturo.db.session import SessionLocal, engine
from backend.facturo.main import app
from backend.facturo.models.refresh_token import RefreshToken
from backend.facturo.models.user import User
from backend.facturo.models.user_session import UserSession


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def create_user(email: str, password: str = "secret123", **fields) -> int:
    db = SessionLocal()
    user = User(email=email, password_hash=get_password_hash(password), name="Lou", company="Acme", **fields)
    db.add(user)
    db.commit()
    user_id = user.id
    db.close()
    return user_id


def login(client: TestClient, email: str, password: str = "secret123", ip: str | None = None):
    headers = {"X-Forwarded-For": ip} if ip else {}
    return client.post("/auth/login", json={"email": email, "password": password}, headers=headers)


def count_sessions(user_id: int) -> int:
    db = SessionLocal()
    try:
        return db.query(UserSession).filter(UserSession.user_id == user_id).count()
    finally:
        db.close()


def test_successful_login_sets_cookies_and_returns_profile():
    create_user("login@example.com")
    client = TestClient(app)
    response = login(client, "login@example.com")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["user"]["email"] == "login@example.com"
    assert body["user"]["role"] == "user"
    assert "password_hash" not in body["user"]
    assert client.cookies.get("access_token")
    assert client.cookies.get("refresh_token")


def test_login_email_is_case_insensitive():
    create_user("mixed@example.com")
    client = TestClient(app)
    assert login(client, "Mixed@Example.com").status_code == 200


def test_wrong_password_returns_generic_401():
    create_user("wrongpw@example.com")
    client = TestClient(app)
    response = login(client, "wrongpw@example.com", "bad-password")
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


def test_unknown_user_returns_same_401():
    client = TestClient(app)
    response = login(client, "nosuch@example.com")
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


def test_blocked_account_returns_403_without_session():
    user_id = create_user("blocked@example.com", access_count=0)
    client = TestClient(app)
    response = login(client, "blocked@example.com")
    assert response.status_code == 403
    assert count_sessions(user_id) == 0
    assert client.cookies.get("access_token") is None


def test_inactive_account_returns_403():
    create_user("inactive@example.com", status="inactive")
    client = TestClient(app)
    assert login(client, "inactive@example.com").status_code == 403


def test_device_cap_rejects_extra_ip():
    user_id = create_user("cap@example.com", access_count=2)
    assert login(TestClient(app), "cap@example.com", ip="10.0.0.1").status_code == 200
    assert login(TestClient(app), "cap@example.com", ip="10.0.0.2").status_code == 200

    response = login(TestClient(app), "cap@example.com", ip="10.0.0.3")
    assert response.status_code == 403
    assert count_sessions(user_id) == 2


def test_same_ip_login_reuses_session():
    user_id = create_user("sameip@example.com", access_count=1)
    assert login(TestClient(app), "sameip@example.com", ip="10.0.0.9").status_code == 200
    assert login(TestClient(app), "sameip@example.com", ip="10.0.0.9").status_code == 200
    assert count_sessions(user_id) == 1


def test_me_returns_identity_and_requires_auth():
    create_user("me@example.com")
    client = TestClient(app)
    assert client.get("/auth/me").status_code == 401

    login(client, "me@example.com")
    response = client.get("/auth/me")
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "me@example.com"


def test_bearer_header_is_accepted():
    create_user("bearer@example.com")
    client = TestClient(app)
    login(client, "bearer@example.com")
    token = client.cookies.get("access_token")

    other = TestClient(app)
    response = other.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


def test_invalid_token_clears_cookies():
    client = TestClient(app)
    response = client.get("/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    set_cookie = " ".join(response.headers.get_list("set-cookie"))
    assert "access_token=" in set_cookie
    assert "refresh_token=" in set_cookie


def test_refresh_rotates_cookie_and_old_token_is_dead():
    create_user("refresh@example.com")
    client = TestClient(app)
    login(client, "refresh@example.com")
    old_refresh = client.cookies.get("refresh_token")

    response = client.post("/auth/refresh")
    assert response.status_code == 200
    new_refresh = client.cookies.get("refresh_token")
    assert new_refresh and new_refresh != old_refresh

    replay = TestClient(app)
    response = replay.post("/auth/refresh", headers={"Cookie": f"refresh_token={old_refresh}"})
    assert response.status_code == 401


def test_refresh_without_cookie_returns_401():
    client = TestClient(app)
    assert client.post("/auth/refresh").status_code == 401


def test_logout_removes_session_and_refresh_record():
    user_id = create_user("logout@example.com")
    client = TestClient(app)
    login(client, "logout@example.com")
    assert count_sessions(user_id) == 1

    response = client.post("/auth/logout")
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert count_sessions(user_id) == 0

    db = SessionLocal()
    assert db.query(RefreshToken).filter(RefreshToken.user_id == user_id).count() == 0
    db.close()


def test_logout_without_cookies_still_succeeds():
    client = TestClient(app)
    response = client.post("/auth/logout")
    assert response.status_code == 200
    assert response.json()["success"] is True


def change_password(client: TestClient, current: str, new: str, confirm: str | None = None, method: str = "post"):
    payload = {
        "current_password": current,
        "new_password": new,
        "confirm_new_password": new if confirm is None else confirm,
    }
    return getattr(client, method)("/auth/change-password", json=payload)


def test_change_password_policy():
    create_user("pw@example.com")
    client = TestClient(app)
    login(client, "pw@example.com")

    assert change_password(client, "", "newsecret").status_code == 400
    assert change_password(client, "secret123", "newsecret", "different").status_code == 400
    assert change_password(client, "secret123", "short").status_code == 400
    assert change_password(client, "secret123", "x" * 129).status_code == 400
    assert change_password(client, "wrong-current", "newsecret").status_code == 400


def test_change_password_accepts_put_and_new_password_works():
    create_user("pwput@example.com")
    client = TestClient(app)
    login(client, "pwput@example.com")

    response = change_password(client, "secret123", "newsecret", method="put")
    assert response.status_code == 200
    assert response.json()["success"] is True

    fresh = TestClient(app)
    assert login(fresh, "pwput@example.com", "secret123").status_code == 401
    assert login(fresh, "pwput@example.com", "newsecret").status_code == 200
