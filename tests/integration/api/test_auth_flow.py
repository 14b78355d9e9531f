from tholvi.api.auth_utils import create_access_token


def test_signup_creates_free_member(client):
    resp = client.post(
        "/api/auth/signup",
        json={"email": "Nuwan@Example.com", "password": "secret123", "display_name": "Nuwan"},
    )
    assert resp.status_code == 201
    token = resp.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    body = me.json()
    assert body["email"] == "nuwan@example.com"
    assert body["tier"] == "free"
    assert body["role"] == "user"
    assert body["banned"] is False
    assert "password_hash" not in body


def test_signup_duplicate_email(client, member):
    resp = client.post(
        "/api/auth/signup",
        json={"email": "KASUN@example.com", "password": "secret123", "display_name": "Again"},
    )
    assert resp.status_code == 409


def test_signup_validates_input(client):
    resp = client.post(
        "/api/auth/signup", json={"email": "not-an-email", "password": "short", "display_name": ""}
    )
    assert resp.status_code == 422


def test_login_and_cookie_session(client, member):
    resp = client.post(
        "/api/auth/login", data={"username": "kasun@example.com", "password": "secret123"}
    )
    assert resp.status_code == 200
    assert resp.json()["token_type"] == "bearer"
    assert "access_token" in resp.cookies

    # TestClient keeps the cookie
    assert client.get("/api/auth/me").json()["display_name"] == "Kasun"

    client.post("/api/auth/logout")
    client.cookies.clear()
    assert client.get("/api/auth/me").status_code == 401


def test_login_wrong_password(client, member):
    resp = client.post(
        "/api/auth/login", data={"username": "kasun@example.com", "password": "wrong-pass"}
    )
    assert resp.status_code == 401


def test_banned_account_cannot_authenticate(client, make_user):
    _, headers = make_user(email="banned@example.com", banned=True)
    login = client.post(
        "/api/auth/login", data={"username": "banned@example.com", "password": "secret123"}
    )
    assert login.status_code == 403
    assert client.get("/api/auth/me", headers=headers).status_code == 403


def test_invalid_tokens(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer junk"}).status_code == 401

    ghost = create_access_token({"sub": "00000000-0000-0000-0000-000000000000"})
    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {ghost}"})
    assert resp.status_code == 401


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "service": "api"}
