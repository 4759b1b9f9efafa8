from guardhub.config import settings

from conftest import PASSWORD, login


COOKIE = settings.session_cookie_name


def test_login_sets_cookie_and_returns_public_user(client, officer):
    resp = login(client, "officer")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["user"]["username"] == "officer"
    assert body["user"]["role"] == "security_officer"
    assert "password" not in str(body).lower()
    set_cookie = resp.headers["set-cookie"]
    assert COOKIE in set_cookie
    assert "httponly" in set_cookie.lower()
    assert "samesite=lax" in set_cookie.lower()


def test_login_with_wrong_password_sets_no_cookie(client, officer):
    resp = client.post("/api/login", json={"username": "officer", "password": "nope-nope"})
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "error": "Invalid credentials"}
    assert "set-cookie" not in resp.headers


def test_unknown_user_gets_same_answer(client):
    resp = client.post("/api/login", json={"username": "ghost", "password": PASSWORD})
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "error": "Invalid credentials"}


def test_status_logout_scenario(client, officer):
    resp = client.get("/api/auth/status")
    assert resp.status_code == 200
    assert resp.json() == {"authenticated": False}

    login(client, "officer")
    resp = client.get("/api/auth/status")
    assert resp.json()["authenticated"] is True
    assert resp.json()["user"]["username"] == "officer"

    resp = client.post("/api/logout")
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    assert client.get("/api/auth/status").json() == {"authenticated": False}
    assert client.get("/api/auth/user").status_code == 401


def test_old_cookie_is_dead_after_logout(client, officer):
    login(client, "officer")
    stolen = client.cookies.get(COOKIE)
    client.post("/api/logout")
    client.cookies.clear()
    client.cookies.set(COOKIE, stolen)
    assert client.get("/api/auth/user").status_code == 401


def test_login_rotates_session(client, officer):
    login(client, "officer")
    first = client.cookies.get(COOKIE)
    login(client, "officer")
    second = client.cookies.get(COOKIE)
    assert first != second
    client.cookies.clear()
    client.cookies.set(COOKIE, first)
    assert client.get("/api/auth/user").status_code == 401


def test_auth_user_returns_current_user(as_officer):
    resp = as_officer.get("/api/auth/user")
    assert resp.status_code == 200
    assert resp.json()["username"] == "officer"


def test_logout_without_session_is_fine(client):
    assert client.post("/api/logout").status_code == 200


def test_health_is_public(client):
    assert client.get("/api/health").json() == {"status": "ok"}
