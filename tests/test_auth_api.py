import logging

from sqlalchemy.exc import OperationalError

from .conftest import PASSWORD

LOGIN = "/api/v1/auth/login"
REFRESH = "/api/v1/auth/refresh"
LOGOUT = "/api/v1/auth/logout"
LOGOUT_ALL = "/api/v1/auth/logout-all"
ME = "/api/v1/auth/me"


def _assert_envelope(body, status, success):
    assert body["success"] is success
    assert body["statusCode"] == status
    assert body["message"]
    assert body["timestamp"]


def test_login_success_envelope(login, make_user):
    make_user(role="ADMIN", email="a@b.com", password="correct")

    resp = login(email="a@b.com", password="correct")

    assert resp.status_code == 200
    body = resp.get_json()
    _assert_envelope(body, 200, True)
    assert body["message"] == "Login successful"
    data = body["data"]
    assert data["accessToken"] and data["refreshToken"]
    assert data["accessToken"] != data["refreshToken"]
    assert data["user"]["role"] == "ADMIN"
    assert "passwordHash" not in data["user"] and "password_hash" not in data["user"]


def test_login_failures_share_message(login, make_user):
    user = make_user()

    unknown = login(email="ghost@school.test")
    wrong = login(email=user.email, password="nope-nope")

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.get_json()["message"] == wrong.get_json()["message"] == "Invalid credentials"
    _assert_envelope(wrong.get_json(), 401, False)
    assert wrong.get_json()["error"] == "UNAUTHORIZED"


def test_login_without_identifier(login):
    resp = login()
    assert resp.status_code == 400
    body = resp.get_json()
    _assert_envelope(body, 400, False)
    assert body["error"] == "INVALID_CREDENTIALS_FORMAT"


def test_login_without_password(client):
    resp = client.post(LOGIN, json={"email": "a@b.com"})
    assert resp.status_code == 422
    assert "password" in resp.get_json()["details"]


def test_login_deactivated(login, make_user):
    user = make_user(is_active=False)
    resp = login(email=user.email)
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Account is deactivated"


def test_guardian_login_by_phone(login, make_user):
    make_user(role="GUARDIAN", phone="+963 987 654 321")
    resp = login(phone="0987654321")
    assert resp.status_code == 200
    assert resp.get_json()["data"]["user"]["role"] == "GUARDIAN"


def test_refresh_rotation(client, login, make_user):
    user = make_user()
    r1 = login(email=user.email).get_json()["data"]["refreshToken"]

    first = client.post(REFRESH, json={"refreshToken": r1})
    assert first.status_code == 200
    assert first.get_json()["message"] == "Token refreshed successfully"
    r2 = first.get_json()["data"]["refreshToken"]

    second = client.post(REFRESH, json={"refreshToken": r2})
    assert second.status_code == 200

    for used in (r1, r2):
        replay = client.post(REFRESH, json={"refreshToken": used})
        assert replay.status_code == 401
        assert replay.get_json()["message"] == "Invalid or expired refresh token"


def test_refresh_requires_token(client):
    resp = client.post(REFRESH, json={})
    assert resp.status_code == 422


def test_refresh_with_garbage(client):
    resp = client.post(REFRESH, json={"refreshToken": "garbage"})
    assert resp.status_code == 401
    # no decoder internals leak to the client
    assert resp.get_json()["message"] == "Invalid token"


def test_logout_revokes_and_returns_204(client, login, make_user):
    user = make_user()
    refresh = login(email=user.email).get_json()["data"]["refreshToken"]

    resp = client.post(LOGOUT, json={"refreshToken": refresh})
    assert resp.status_code == 204
    assert resp.data == b""

    assert client.post(REFRESH, json={"refreshToken": refresh}).status_code == 401


def test_logout_never_fails(client):
    assert client.post(LOGOUT, json={"refreshToken": "not-a-token"}).status_code == 204
    assert client.post(LOGOUT, json={}).status_code == 204
    assert client.post(LOGOUT).status_code == 204


def test_logout_all(client, login, make_user):
    user = make_user()
    sessions = [login(email=user.email).get_json()["data"] for _ in range(2)]
    headers = {"Authorization": f"Bearer {sessions[0]['accessToken']}"}

    resp = client.post(LOGOUT_ALL, headers=headers)
    assert resp.status_code == 204

    for session in sessions:
        assert client.post(REFRESH, json={"refreshToken": session["refreshToken"]}).status_code == 401


def test_logout_all_requires_access_token(client):
    resp = client.post(LOGOUT_ALL)
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Missing or invalid Authorization header"


def test_me(client, make_user, bearer):
    user = make_user(role="SUPERVISOR", name="Sam")
    resp = client.get(ME, headers=bearer(user))
    assert resp.status_code == 200
    identity = resp.get_json()["data"]["user"]
    assert identity == {
        "id": user.id,
        "name": "Sam",
        "email": user.email,
        "phone": None,
        "role": "SUPERVISOR",
        "isActive": True,
        "isVerified": False,
    }


def test_me_rejects_bad_authorization(client, login, make_user):
    user = make_user()
    tokens = login(email=user.email).get_json()["data"]

    assert client.get(ME).status_code == 401
    assert client.get(ME, headers={"Authorization": f"bearer {tokens['accessToken']}"}).status_code == 401
    assert client.get(ME, headers={"Authorization": f"Token {tokens['accessToken']}"}).status_code == 401
    assert client.get(ME, headers={"Authorization": "Bearer "}).status_code == 401
    # refresh tokens are signed with the other secret
    assert client.get(ME, headers={"Authorization": f"Bearer {tokens['refreshToken']}"}).status_code == 401


def test_me_for_deactivated_user(client, make_user, bearer, auth_service):
    user = make_user()
    headers = bearer(user)
    auth_service.users.update(user.id, {"is_active": False})

    resp = client.get(ME, headers=headers)
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "User not found or inactive"


def test_me_for_deleted_user(client, make_user, bearer, auth_service):
    user = make_user()
    headers = bearer(user)
    auth_service.users.remove(user.id)

    resp = client.get(ME, headers=headers)
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "User not found or inactive"


def test_password_fixture_matches(make_user, login):
    user = make_user()
    assert login(email=user.email, password=PASSWORD).status_code == 200


def test_logout_survives_store_failure(client, login, make_user, auth_service, monkeypatch, caplog):
    user = make_user()
    refresh = login(email=user.email).get_json()["data"]["refreshToken"]

    def _fail(token_id):
        raise OperationalError("DELETE FROM refresh_tokens", {}, Exception("database is locked"))

    monkeypatch.setattr(auth_service.tokens, "delete", _fail)
    caplog.clear()
    with caplog.at_level(logging.WARNING):
        resp = client.post(LOGOUT, json={"refreshToken": refresh})

    assert resp.status_code == 204
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert warnings[0].error_type == "OperationalError"


def test_login_is_rate_limited(login):
    for _ in range(10):
        assert login(email="ghost@school.test").status_code == 401

    resp = login(email="ghost@school.test")
    assert resp.status_code == 429
    body = resp.get_json()
    _assert_envelope(body, 429, False)
    assert body["error"] == "TOO_MANY_REQUESTS"


def test_login_limit_comes_from_config(app, login):
    app.config["RATE_LIMIT_LOGIN"] = "2/minute"
    assert login(email="ghost@school.test").status_code == 401
    assert login(email="ghost@school.test").status_code == 401
    assert login(email="ghost@school.test").status_code == 429
