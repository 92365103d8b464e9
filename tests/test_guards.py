import logging

import pytest
from flask import Blueprint, g

from api import responses
from models import storage
from models.user import User
from utils.decorators import jwt_required, public, protect_blueprint, refresh_token_required, roles_required


@pytest.fixture
def probe_client(app):
    """Client for a throwaway blueprint wired with each guard combination."""
    open_bp = Blueprint("probe_open", __name__)
    guarded_bp = protect_blueprint(Blueprint("probe_guarded", __name__))

    @open_bp.get("/roles-only")
    @roles_required("ADMIN")
    def roles_only():
        return responses.success({"ok": True})

    @open_bp.get("/no-roles")
    @roles_required()
    def no_roles():
        return responses.success({"ok": True})

    @open_bp.get("/jwt")
    @jwt_required()
    @roles_required("TEACHER")
    def teacher_only():
        return responses.success({"user": g.current_user})

    @open_bp.post("/refresh-guarded")
    @refresh_token_required()
    def refresh_guarded():
        return responses.success({"user": g.current_user})

    @guarded_bp.get("/private")
    def private():
        return responses.success({"id": g.current_user["id"]})

    @guarded_bp.get("/open")
    @public
    def open_view():
        return responses.success({"ok": True})

    app.register_blueprint(open_bp, url_prefix="/probe")
    app.register_blueprint(guarded_bp, url_prefix="/probe/guarded")
    return app.test_client()


def test_roles_without_identity(probe_client):
    resp = probe_client.get("/probe/roles-only")
    assert resp.status_code == 403
    assert resp.get_json()["message"] == "User not authenticated"


def test_no_roles_declared_allows_anyone(probe_client):
    assert probe_client.get("/probe/no-roles").status_code == 200


def test_jwt_and_role(probe_client, make_user, bearer):
    teacher = make_user(role="TEACHER")
    admin = make_user(role="ADMIN")

    ok = probe_client.get("/probe/jwt", headers=bearer(teacher))
    assert ok.status_code == 200
    assert ok.get_json()["data"]["user"]["id"] == teacher.id

    denied = probe_client.get("/probe/jwt", headers=bearer(admin))
    assert denied.status_code == 403
    assert denied.get_json()["message"] == "Access denied."

    assert probe_client.get("/probe/jwt").status_code == 401


def test_refresh_strategy_attaches_token_id(probe_client, make_user, login, auth_service):
    user = make_user()
    refresh = login(email=user.email).get_json()["data"]["refreshToken"]

    resp = probe_client.post("/probe/refresh-guarded", json={"refreshToken": refresh})
    assert resp.status_code == 200
    identity = resp.get_json()["data"]["user"]
    assert identity["id"] == user.id
    assert identity["refreshTokenId"] == auth_service.signer.verify_refresh(refresh)["tokenId"]
    assert "passwordHash" not in identity


def test_refresh_strategy_rejects(probe_client, make_user, login, auth_service):
    user = make_user()
    tokens = login(email=user.email).get_json()["data"]

    missing = probe_client.post("/probe/refresh-guarded", json={})
    assert missing.status_code == 401
    assert missing.get_json()["message"] == "Refresh token is required"

    assert probe_client.post("/probe/refresh-guarded", json={"refreshToken": tokens["accessToken"]}).status_code == 401

    auth_service.logout(tokens["refreshToken"])
    revoked = probe_client.post("/probe/refresh-guarded", json={"refreshToken": tokens["refreshToken"]})
    assert revoked.status_code == 401
    assert revoked.get_json()["message"] == "Invalid or expired refresh token"


def test_refresh_strategy_inactive_owner(probe_client, make_user, login, auth_service):
    user = make_user()
    refresh = login(email=user.email).get_json()["data"]["refreshToken"]
    auth_service.users.update(user.id, {"is_active": False})

    resp = probe_client.post("/probe/refresh-guarded", json={"refreshToken": refresh})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "User is inactive"


def test_blueprint_guard(probe_client, make_user, bearer):
    user = make_user()
    assert probe_client.get("/probe/guarded/open").status_code == 200
    assert probe_client.get("/probe/guarded/private").status_code == 401

    resp = probe_client.get("/probe/guarded/private", headers=bearer(user))
    assert resp.status_code == 200
    assert resp.get_json()["data"]["id"] == user.id


def test_preflight_skips_guard(client):
    assert client.options("/api/v1/auth/me").status_code != 401


def test_health_is_public(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["status"] == "ok"


def test_unknown_route_uses_envelope(client):
    resp = client.get("/api/v1/nope")
    assert resp.status_code == 404
    body = resp.get_json()
    assert body["success"] is False
    assert body["statusCode"] == 404


class TestSeedAdmin:
    def test_creates_admin(self, app, login):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["seed-admin", "--email", "Root@School.Test", "--password", "root-pass-1"])

        assert result.exit_code == 0, result.output
        assert "Created admin root@school.test" in result.output
        admin = storage.get_session().query(User).filter_by(email="root@school.test").one()
        assert admin.role.value == "ADMIN"
        assert admin.is_verified is True
        assert login(email="root@school.test", password="root-pass-1").status_code == 200

    def test_idempotent(self, app):
        runner = app.test_cli_runner()
        args = ["seed-admin", "--email", "root@school.test", "--password", "root-pass-1"]
        runner.invoke(args=args)
        result = runner.invoke(args=args)
        assert result.exit_code == 0
        assert "already exists" in result.output
        assert storage.count(User) == 1

    def test_short_password(self, app):
        result = app.test_cli_runner().invoke(args=["seed-admin", "--email", "a@school.test", "--password", "short"])
        assert result.exit_code != 0
        assert storage.count(User) == 0


def test_each_request_writes_one_access_log_record(client, caplog):
    with caplog.at_level(logging.INFO, logger="school_admin.http"):
        client.get("/api/v1/health")

    records = [r for r in caplog.records if r.name == "school_admin.http" and r.levelno >= logging.INFO]
    assert len(records) == 1
    record = records[0]
    assert record.method == "GET"
    assert record.path == "/api/v1/health"
    assert record.status_code == 200
    assert record.duration_ms is not None
    assert record.ip == "127.0.0.1"


def test_access_log_carries_user_and_error_status(client, make_user, bearer, caplog):
    user = make_user(role="TEACHER")
    headers = bearer(user)
    caplog.clear()
    with caplog.at_level(logging.INFO, logger="school_admin.http"):
        client.get("/api/v1/auth/me", headers=headers)
        client.get("/api/v1/users", headers=headers)

    me, users = [r for r in caplog.records if r.name == "school_admin.http" and r.levelno >= logging.INFO]
    assert me.user_id == user.id and me.status_code == 200
    assert users.status_code == 403
