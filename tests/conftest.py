import uuid

import pytest

from api import create_app
from api.limiter import limiter
from models import storage
from models.refresh_token import RefreshToken

PASSWORD = "correct-horse-battery"


@pytest.fixture
def app(tmp_path):
    app = create_app(
        "testing",
        overrides={
            "DATABASE_URL": f"sqlite:///{tmp_path / 'school-admin-test.db'}",
            "LOG_LEVEL": "DEBUG",
        },
    )
    limiter.reset()
    # no app context is held open: each test-client request gets its own,
    # so flask.g never carries an identity from one request to the next
    yield app
    storage.close()
    storage.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_service(app):
    return app.extensions["auth"]


@pytest.fixture
def make_user(auth_service):
    """Create a user through UsersService; email/phone default from the role."""

    def _make(role="ADMIN", email=None, phone=None, password=PASSWORD, **extra):
        if email is None and phone is None:
            if role == "GUARDIAN":
                phone = "+9639" + str(uuid.uuid4().int)[:8]
            else:
                email = f"{role.lower()}-{uuid.uuid4().hex[:8]}@school.test"
        data = {"role": role, "email": email, "phone": phone, "password": password}
        data.update(extra)
        return auth_service.users.create(data)

    return _make


@pytest.fixture
def login(client):
    """POST /auth/login and return the response."""

    def _login(password=PASSWORD, **identifier):
        return client.post("/api/v1/auth/login", json={**identifier, "password": password})

    return _login


@pytest.fixture
def bearer(login):
    """Log `user` in and return the Authorization header for its access token."""

    def _bearer(user, password=PASSWORD):
        identifier = {"email": user.email} if user.email else {"phone": user.phone}
        resp = login(password=password, **identifier)
        assert resp.status_code == 200, resp.get_json()
        return {"Authorization": f"Bearer {resp.get_json()['data']['accessToken']}"}

    return _bearer


@pytest.fixture
def refresh_rows(app):
    """Number of stored refresh-token rows for a user."""

    def _count(user_id):
        return storage.get_session().query(RefreshToken).filter(RefreshToken.user_id == user_id).count()

    return _count
