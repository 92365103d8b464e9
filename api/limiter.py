"""
Request throttling (Flask-Limiter), keyed by client address.
Limits are read from app.config at request time so every app built by
create_app() can use its own values.
"""
from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address


def default_rate_limit() -> str:
    return current_app.config["RATE_LIMIT_DEFAULT"]


def login_rate_limit() -> str:
    return current_app.config["RATE_LIMIT_LOGIN"]


limiter = Limiter(key_func=get_remote_address, default_limits=[default_rate_limit])


def init_limiter(app):
    app.config.update(
        RATELIMIT_ENABLED=app.config.get("RATE_LIMIT_ENABLED", True),
        RATELIMIT_STORAGE_URI=app.config.get("RATE_LIMIT_STORAGE_URI", "memory://"),
        RATELIMIT_HEADERS_ENABLED=True,
    )
    limiter.init_app(app)
