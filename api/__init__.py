import time

from flask import Flask, g, request
from flasgger import Swagger
from flask_cors import CORS

from .config import JWTSettings, get_config
from .errors import register_error_handlers
from .limiter import init_limiter
from models import storage  # DBStorage singleton (scoped_session)
from utils.logger import configure_logging, http_logger, log_request

API_PREFIX = "/api/v1"

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "School Admin API",
        "version": "1.0.0",
        "description": "REST API for school administration: authentication, sessions and user management.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the access token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    Configuration is resolved once here; the JWT settings and the services
    built from it are stored on app.extensions["auth"].
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)
    register_request_logging(app)
    init_limiter(app)

    storage.configure(app.config["DATABASE_URL"], echo=app.config.get("SQLALCHEMY_ECHO", False))
    storage.reload()

    from services.auth_service import AuthService
    from services.token_store import RefreshTokenStore
    from services.users_service import UsersService
    from utils.security import TokenSigner

    settings = JWTSettings.from_mapping(app.config)
    app.extensions["auth"] = AuthService(
        settings=settings,
        signer=TokenSigner(settings),
        tokens=RefreshTokenStore(storage),
        users=UsersService(storage),
    )

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .commands import register_commands

    app.register_blueprint(health_bp, url_prefix=API_PREFIX)
    app.register_blueprint(auth_bp, url_prefix=f"{API_PREFIX}/auth")
    app.register_blueprint(users_bp, url_prefix=f"{API_PREFIX}/users")
    register_commands(app)

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to School Admin API",
            "docs": "/apidocs/",
            "health": f"{API_PREFIX}/health",
        }, 200

    return app


def register_request_logging(app: Flask) -> None:
    """Access log: method, path, status, duration, client address and user."""

    @app.before_request
    def _start_request_timer():
        g.request_started = time.perf_counter()
        http_logger.debug("Incoming %s %s", request.method, request.path)

    @app.after_request
    def _log_request(response):
        started = g.get("request_started")
        duration_ms = round((time.perf_counter() - started) * 1000, 2) if started else None
        identity = g.get("current_user") or {}
        log_request(
            request.method,
            request.path,
            response.status_code,
            duration_ms,
            ip=request.remote_addr,
            user_agent=request.headers.get("User-Agent", ""),
            user_id=identity.get("id"),
        )
        return response
