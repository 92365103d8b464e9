"""
Request guards.

- public: mark a view as exempt from the blueprint guard
- protect_blueprint: run the access-token strategy before every non-public view
- jwt_required / refresh_token_required: per-view strategies
- roles_required: allow-list check against the identity a strategy attached

Strategies put a sanitized identity dict on flask.g.current_user.
"""
from __future__ import annotations

from functools import wraps
from typing import Any, Dict

from flask import Blueprint, current_app, g, request

from models.schemas.user import IdentitySchema
from models.user import UserRole
from services.errors import AuthenticationError, ForbiddenError

identity_schema = IdentitySchema()

BEARER_PREFIX = "Bearer "


def get_auth_service():
    return current_app.extensions["auth"]


def public(fn):
    fn.is_public = True
    return fn


def _bearer_token() -> str:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith(BEARER_PREFIX):
        raise AuthenticationError("Missing or invalid Authorization header")
    token = auth[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError("Missing or invalid Authorization header")
    return token


def authenticate_access_token() -> Dict[str, Any]:
    auth = get_auth_service()
    payload = auth.signer.verify_access(_bearer_token())

    user = auth.users.find_by_id(payload.get("sub"))
    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")

    identity = identity_schema.dump(user)
    g.current_user = identity
    return identity


def authenticate_refresh_token() -> Dict[str, Any]:
    auth = get_auth_service()
    body = request.get_json(silent=True) or {}
    raw_token = body.get("refreshToken") if isinstance(body, dict) else None
    if not raw_token:
        raise AuthenticationError("Refresh token is required")
    payload = auth.signer.verify_refresh(raw_token)

    stored = auth.tokens.get(payload.get("tokenId"))
    if not stored or stored.is_expired():
        raise AuthenticationError("Invalid or expired refresh token")
    if not stored.user.is_active:
        raise AuthenticationError("User is inactive")

    identity = identity_schema.dump(stored.user)
    identity["refreshTokenId"] = stored.id
    g.current_user = identity
    return identity


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            # a blueprint guard may already have authenticated this request
            if g.get("current_user") is None:
                authenticate_access_token()
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def refresh_token_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            authenticate_refresh_token()
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(*roles):
    """
    Allow access if the identity's role is one of `roles`.
    No roles declared means no restriction.
    """
    allowed = {UserRole(r).value for r in roles}

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not allowed:
                return fn(*args, **kwargs)
            identity = g.get("current_user")
            if not identity:
                raise ForbiddenError("User not authenticated")
            if identity.get("role") not in allowed:
                raise ForbiddenError("Access denied.")
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def protect_blueprint(bp: Blueprint) -> Blueprint:
    """Require an access token for every view of `bp` not marked @public."""

    @bp.before_request
    def _require_access_token():
        if request.method == "OPTIONS":
            return None
        view = current_app.view_functions.get(request.endpoint)
        if view is None or getattr(view, "is_public", False):
            return None
        authenticate_access_token()
        return None

    return bp
