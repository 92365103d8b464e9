"""
Authentication blueprint:
- POST /auth/login       (public)
- POST /auth/refresh     (public)
- POST /auth/logout      (public, never fails)
- POST /auth/logout-all  (access token)
- GET  /auth/me          (access token)

Access tokens are short-lived and stateless; refresh tokens are stored one
row per token and rotated on every use (see services/auth_service.py).
"""
from __future__ import annotations

from flask import Blueprint, request, g

from models.schemas.auth import LoginSchema, RefreshTokenSchema
from utils.decorators import get_auth_service, protect_blueprint, public

from . import responses
from .limiter import limiter, login_rate_limit

bp = protect_blueprint(Blueprint("auth", __name__))

login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()


@bp.post("/login")
@public
@limiter.limit(login_rate_limit)
def login():
    """
    Login with email (staff) or phone (guardians): returns access and refresh tokens
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             phone: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens and user)
      400:
        description: Missing or malformed email/phone
      401:
        description: Invalid credentials or deactivated account
      429:
        description: Too many login attempts from this address
    """
    data = login_schema.load(request.get_json(silent=True) or {})
    result = get_auth_service().login(
        password=data["password"],
        email=data.get("email"),
        phone=data.get("phone"),
    )
    return responses.success(result, "Login successful")


@bp.post("/refresh")
@public
def refresh():
    """
    Exchange a refresh token for a new token pair (the old one is consumed)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns new tokens and user)
      401:
        description: Invalid, expired or already used refresh token
    """
    data = refresh_schema.load(request.get_json(silent=True) or {})
    result = get_auth_service().refresh_token(data["refresh_token"])
    return responses.success(result, "Token refreshed successfully")


@bp.post("/logout")
@public
def logout():
    """
    Logout: revokes the given refresh token; always succeeds
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      204:
        description: ""
    """
    payload = request.get_json(silent=True)
    raw_token = payload.get("refreshToken") if isinstance(payload, dict) else None
    get_auth_service().logout(raw_token)
    return responses.no_content()


@bp.post("/logout-all")
def logout_all():
    """
    Revoke every refresh token of the current user
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      204:
        description: ""
      401:
        description: Unauthorized
    """
    get_auth_service().logout_all(g.current_user["id"])
    return responses.no_content()


@bp.get("/me")
def me():
    """
    Get current user info
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return responses.success({"user": g.current_user})
