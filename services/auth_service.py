"""
Authentication orchestration: login, refresh-token rotation, logout and
logout-all over the token signer, the refresh-token store and user lookup.

Token pairs are issued by generating the refresh-token id up front, signing
both tokens, then inserting the row once with the signed value, so a row
never exists without its token.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from models.schemas.common import is_valid_email, is_valid_phone
from models.user import User
from services.errors import (
    AuthenticationError,
    InvalidCredentialsFormat,
    ServiceError,
)
from services.token_store import RefreshTokenStore
from services.users_service import UsersService
from utils.logger import log_auth, timed, utc_timestamp
from utils.security import TokenSigner, generate_token_id, parse_expiration, verify_password

if TYPE_CHECKING:
    from api.config import JWTSettings

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
ACCOUNT_DEACTIVATED = "Account is deactivated"
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"
USER_INACTIVE = "User is inactive"


@dataclass(frozen=True)
class RevokeResult:
    """Outcome of a best-effort revoke; logout never surfaces it."""
    revoked: bool
    reason: Optional[str] = None
    error_type: Optional[str] = None


def validate_login_identifier(email: Optional[str], phone: Optional[str]) -> None:
    if email and phone:
        raise InvalidCredentialsFormat("Provide either email or phone, not both")
    if not email and not phone:
        raise InvalidCredentialsFormat("Either email or phone must be provided")
    if email and not is_valid_email(email):
        raise InvalidCredentialsFormat("Please provide a valid email address")
    if phone and not is_valid_phone(phone):
        raise InvalidCredentialsFormat("Please provide a valid phone number")


class AuthService:
    def __init__(
        self,
        settings: "JWTSettings",
        signer: TokenSigner,
        tokens: RefreshTokenStore,
        users: UsersService,
    ):
        self.settings = settings
        self.signer = signer
        self.tokens = tokens
        self.users = users

    def login(self, password: str, email: Optional[str] = None, phone: Optional[str] = None) -> Dict[str, Any]:
        validate_login_identifier(email, phone)

        user = self.users.find_by_email_or_phone(email, phone)
        if not user:
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not user.is_active:
            raise AuthenticationError(ACCOUNT_DEACTIVATED)

        if not verify_password(password, user.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS)

        tokens = self._generate_tokens(user)

        log_auth(
            "User logged in successfully",
            user.id,
            login_method="email" if email else "phone",
            role=user.role.value,
        )
        return {**tokens, "user": self.users.to_response(user)}

    def refresh_token(self, raw_token: str) -> Dict[str, Any]:
        payload = self.signer.verify_refresh(raw_token)
        token_id = payload.get("tokenId")

        stored = self.tokens.get(token_id)
        if not stored or stored.is_expired():
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        user = stored.user
        if not user.is_active:
            raise AuthenticationError(USER_INACTIVE)

        # Consuming the row is what makes the token single-use; a concurrent
        # request that lost the race deletes nothing and must not get tokens.
        if not self.tokens.delete(token_id):
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        tokens = self._generate_tokens(user)

        log_auth("Token refreshed successfully", user.id, old_token_id=token_id)
        return {**tokens, "user": self.users.to_response(user)}

    def revoke_refresh_token(self, raw_token: Optional[str]) -> RevokeResult:
        try:
            payload = self.signer.verify_refresh(raw_token)
        except ServiceError as exc:
            return RevokeResult(False, exc.message, type(exc).__name__)

        try:
            deleted = self.tokens.delete(payload.get("tokenId"))
        except SQLAlchemyError as exc:
            self.tokens.rollback()
            return RevokeResult(False, "Refresh token could not be deleted", type(exc).__name__)

        if not deleted:
            return RevokeResult(False, "Refresh token not found", "NotFound")
        return RevokeResult(True)

    def logout(self, raw_token: Optional[str]) -> None:
        """Best-effort revoke: the caller is logged out whatever the token state."""
        result = self.revoke_refresh_token(raw_token)
        if not result.revoked:
            logger.warning(
                "Logout attempted with invalid or expired refresh token",
                extra={
                    "error_message": result.reason,
                    "error_type": result.error_type,
                    "timestamp": utc_timestamp(),
                },
            )

    def logout_all(self, user_id: str) -> int:
        deleted = self.tokens.delete_all_for_user(user_id)
        log_auth(
            "User logged out from all devices successfully",
            user_id,
            tokens_deleted=deleted,
        )
        return deleted

    def refresh_expiration(self) -> timedelta:
        return timedelta(milliseconds=parse_expiration(self.settings.refresh_expires_in))

    def _generate_tokens(self, user: User) -> Dict[str, str]:
        with timed("token-generation", logger):
            token_id = generate_token_id()
            ttl = self.refresh_expiration()

            access_token = self.signer.sign_access({"sub": user.id, "role": user.role.value})
            refresh_token = self.signer.sign_refresh({"sub": user.id, "tokenId": token_id}, ttl=ttl)

            self.tokens.create(
                token_id=token_id,
                user_id=user.id,
                token=refresh_token,
                expires_at=datetime.now(timezone.utc) + ttl,
            )
        return {"accessToken": access_token, "refreshToken": refresh_token}
