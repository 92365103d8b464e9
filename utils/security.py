"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Expiration strings ("15m", "30d") to milliseconds
- Access / refresh JWT signing and verification via PyJWT
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Dict

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from services.errors import InvalidTokenError, TokenExpiredError

if TYPE_CHECKING:
    from api.config import JWTSettings

logger = logging.getLogger(__name__)

ph = PasswordHasher()

DEFAULT_REFRESH_TTL_MS = 30 * 24 * 60 * 60 * 1000
DEFAULT_ACCESS_TTL_MS = 15 * 60 * 1000

_EXPIRATION_RE = re.compile(r"^(\d+)([dhms])$")
_UNIT_MS = {
    "d": 24 * 60 * 60 * 1000,
    "h": 60 * 60 * 1000,
    "m": 60 * 1000,
    "s": 1000,
}

ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    if not password or not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_token_id() -> str:
    return str(uuid.uuid4())


def parse_expiration(value: str | None, fallback_ms: int = DEFAULT_REFRESH_TTL_MS) -> int:
    """
    Convert "<number><d|h|m|s>" to milliseconds.
    Anything else falls back to `fallback_ms` (30 days unless told otherwise);
    the fallback is logged as an error and never raised.
    """
    match = _EXPIRATION_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        logger.error(
            "Error calculating token expiration, using default",
            extra={"expires_in": value, "fallback_ms": fallback_ms},
        )
        return fallback_ms
    amount, unit = match.groups()
    return int(amount) * _UNIT_MS[unit]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenSigner:
    """
    Two signing contexts sharing one algorithm: access tokens use
    settings.secret / settings.expires_in, refresh tokens use
    settings.refresh_secret / settings.refresh_expires_in.
    """

    def __init__(self, settings: "JWTSettings"):
        self.settings = settings

    @property
    def access_ttl(self) -> timedelta:
        return timedelta(milliseconds=parse_expiration(self.settings.expires_in, DEFAULT_ACCESS_TTL_MS))

    @property
    def refresh_ttl(self) -> timedelta:
        return timedelta(milliseconds=parse_expiration(self.settings.refresh_expires_in))

    def sign_access(self, payload: Dict[str, Any]) -> str:
        claims = {**payload, "jti": generate_token_id()}
        return self._sign(claims, ACCESS, self.settings.secret, self.access_ttl)

    def sign_refresh(self, payload: Dict[str, Any], ttl: timedelta | None = None) -> str:
        return self._sign(dict(payload), REFRESH, self.settings.refresh_secret, ttl or self.refresh_ttl)

    def verify_access(self, token: str) -> Dict[str, Any]:
        return self._verify(token, ACCESS, self.settings.secret)

    def verify_refresh(self, token: str) -> Dict[str, Any]:
        return self._verify(token, REFRESH, self.settings.refresh_secret)

    def _sign(self, claims: Dict[str, Any], token_type: str, secret: str, ttl: timedelta) -> str:
        now = _now()
        claims.update(
            {
                "iss": self.settings.issuer,
                "iat": int(now.timestamp()),
                "exp": int((now + ttl).timestamp()),
                "type": token_type,
            }
        )
        return jwt.encode(claims, secret, algorithm=self.settings.algorithm)

    def _verify(self, token: str, expected_type: str, secret: str) -> Dict[str, Any]:
        """
        Decode and validate a JWT. Raises TokenExpiredError / InvalidTokenError,
        both of which render as 401.
        """
        if not token or not isinstance(token, str):
            raise InvalidTokenError("Invalid token")
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.settings.algorithm],
                issuer=self.settings.issuer,
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token expired") from None
        except jwt.InvalidTokenError as exc:
            logger.debug("Rejected %s token: %s", expected_type, exc)
            raise InvalidTokenError("Invalid token") from exc

        if decoded.get("type") != expected_type:
            raise InvalidTokenError("Wrong token type")
        return decoded
