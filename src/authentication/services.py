"""Session tokens for sales-ops accounts.

Access tokens authorize API calls; refresh tokens are single-use and rotate
on every exchange. Revoked ``jti`` values live in Redis until the token would
have expired anyway, and any Redis failure rejects the request.
"""

import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Tuple

import jwt
from django.conf import settings
from django.core.exceptions import ValidationError
from rest_framework.exceptions import AuthenticationFailed

from access_control.roles import normalize_role
from core.redis_client import get_redis_client
from .models import User


class BlocklistUnavailable(Exception):
    """Redis could not be reached, so revocation state is unknown."""


def get_user(user_id: Optional[str]) -> Optional[User]:
    if not user_id:
        return None
    try:
        return User.objects.get(id=user_id)
    except (User.DoesNotExist, ValidationError):
        return None


class TokenService:
    ACCESS_TTL = timedelta(minutes=15)
    REFRESH_TTL = timedelta(hours=24)
    ALGORITHM = "HS256"
    REVOKED_PREFIX = "sales_ops:revoked_jti:"

    @classmethod
    def generate_tokens(cls, user: User) -> Tuple[str, str]:
        """Issue an access/refresh pair stamped with the user's current role and account status."""

        now = datetime.now(timezone.utc)
        access = jwt.encode(cls._claims(user, "access", now, cls.ACCESS_TTL), settings.SECRET_KEY, algorithm=cls.ALGORITHM)
        refresh = jwt.encode(cls._claims(user, "refresh", now, cls.REFRESH_TTL), settings.SECRET_KEY, algorithm=cls.ALGORITHM)
        return access, refresh

    @classmethod
    def _claims(cls, user: User, token_type: str, issued_at: datetime, ttl: timedelta) -> dict[str, Any]:
        # role and status are informational; authorization re-reads the user row.
        return {
            "sub": str(user.pk),
            "jti": uuid.uuid4().hex,
            "type": token_type,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + ttl).timestamp()),
            "role": normalize_role(user.role),
            "status": user.status,
        }

    @classmethod
    def decode_token(cls, token: str, expected_type: str | None = None) -> dict[str, Any]:
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[cls.ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationFailed("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationFailed("Invalid token") from exc

        if expected_type and payload.get("type") != expected_type:
            raise AuthenticationFailed("Invalid token type")
        return payload

    @classmethod
    def decode_unrevoked(cls, token: str, expected_type: str) -> dict[str, Any]:
        """Decode a token and reject it when its jti is missing or revoked."""

        payload = cls.decode_token(token, expected_type=expected_type)
        jti = payload.get("jti")
        if not jti:
            raise AuthenticationFailed("Invalid token")
        if cls.is_token_blocked(jti):
            raise AuthenticationFailed("Token revoked")
        return payload

    @classmethod
    def active_user(cls, payload: dict[str, Any]) -> User:
        """Load the token's subject; disabled or deleted accounts are rejected."""

        user = get_user(payload.get("sub"))
        if user is None or not user.is_account_active:
            raise AuthenticationFailed("User not found or inactive")
        return user

    @classmethod
    def rotate(cls, refresh_token: str) -> Tuple[User, str, str]:
        """Spend a refresh token and issue a new pair from the user's current row.

        A role change or account suspension since login is reflected in the
        new claims, and a suspended account gets no new tokens.
        """

        payload = cls.decode_unrevoked(refresh_token, expected_type="refresh")
        user = cls.active_user(payload)
        cls.revoke(payload)
        access, refresh = cls.generate_tokens(user)
        return user, access, refresh

    @classmethod
    def revoke(cls, payload: dict[str, Any]) -> None:
        cls.block_token(payload["jti"], payload["exp"])

    @classmethod
    def block_token(cls, jti: str, exp: int) -> None:
        """Revoke a jti until its expiry timestamp."""

        ttl_seconds = max(1, exp - int(time.time()))
        try:
            get_redis_client().setex(f"{cls.REVOKED_PREFIX}{jti}", ttl_seconds, "1")
        except Exception as exc:  # pragma: no cover - network failure
            raise BlocklistUnavailable("Redis unavailable while revoking token") from exc

    @classmethod
    def is_token_blocked(cls, jti: str) -> bool:
        try:
            return get_redis_client().get(f"{cls.REVOKED_PREFIX}{jti}") is not None
        except Exception as exc:  # pragma: no cover - network failure
            raise BlocklistUnavailable("Redis unavailable while checking revocations") from exc


__all__ = ["TokenService", "BlocklistUnavailable", "get_user"]
