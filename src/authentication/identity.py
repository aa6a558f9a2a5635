"""Resolve a bearer token to a user and that user's role.

The role always comes from the user row, never from token claims, so a role
change takes effect on the next request.
"""

from dataclasses import dataclass
from typing import Any, Optional

from access_control.roles import normalize_role
from .models import User
from .services import TokenService, get_user


@dataclass(frozen=True)
class Identity:
    user: User
    role: Optional[str]
    claims: dict[str, Any]


def resolve_role(user) -> Optional[str]:
    """Return the normalised role of an authenticated user, else None."""

    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return normalize_role(getattr(user, "role", None))


def resolve_identity(token: str) -> Identity:
    """Validate an access token and load its user.

    Raises AuthenticationFailed for bad, revoked, or orphaned tokens and for
    inactive accounts. BlocklistUnavailable propagates so callers fail closed.
    """

    payload = TokenService.decode_unrevoked(token, expected_type="access")
    user = TokenService.active_user(payload)
    return Identity(user=user, role=resolve_role(user), claims=payload)


__all__ = ["Identity", "resolve_identity", "resolve_role", "get_user"]
