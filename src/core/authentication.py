"""DRF authenticator that reuses the identity resolved by ``JWTAuthMiddleware``.

The middleware already decoded the bearer token, consulted the blocklist,
and attached ``user`` and ``role`` to the Django request; DRF only needs to
see that user as its authenticated principal.
"""

from typing import Any, Optional, Tuple

from rest_framework.authentication import BaseAuthentication


class MiddlewareUserAuthentication(BaseAuthentication):
    """Expose ``request._request.user`` (set by middleware) to DRF."""

    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        django_request = getattr(request, "_request", None)
        if django_request is None:
            return None

        user = getattr(django_request, "user", None)
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        if not getattr(user, "is_account_active", False):
            return None

        return user, None

    def authenticate_header(self, request) -> str:
        # A non-empty header keeps DRF answering 401 (not 403) for anonymous callers.
        return 'Bearer realm="api"'


__all__ = ["MiddlewareUserAuthentication"]
