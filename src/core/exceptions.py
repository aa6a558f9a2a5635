"""Custom exception handling to enforce the API error envelope."""

from typing import Any

from django.conf import settings
from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated, PermissionDenied
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from access_control.exceptions import InsufficientRank, StoreUnavailable, UnknownResourceKey
from authentication.services import BlocklistUnavailable

DEFAULT_FORBIDDEN_MESSAGE = "You do not have permission to perform this action on this resource."


def _normalize_errors(payload: Any) -> list[Any]:
    """Convert DRF's response.data into a list for the envelope."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and "detail" in payload:
        # Common DRF pattern: {"detail": "..."}
        return [payload["detail"]]
    return [payload]


def _envelope(errors: list[Any], status_code: int) -> Response:
    return Response({"data": None, "errors": errors}, status=status_code)


def custom_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Wrap DRF errors in `{ "data": null, "errors": [...] }` shape.

    - Maps permission-matrix domain errors to 403/400/503.
    - Uses DRF's default handler to produce the base response.
    - Optionally exposes more detailed auth errors when DEBUG_AUTH_ERRORS is enabled.
    """

    # Rank violations are user-facing and keep their rank-annotated message.
    if isinstance(exc, InsufficientRank):
        return _envelope([exc.message], status.HTTP_403_FORBIDDEN)

    if isinstance(exc, UnknownResourceKey):
        return _envelope([str(exc)], status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, BlocklistUnavailable):
        return _envelope(["Authentication service unavailable (blocklist)."], status.HTTP_503_SERVICE_UNAVAILABLE)

    # Store and raw database errors are a temporary outage, still enveloped
    # instead of Django's HTML 500 page.
    if isinstance(exc, (StoreUnavailable, DatabaseError)):
        return _envelope(["Service temporarily unavailable."], status.HTTP_503_SERVICE_UNAVAILABLE)

    response = drf_exception_handler(exc, context)

    if response is None:
        return response

    # Normalize auth-related status codes to 401, regardless of DRF's default mapping.
    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    if response.status_code >= 400:
        base_errors = response.data

        if response.status_code == status.HTTP_401_UNAUTHORIZED:
            if getattr(settings, "DEBUG_AUTH_ERRORS", False):
                errors = _normalize_errors(base_errors)
            else:
                errors = [
                    "Authentication credentials were not provided or are invalid, "
                    "token revoked, or user is inactive."
                ]
        elif response.status_code == status.HTTP_403_FORBIDDEN:
            # Explicit PermissionDenied messages (e.g. field edits) are kept;
            # DRF's generic denial is replaced by ours.
            detail = str(getattr(exc, "detail", ""))
            if isinstance(exc, PermissionDenied) and detail and detail != str(PermissionDenied.default_detail):
                errors = [detail]
            else:
                errors = [DEFAULT_FORBIDDEN_MESSAGE]
        else:
            errors = _normalize_errors(base_errors)

        response.data = {"data": None, "errors": errors}

    return response
