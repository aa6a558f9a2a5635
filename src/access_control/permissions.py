"""DRF permission class enforcing the permission matrix on views."""

from typing import Optional

from rest_framework import permissions

from .evaluator import is_allowed
from .roles import normalize_role


def request_role(request) -> Optional[str]:
    """Return the caller's role as resolved by the JWT middleware."""

    user = getattr(request, "user", None)
    if not user or not getattr(user, "is_authenticated", False):
        return None
    role = getattr(request, "role", None) or getattr(user, "role", None)
    return normalize_role(role)


class MatrixPermission(permissions.BasePermission):
    """Allow the request if the caller's role is allowed the view's resource key.

    Views declare ``resource_key`` and may override it per action with
    ``action_resource_keys``; an action mapped to None only requires an
    authenticated caller. Views declaring no key at all are denied.
    """

    message = "You do not have permission to perform this action on this resource."

    def has_permission(self, request, view) -> bool:
        role = request_role(request)
        if role is None:
            return False

        action = getattr(view, "action", None)
        action_keys = getattr(view, "action_resource_keys", None) or {}
        if action in action_keys:
            key = action_keys[action]
            if key is None:
                return True
        else:
            key = getattr(view, "resource_key", None)
            if not key:
                return False

        return is_allowed(role, key)


__all__ = ["MatrixPermission", "request_role"]
