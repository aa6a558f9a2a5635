"""Allow/deny decisions for tabs, filters, fields, buttons, and features."""

from typing import Optional

from .roles import is_creator, normalize_role
from .store import PermissionMatrixStore


def is_allowed(role: Optional[str], resource_key: str, store: Optional[PermissionMatrixStore] = None) -> bool:
    """Return whether ``role`` may use ``resource_key``.

    The creator role is always allowed. Every other role needs a stored rule
    with ``is_allowed`` set; a missing rule or an unresolved role is a deny.
    """

    if is_creator(role):
        return True
    role = normalize_role(role)
    if role is None:
        return False

    rule = (store or PermissionMatrixStore()).get_rule(role, resource_key)
    if rule is None:
        return False
    return rule.is_allowed


def allowed_keys(role: Optional[str], store: Optional[PermissionMatrixStore] = None) -> dict[str, bool]:
    """Return the stored resource_key -> is_allowed map for ``role``."""

    role = normalize_role(role)
    if role is None:
        return {}
    rules = (store or PermissionMatrixStore()).list_rules(role=role)
    return {rule.resource_key: rule.is_allowed for rule in rules}


__all__ = ["is_allowed", "allowed_keys"]
