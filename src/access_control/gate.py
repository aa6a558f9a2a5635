"""Role hierarchy gate around every mutating permission-store call."""

import logging
from typing import Iterable, Optional

from audit.models import AuditLog
from audit.recorder import record_event

from .exceptions import InsufficientRank
from .models import AppPermission
from .roles import can_mutate, normalize_role, rank
from .store import PermissionMatrixStore

logger = logging.getLogger(__name__)


def enforce_rank(
    acting_role: Optional[str],
    target_role: Optional[str],
    actor=None,
    action: str = "PERMISSION_CHANGE_DENIED",
    table_name: str = AppPermission._meta.db_table,
    record_id="",
) -> None:
    """Raise InsufficientRank unless ``acting_role`` may act on ``target_role``.

    Denials are logged and recorded as ACCESS/WARNING audit events.
    """

    acting = normalize_role(acting_role)
    target = normalize_role(target_role)
    if can_mutate(acting, target):
        return
    error = InsufficientRank(acting, target, rank(acting), rank(target))
    logger.warning(
        "%s: %s (rank %s) -> %s (rank %s)",
        action,
        acting,
        error.actor_rank,
        target,
        error.target_rank,
    )
    record_event(
        AuditLog.Category.ACCESS,
        action,
        severity=AuditLog.Severity.WARNING,
        actor=actor,
        table_name=table_name,
        record_id=record_id,
        metadata={
            "acting_role": acting,
            "target_role": target,
            "actor_rank": error.actor_rank,
            "target_rank": error.target_rank,
        },
    )
    raise error


class GatedPermissionStore:
    """Apply the rank check before delegating writes to the matrix store.

    ``acting_role`` is the caller's resolved role. ``actor`` is the user
    recorded in the audit log, or None for system routines.
    """

    def __init__(self, store: PermissionMatrixStore, acting_role: Optional[str], actor=None):
        self.store = store
        self.acting_role = normalize_role(acting_role)
        self.actor = actor

    def check(self, target_role: Optional[str]) -> None:
        """Raise InsufficientRank unless the acting role may edit ``target_role``."""

        enforce_rank(self.acting_role, target_role, actor=self.actor)

    def upsert(self, role: str, resource_key: str, is_allowed: bool) -> AppPermission:
        self.check(role)
        previous = self.store.get_rule(role, resource_key)
        rule = self.store.upsert(role, resource_key, is_allowed)
        record_event(
            AuditLog.Category.CONFIG,
            "PERMISSION_UPDATED",
            actor=self.actor,
            table_name=AppPermission._meta.db_table,
            record_id=rule.pk,
            old_data=_snapshot(previous),
            new_data=_snapshot(rule),
            metadata={"acting_role": self.acting_role},
        )
        return rule

    def seed_defaults(self, resource_key: str, roles: Iterable[str], default_allowed: bool) -> list[AppPermission]:
        roles = list(roles)
        for role in roles:
            self.check(role)
        created = self.store.seed_defaults(resource_key, roles, default_allowed)
        if created:
            record_event(
                AuditLog.Category.CONFIG,
                "PERMISSION_DEFAULTS_SEEDED",
                actor=self.actor,
                table_name=AppPermission._meta.db_table,
                new_data=[_snapshot(rule) for rule in created],
                metadata={"resource_key": resource_key, "acting_role": self.acting_role},
            )
        return created


def _snapshot(rule: Optional[AppPermission]) -> Optional[dict]:
    if rule is None:
        return None
    return {"role": rule.role, "resource_key": rule.resource_key, "is_allowed": rule.is_allowed}


__all__ = ["GatedPermissionStore", "enforce_rank"]
