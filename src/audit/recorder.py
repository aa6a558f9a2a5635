"""Write events into the audit log without disturbing the audited operation."""

import logging
from typing import Any, Optional

from django.db import DatabaseError, transaction

from .models import AuditLog

logger = logging.getLogger(__name__)


def record_event(
    category: str,
    action: str,
    severity: str = AuditLog.Severity.INFO,
    actor=None,
    table_name: str = "",
    record_id: Any = "",
    old_data: Any = None,
    new_data: Any = None,
    metadata: Optional[dict[str, Any]] = None,
) -> Optional[AuditLog]:
    """Append an audit entry and return it, or None if the write failed.

    The insert runs in its own savepoint; a failed audit write is logged and
    rolled back alone, leaving the caller's transaction usable.
    """

    if actor is not None and not getattr(actor, "is_authenticated", False):
        actor = None

    try:
        with transaction.atomic():
            return AuditLog.objects.create(
                category=category,
                action=action,
                severity=severity,
                table_name=table_name,
                record_id="" if record_id in (None, "") else str(record_id),
                changed_by=actor,
                old_data=old_data,
                new_data=new_data,
                metadata=metadata or {},
            )
    except DatabaseError:
        logger.exception("Audit write failed for %s/%s", category, action)
        return None


__all__ = ["record_event"]
