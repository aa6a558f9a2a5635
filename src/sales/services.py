"""Sale operations that involve authorization, assignment, or auditing."""

import logging
from datetime import datetime
from typing import Any, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework import serializers
from rest_framework.exceptions import PermissionDenied

from access_control.evaluator import is_allowed
from access_control.resource_keys import sale_field_key
from audit.models import AuditLog
from audit.recorder import record_event
from .assignment import AssignmentEngine
from .models import Sale, SaleStatus
from .serializers import SaleSerializer

logger = logging.getLogger(__name__)

SALES_TABLE = Sale._meta.db_table


def create_sale(
    validated_data: dict[str, Any],
    actor,
    role: Optional[str],
    engine: Optional[AssignmentEngine] = None,
) -> Sale:
    """Insert a sale owned by ``actor``, auto-assigning it when no assignee was given.

    Naming the assignee up front needs the same ``field:sales.assigned_to``
    rule as reassigning later. The assignee is chosen before the insert and
    written with the row.
    """

    data = dict(validated_data)
    if data.get("assigned_to") is not None and not is_allowed(role, sale_field_key("assigned_to")):
        raise PermissionDenied(f"Role '{role}' is not allowed to edit 'assigned_to'")
    data.setdefault("sale_date", timezone.now())
    if data.get("status") is None:
        pending = SaleStatus.objects.filter(pk=settings.SALES_PENDING_STATUS_ID).first()
        if pending is None:
            raise serializers.ValidationError({"status_id": ["Pending status is not configured."]})
        data["status"] = pending

    with transaction.atomic():
        decision = None
        if data.get("assigned_to") is None:
            decision = (engine or AssignmentEngine()).decide(data["product"].pk)
            data["assigned_to"] = decision.assignee

        sale = Sale.objects.create(agent=actor, **data)

        if decision is not None:
            record_event(
                AuditLog.Category.SYSTEM,
                "SALE_AUTO_ASSIGNED" if decision.assignee else "SALE_LEFT_UNASSIGNED",
                actor=actor,
                table_name=SALES_TABLE,
                record_id=sale.pk,
                metadata=decision.as_metadata(),
            )
    return sale


def update_sale_field(sale: Sale, field: str, value: Any, actor, role: Optional[str]) -> Sale:
    """Change one column of ``sale`` if ``role`` is allowed ``field:sales.<field>``.

    Status changes also stamp who changed the status and when.
    """

    resource_key = sale_field_key(field)
    if not is_allowed(role, resource_key):
        raise PermissionDenied(f"Role '{role}' is not allowed to edit '{field}'")

    previous = SaleSerializer(sale).data.get(field)
    serializer = SaleSerializer(sale, data={field: value}, partial=True)
    serializer.is_valid(raise_exception=True)

    extra: dict[str, Any] = {}
    if field == "status_id":
        extra = {"status_updated_by": actor, "status_updated_at": timezone.now()}

    with transaction.atomic():
        sale = serializer.save(**extra)
        record_event(
            AuditLog.Category.SYSTEM,
            "SALE_FIELD_UPDATED",
            actor=actor,
            table_name=SALES_TABLE,
            record_id=sale.pk,
            old_data={field: _jsonable(previous)},
            new_data={field: _jsonable(SaleSerializer(sale).data.get(field))},
            metadata={"role": role, "resource_key": resource_key},
        )
    return sale


def clear_sales_by_month(year: int, month: int, actor) -> int:
    """Delete sales dated within the given calendar month; return the count."""

    start = timezone.make_aware(datetime(year, month, 1))
    end = timezone.make_aware(datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1))

    with transaction.atomic():
        count, _ = Sale.objects.filter(sale_date__gte=start, sale_date__lt=end).delete()
        record_event(
            AuditLog.Category.SYSTEM,
            "SALES_CLEARED",
            severity=AuditLog.Severity.WARNING,
            actor=actor,
            table_name=SALES_TABLE,
            metadata={"year": year, "month": month, "deleted": count},
        )
    logger.warning("Cleared %d sales for %04d-%02d", count, year, month)
    return count


def truncate_sales(actor) -> int:
    """Delete every sale; return the count."""

    with transaction.atomic():
        count, _ = Sale.objects.all().delete()
        record_event(
            AuditLog.Category.SYSTEM,
            "SALES_TRUNCATED",
            severity=AuditLog.Severity.WARNING,
            actor=actor,
            table_name=SALES_TABLE,
            metadata={"deleted": count},
        )
    logger.warning("Truncated sales table (%d rows)", count)
    return count


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


__all__ = ["create_sale", "update_sale_field", "clear_sales_by_month", "truncate_sales"]
