"""Audit log endpoints."""

from rest_framework import mixins, status, viewsets
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from access_control.permissions import MatrixPermission
from core.response import EnvelopeMixin, api_response
from .models import AuditLog
from .recorder import record_event
from .serializers import AuditEventSerializer, AuditLogFilterSerializer, AuditLogSerializer


class AuditLogPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = "limit"
    max_page_size = 200


class AuditLogViewSet(EnvelopeMixin, mixins.ListModelMixin, mixins.CreateModelMixin, viewsets.GenericViewSet):
    """Read the audit trail (audit tab) or append a client-reported event."""

    serializer_class = AuditLogSerializer
    pagination_class = AuditLogPagination
    permission_classes = [MatrixPermission]
    resource_key = "tab:audit_logs"
    # Any signed-in user may report an event.
    action_resource_keys = {"create": None}

    def get_queryset(self):
        qs = AuditLog.objects.select_related("changed_by").order_by("-created_at", "-id")
        if self.action != "list":
            return qs
        params = AuditLogFilterSerializer(data=self.request.query_params)
        params.is_valid(raise_exception=True)
        for name, value in params.validated_data.items():
            if value:
                qs = qs.filter(**{name: value})
        return qs

    def create(self, request, *args, **kwargs):
        event = AuditEventSerializer(data=request.data)
        event.is_valid(raise_exception=True)
        entry = record_event(
            event.validated_data["category"],
            event.validated_data["action"],
            severity=event.validated_data["severity"],
            actor=request.user,
            metadata=event.validated_data["details"],
        )
        if entry is None:
            return Response(
                {"data": None, "errors": ["Audit log unavailable."]},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return api_response(AuditLogSerializer(entry).data, status=status.HTTP_201_CREATED)


__all__ = ["AuditLogViewSet"]
