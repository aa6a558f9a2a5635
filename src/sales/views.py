"""Sale endpoints protected by the permission matrix."""

import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination

from access_control.evaluator import is_allowed
from access_control.permissions import MatrixPermission, request_role
from core.response import EnvelopeMixin, api_response
from .models import Sale
from .serializers import SaleClearSerializer, SaleFieldUpdateSerializer, SaleFilterSerializer, SaleSerializer
from .services import clear_sales_by_month, create_sale, truncate_sales, update_sale_field

logger = logging.getLogger(__name__)

# Roles that only ever see the sales they captured themselves.
OWN_SALES_ONLY_ROLES = {"representative"}

# query parameter -> (resource key, queryset lookup)
FILTERS = {
    "start_date": ("filter:sales.date_range", "sale_date__date__gte"),
    "end_date": ("filter:sales.date_range", "sale_date__date__lte"),
    "os_madre": ("filter:sales.os_madre", "os_madre__icontains"),
    "os_hija": ("filter:sales.os_hija", "os_hija__icontains"),
    "contact_number": ("filter:sales.contact", "contact_number__icontains"),
    "status_id": ("filter:sales.status", "status_id"),
}


class SalePagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = "limit"
    max_page_size = 500


class SaleViewSet(
    EnvelopeMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """List, read, and create sales; edit single columns; bulk clean-up buttons."""

    serializer_class = SaleSerializer
    pagination_class = SalePagination
    permission_classes = [MatrixPermission]
    resource_key = "tab:sales"
    action_resource_keys = {
        "clear": "button:sales.clear_bd",
        "truncate": "button:sales.delete_bd",
    }

    def get_queryset(self):
        user = self.request.user
        if not getattr(user, "is_authenticated", False):
            return Sale.objects.none()

        qs = Sale.objects.select_related("product", "status", "agent", "assigned_to", "status_updated_by")
        role = request_role(self.request)
        if role in OWN_SALES_ONLY_ROLES:
            qs = qs.filter(agent=user)

        if self.action == "list":
            qs = self._apply_filters(qs, role)
        return qs

    def _apply_filters(self, qs, role):
        """Apply query filters the caller's role is allowed to use; others are ignored."""
        params = SaleFilterSerializer(data=self.request.query_params)
        params.is_valid(raise_exception=True)

        decisions: dict[str, bool] = {}
        for name, value in params.validated_data.items():
            if value in (None, ""):
                continue
            key, lookup = FILTERS[name]
            if key not in decisions:
                decisions[key] = is_allowed(role, key)
            if not decisions[key]:
                logger.debug("Ignoring filter %s for role %s (%s denied)", name, role, key)
                continue
            qs = qs.filter(**{lookup: value})
        return qs

    def create(self, request, *args, **kwargs):
        """Create a sale for the caller; unassigned sales are auto-assigned."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sale = create_sale(serializer.validated_data, actor=request.user, role=request_role(request))
        return api_response(self.get_serializer(sale).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch"], url_path="field")
    def update_field(self, request, pk=None):
        """Edit one column, guarded by its ``field:sales.<column>`` permission."""
        sale = self.get_object()
        payload = SaleFieldUpdateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        sale = update_sale_field(
            sale,
            payload.validated_data["field"],
            payload.validated_data["value"],
            actor=request.user,
            role=request_role(request),
        )
        return api_response(self.get_serializer(sale).data)

    @action(detail=False, methods=["post"])
    def clear(self, request):
        """Delete the sales of one calendar month."""
        payload = SaleClearSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        count = clear_sales_by_month(payload.validated_data["year"], payload.validated_data["month"], actor=request.user)
        return api_response({"count": count})

    @action(detail=False, methods=["post"])
    def truncate(self, request):
        """Delete every sale."""
        return api_response({"count": truncate_sales(actor=request.user)})


__all__ = ["SaleViewSet"]
