"""Endpoints for reading and editing the permission matrix."""

from rest_framework.permissions import IsAuthenticated

from core.response import BaseAPIView, api_response
from .evaluator import allowed_keys, is_allowed
from .gate import GatedPermissionStore
from .permissions import request_role
from .resource_keys import RESOURCE_KEYS
from .roles import Role, mutable_roles, rank
from .serializers import (
    AppPermissionSerializer,
    PermissionCheckSerializer,
    PermissionQuerySerializer,
    PermissionUpsertSerializer,
)
from .store import PermissionMatrixStore


class PermissionMatrixView(BaseAPIView):
    """List the whole matrix (GET) or upsert a single rule (PUT).

    Reads only need an authenticated caller. Writes pass the role hierarchy
    gate; a rank violation answers 403 with both ranks in the message.
    """

    permission_classes = [IsAuthenticated]

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        query = PermissionQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        rules = PermissionMatrixStore().list_rules(
            resource_key=query.validated_data.get("resource_key") or None,
            role=query.validated_data.get("role") or None,
        )
        return api_response(AppPermissionSerializer(rules, many=True).data)

    # noinspection PyMethodMayBeStatic
    def put(self, request):
        serializer = PermissionUpsertSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        gate = GatedPermissionStore(PermissionMatrixStore(), request_role(request), actor=request.user)
        rule = gate.upsert(**serializer.validated_data)
        return api_response(AppPermissionSerializer(rule).data)


class MyPermissionsView(BaseAPIView):
    """Return the caller's role, its rank, and its stored rules."""

    permission_classes = [IsAuthenticated]

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        role = request_role(request)
        return api_response(
            {
                "role": role,
                "rank": rank(role),
                "is_creator": role == Role.CREATOR,
                "permissions": allowed_keys(role),
                "editable_roles": mutable_roles(role),
            }
        )


class PermissionCheckView(BaseAPIView):
    """Evaluate one resource key for the caller."""

    permission_classes = [IsAuthenticated]

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        serializer = PermissionCheckSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        key = serializer.validated_data["resource_key"]
        return api_response({"resource_key": key, "allowed": is_allowed(request_role(request), key)})


class ResourceCatalogView(BaseAPIView):
    """List catalogued resource keys with labels, plus the role order."""

    permission_classes = [IsAuthenticated]

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        return api_response(
            {
                "roles": [role.value for role in Role],
                "resources": [{"resource_key": key, "label": label} for key, label in RESOURCE_KEYS.items()],
            }
        )


__all__ = ["PermissionMatrixView", "MyPermissionsView", "PermissionCheckView", "ResourceCatalogView"]
