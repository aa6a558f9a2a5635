"""Serializers for the permission matrix endpoints."""

from rest_framework import serializers

from .models import AppPermission
from .resource_keys import is_well_formed, label_for
from .roles import normalize_role


class AppPermissionSerializer(serializers.ModelSerializer):
    """Read representation of a stored rule, with the catalogue label."""

    label = serializers.SerializerMethodField()

    class Meta:
        """Expose rule flags; every field is read-only, writes go through the upsert serializer."""

        model = AppPermission
        fields = ["id", "role", "resource_key", "label", "is_allowed", "created_at", "updated_at"]
        read_only_fields = fields

    @staticmethod
    def get_label(obj) -> str:
        return label_for(obj.resource_key)


class PermissionUpsertSerializer(serializers.Serializer):
    """Validate a single (role, resource_key, is_allowed) write."""

    role = serializers.CharField(max_length=50)
    resource_key = serializers.CharField(max_length=100)
    is_allowed = serializers.BooleanField()

    @staticmethod
    def validate_role(value):
        role = normalize_role(value)
        if role is None:
            raise serializers.ValidationError("Role must not be blank")
        return role

    @staticmethod
    def validate_resource_key(value):
        """Keys stay open-ended, but must use a known namespace (tab:, field:, ...)."""
        if not is_well_formed(value):
            raise serializers.ValidationError(
                "Resource key must look like 'tab:<name>', 'filter:<name>', 'field:<table>.<column>', "
                "'button:<name>', 'feature:<name>' or 'config:<name>'."
            )
        return value


class PermissionQuerySerializer(serializers.Serializer):
    role = serializers.CharField(required=False, allow_blank=True)
    resource_key = serializers.CharField(required=False, allow_blank=True)


class PermissionCheckSerializer(serializers.Serializer):
    resource_key = serializers.CharField()


__all__ = [
    "AppPermissionSerializer",
    "PermissionUpsertSerializer",
    "PermissionQuerySerializer",
    "PermissionCheckSerializer",
]
