"""Serializers for reading the audit log and posting client events."""

from rest_framework import serializers

from .models import AuditLog


class AuditActorSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    email = serializers.EmailField()
    full_name = serializers.CharField()
    role = serializers.CharField()


class AuditLogSerializer(serializers.ModelSerializer):
    changed_by = AuditActorSerializer(read_only=True)

    class Meta:
        """Audit entries are append-only; everything is read-only."""

        model = AuditLog
        fields = [
            "id",
            "category",
            "action",
            "severity",
            "table_name",
            "record_id",
            "changed_by",
            "old_data",
            "new_data",
            "metadata",
            "created_at",
        ]
        read_only_fields = fields


class AuditEventSerializer(serializers.Serializer):
    """A system event reported by the front end (login screens, client errors)."""

    category = serializers.ChoiceField(choices=AuditLog.Category.choices)
    action = serializers.CharField(max_length=100)
    severity = serializers.ChoiceField(choices=AuditLog.Severity.choices, default=AuditLog.Severity.INFO)
    details = serializers.DictField(required=False, default=dict)


class AuditLogFilterSerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=AuditLog.Category.choices, required=False)
    severity = serializers.ChoiceField(choices=AuditLog.Severity.choices, required=False)
    table_name = serializers.CharField(required=False)


__all__ = ["AuditLogSerializer", "AuditEventSerializer", "AuditLogFilterSerializer"]
