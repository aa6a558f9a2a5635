"""App configuration for the audit log."""

from django.apps import AppConfig


class AuditConfig(AppConfig):
    """Audit app stores append-only security and configuration events."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "audit"
