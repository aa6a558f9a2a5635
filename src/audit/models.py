"""Append-only audit log entries."""

from django.conf import settings
from django.db import models


class AuditLog(models.Model):
    """A recorded event: who changed what, with before/after payloads."""

    class Category(models.TextChoices):
        ACCESS = "ACCESS", "Access"
        SYSTEM = "SYSTEM", "System"
        CONFIG = "CONFIG", "Config"

    class Severity(models.TextChoices):
        INFO = "INFO", "Info"
        WARNING = "WARNING", "Warning"
        ERROR = "ERROR", "Error"

    category = models.CharField(max_length=20, choices=Category.choices)
    action = models.CharField(max_length=100)
    severity = models.CharField(max_length=10, choices=Severity.choices, default=Severity.INFO)
    table_name = models.CharField(max_length=100, blank=True)
    record_id = models.CharField(max_length=100, blank=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_logs",
    )
    old_data = models.JSONField(null=True, blank=True)
    new_data = models.JSONField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "audit_logs"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["category", "severity"], name="idx_audit_category_severity"),
            models.Index(fields=["table_name"], name="idx_audit_table_name"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"[{self.category}/{self.severity}] {self.action}"


__all__ = ["AuditLog"]
