"""Permission matrix model: one allow/deny flag per (role, resource key)."""

from django.db import models


class AppPermission(models.Model):
    """Stored decision for a role on a resource key (tab, filter, field, button)."""

    role = models.CharField(max_length=50)
    resource_key = models.CharField(max_length=100)
    is_allowed = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "app_permissions"
        ordering = ["resource_key", "role"]
        constraints = [
            models.UniqueConstraint(fields=["role", "resource_key"], name="uq_app_permission_role_key"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        state = "allow" if self.is_allowed else "deny"
        return f"{self.role} -> {self.resource_key} ({state})"


__all__ = ["AppPermission"]
