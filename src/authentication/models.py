"""Custom User model using bcrypt-hashed passwords and a role string.

Note: Django's built-in groups/permissions (PermissionsMixin) are not used;
authorization goes through the ``app_permissions`` matrix keyed by role.
"""

import uuid
from typing import ClassVar, Optional

from django.contrib.auth.models import AbstractBaseUser
from django.db import models

from access_control.roles import Role
from .managers import UserManager


class User(AbstractBaseUser):
    """Sales-floor user identified by email.

    ``status`` is the account switch checked at authentication time.
    ``is_active`` is the availability flag agents toggle while on shift; only
    available users receive auto-assigned sales.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    password_hash = models.CharField(max_length=128)
    full_name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=50, choices=Role.choices, default=Role.REPRESENTATIVE)
    supervisor = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="team_members",
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    is_active = models.BooleanField(default=True)
    skills = models.JSONField(default=list, blank=True)
    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: ClassVar[list[str]] = []

    objects = UserManager()

    class Meta:
        """Stable ordering by email for admin listings."""
        ordering = ["email"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.email

    @property
    def is_account_active(self) -> bool:
        return self.status == self.Status.ACTIVE

    def has_skill(self, product_id) -> bool:
        """Return True if ``product_id`` is in the user's skills (compared as strings)."""

        if product_id is None:
            return False
        return str(product_id) in {str(skill) for skill in (self.skills or [])}

    def set_password(self, raw_password: Optional[str]) -> None:  # type: ignore[override]
        """Override to ensure bcrypt hashing via manager utility."""

        if raw_password is None:
            self.password_hash = ""
        else:
            self.password_hash = UserManager.hash_password(raw_password)

    def check_password(self, raw_password: Optional[str]) -> bool:  # type: ignore[override]
        """Delegate to bcrypt verification helper."""

        if raw_password is None:
            return False
        return UserManager.verify_password(self, raw_password)


__all__ = ["User"]
