"""App configuration for the access_control Django application.

Registers the system check that validates resource keys declared by
matrix-protected views.
"""

from django.apps import AppConfig


class AccessControlConfig(AppConfig):
    """Permission matrix, role hierarchy gate, and authorization evaluator."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "access_control"

    def ready(self) -> None:
        """Register system checks when the app is loaded."""
        from . import checks  # noqa: F401
