"""App configuration for authentication components."""

from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Holds the custom User model, JWT token service, and identity resolver."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
