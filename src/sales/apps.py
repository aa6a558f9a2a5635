"""App configuration for sales tracking and auto-assignment."""

from django.apps import AppConfig


class SalesConfig(AppConfig):
    """Sales hold work items routed to back-office workers."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "sales"
