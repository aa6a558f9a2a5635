"""Catalogue of resource keys referenced by the application.

The permission store accepts any key string. Code that names a key (views,
field editing, filters) goes through :func:`validate_resource_key` so a typo
fails loudly instead of silently denying everyone.
"""

import re

from .exceptions import UnknownResourceKey

RESOURCE_KEY_PATTERN = re.compile(r"^(tab|filter|field|button|feature|config):[a-z0-9_.]+$")

RESOURCE_KEYS: dict[str, str] = {
    # Buttons
    "button:sales.download": "Download (CSV)",
    "button:sales.backup_bd": "Backup BD (Dump)",
    "button:sales.restore_bd": "Restore BD (JSON)",
    "button:sales.delete_bd": "Delete BD (All)",
    "button:sales.clear_bd": "Clear BD (Range)",
    "button:team.download_report": "Download Team Report (CSV)",
    # Editable sale columns
    "field:sales.assigned_to": "Assigned To",
    "field:sales.status_id": "Status",
    "field:sales.product_id": "Product",
    "field:sales.contact_number": "Contact",
    "field:sales.os_madre": "OS Madre",
    "field:sales.os_hija": "OS Hija",
    "field:sales.comment_claro": "Comms Claro",
    "field:sales.comment_orion": "Comms Orion",
    "field:sales.comment_dofu": "Comms Dofu",
    "field:sales.installed_number": "Inst. Num",
    # Features
    "feature:user_status_toggle": "Toggle Online Status",
    "feature:team_tiers": "View Team Performance Tiers",
    "config:manage_skills": "Manage User Skills",
    # Navigation
    "tab:sales": "Sales Tab",
    "tab:overview": "Overview Dashboard",
    "tab:admin_dashboard": "Admin Dashboard",
    "tab:config": "Config Tab",
    "tab:reports": "Reports Tab",
    "tab:summary": "Summary Tab",
    "tab:team": "Team Tab",
    "tab:audit_logs": "Admin: Audit Logs",
    "tab:system_monitor": "Admin: System Monitor",
    "tab:config.campaigns": "Config: Campaigns",
    "tab:config.products": "Config: Products",
    "tab:config.statuses": "Config: Statuses",
    "tab:config.concepts": "Config: Concepts",
    "tab:config.goals": "Config: Goals",
    "tab:config.users": "Config: Users",
    # Sales list filters
    "filter:sales.date_range": "Filter: Dates",
    "filter:sales.os_madre": "Filter: OS Madre",
    "filter:sales.os_hija": "Filter: OS Hija",
    "filter:sales.contact": "Filter: Contact",
    "filter:sales.concept": "Filter: Concept",
    "filter:sales.status": "Filter: Status",
}

SALE_FIELD_PREFIX = "field:sales."


def is_well_formed(resource_key: str) -> bool:
    """Return True if ``resource_key`` has a known namespace prefix."""

    return bool(RESOURCE_KEY_PATTERN.match(resource_key or ""))


def validate_resource_key(resource_key: str) -> str:
    """Return ``resource_key`` unchanged if catalogued, else raise UnknownResourceKey."""

    if resource_key not in RESOURCE_KEYS:
        raise UnknownResourceKey(resource_key)
    return resource_key


def sale_field_key(column: str) -> str:
    """Return the catalogued resource key guarding edits of a sales column."""

    return validate_resource_key(f"{SALE_FIELD_PREFIX}{column}")


def editable_sale_fields() -> list[str]:
    """Column names that have a ``field:sales.*`` key in the catalogue."""

    return [key[len(SALE_FIELD_PREFIX):] for key in RESOURCE_KEYS if key.startswith(SALE_FIELD_PREFIX)]


def label_for(resource_key: str) -> str:
    return RESOURCE_KEYS.get(resource_key, resource_key)


__all__ = [
    "RESOURCE_KEYS",
    "RESOURCE_KEY_PATTERN",
    "is_well_formed",
    "validate_resource_key",
    "sale_field_key",
    "editable_sale_fields",
    "label_for",
]
