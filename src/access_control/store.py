"""Permission matrix store backed by the ``app_permissions`` table.

The store is instantiated per request and keeps no cache, so a rule written
by one request is what the next read returns.
"""

import logging
from typing import Iterable, Optional

from django.db import DatabaseError, IntegrityError, transaction

from .exceptions import StoreUnavailable
from .models import AppPermission
from .roles import normalize_role

logger = logging.getLogger(__name__)


class PermissionMatrixStore:
    """Lookup, upsert, and default-seeding of permission rules."""

    def get_rule(self, role: Optional[str], resource_key: str) -> Optional[AppPermission]:
        """Return the rule for (role, resource_key), or None when absent."""

        role = normalize_role(role)
        if role is None:
            return None
        try:
            return AppPermission.objects.filter(role=role, resource_key=resource_key).first()
        except DatabaseError as exc:
            raise StoreUnavailable("Permission store unavailable while reading a rule") from exc

    def list_rules(self, resource_key: Optional[str] = None, role: Optional[str] = None) -> list[AppPermission]:
        """Return rules ordered by resource key then role, optionally filtered."""

        qs = AppPermission.objects.all()
        if resource_key:
            qs = qs.filter(resource_key=resource_key)
        if role:
            qs = qs.filter(role=normalize_role(role))
        try:
            return list(qs.order_by("resource_key", "role"))
        except DatabaseError as exc:
            raise StoreUnavailable("Permission store unavailable while listing rules") from exc

    def upsert(self, role: str, resource_key: str, is_allowed: bool) -> AppPermission:
        """Insert the rule or overwrite its flag; (role, resource_key) is the conflict key."""

        role = normalize_role(role)
        if role is None:
            raise ValueError("Role must be provided")
        try:
            rule, created = AppPermission.objects.update_or_create(
                role=role,
                resource_key=resource_key,
                defaults={"is_allowed": bool(is_allowed)},
            )
        except DatabaseError as exc:
            raise StoreUnavailable("Permission store unavailable while saving a rule") from exc
        logger.debug("Permission %s %s -> %s", "created" if created else "updated", rule, is_allowed)
        return rule

    def seed_defaults(self, resource_key: str, roles: Iterable[str], default_allowed: bool) -> list[AppPermission]:
        """Create one rule per role for a brand-new resource key.

        Does nothing if any rule already exists for ``resource_key``, whatever
        its role. A concurrent seed of the same key that wins the race
        also counts as existing rules. Returns the created rules.
        """

        normalized = []
        for role in roles:
            value = normalize_role(role)
            if value and value not in normalized:
                normalized.append(value)
        try:
            with transaction.atomic():
                if AppPermission.objects.filter(resource_key=resource_key).exists():
                    return []
                created = AppPermission.objects.bulk_create(
                    [
                        AppPermission(role=role, resource_key=resource_key, is_allowed=bool(default_allowed))
                        for role in normalized
                    ]
                )
        except IntegrityError:
            logger.info("Default rules for %s were seeded concurrently; nothing created", resource_key)
            return []
        except DatabaseError as exc:
            raise StoreUnavailable("Permission store unavailable while seeding defaults") from exc
        logger.info("Seeded %d default rules for %s (allowed=%s)", len(created), resource_key, default_allowed)
        return created


__all__ = ["PermissionMatrixStore"]
