"""Role catalogue and the rank ordering used to gate permission changes.

Ranks only decide who may edit whose permissions. Whether a role may use a
tab, field, or button is decided by the permission matrix, never by rank.
"""

from typing import Optional

from django.db import models


class Role(models.TextChoices):
    """Roles ordered from most to least privileged."""

    CREATOR = "creator", "Creator"
    ADMIN = "admin", "Admin"
    GERENTE = "gerente", "Gerente"
    SENIOR = "senior", "Senior"
    SUPERVISOR = "supervisor", "Supervisor"
    AUDITOR = "auditor", "Auditor"
    SEGUIMIENTO = "seguimiento", "Seguimiento"
    DIGITACION = "digitacion", "Digitacion"
    REPRESENTATIVE = "representative", "Representative"


ROLE_RANKS: dict[str, int] = {role.value: index for index, role in enumerate(Role)}

UNKNOWN_RANK = 99


def normalize_role(role: Optional[str]) -> Optional[str]:
    """Lower-case and strip a role string; blank values become None."""

    if role is None:
        return None
    value = str(role).strip().lower()
    return value or None


def is_creator(role: Optional[str]) -> bool:
    return normalize_role(role) == Role.CREATOR


def rank(role: Optional[str]) -> int:
    """Return the integer rank of ``role`` (0 is highest); unknown roles rank 99."""

    return ROLE_RANKS.get(normalize_role(role) or "", UNKNOWN_RANK)


def can_mutate(acting_role: Optional[str], target_role: Optional[str]) -> bool:
    """Return True if ``acting_role`` may change permissions of ``target_role``.

    Only strictly higher ranks may edit lower ones, so nobody edits their own
    rank. Creator rules are locked for everyone, whatever the acting rank.
    """

    if is_creator(target_role):
        return False
    return rank(acting_role) < rank(target_role)


def mutable_roles(acting_role: Optional[str]) -> list[str]:
    """List the known roles whose permissions ``acting_role`` may edit."""

    return [role.value for role in Role if can_mutate(acting_role, role.value)]


__all__ = [
    "Role",
    "ROLE_RANKS",
    "UNKNOWN_RANK",
    "normalize_role",
    "is_creator",
    "rank",
    "can_mutate",
    "mutable_roles",
]
