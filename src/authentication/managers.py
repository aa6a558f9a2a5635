"""Account creation for sales-ops users, with bcrypt password hashes."""

import uuid

import bcrypt
from django.contrib.auth.base_user import BaseUserManager

from access_control.roles import ROLE_RANKS, Role, normalize_role


class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email: str, password: str, role: str, **extra_fields):
        if not email:
            raise ValueError("The Email must be set")
        user = self.model(id=uuid.uuid4(), email=self.normalize_email(email), role=role, **extra_fields)
        user.password_hash = self.hash_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, role: str | None = None, **extra_fields):
        """Create a staff account; role defaults to representative.

        Unknown roles are rejected, and the creator role can only come from
        ``create_superuser``.
        """
        if password is None:
            raise ValueError("Password must be provided")
        role = normalize_role(role) or Role.REPRESENTATIVE
        if role not in ROLE_RANKS:
            raise ValueError(f"Unknown role: {role}")
        if role == Role.CREATOR:
            raise ValueError("Creator accounts must be created with create_superuser")
        return self._create_user(email, password, role, **extra_fields)

    def create_superuser(self, email: str, password: str, **extra_fields):
        """Create the single top-level account, always active and always creator."""
        extra_fields.pop("role", None)
        extra_fields["status"] = self.model.Status.ACTIVE
        return self._create_user(email, password, Role.CREATOR, **extra_fields)

    @staticmethod
    def hash_password(raw_password: str) -> str:
        return bcrypt.hashpw(raw_password.encode(), bcrypt.gensalt()).decode()

    @staticmethod
    def verify_password(user, raw_password: str) -> bool:
        """Check a login attempt; suspended accounts never verify."""

        if not user.password_hash or not user.is_account_active:
            return False
        return bcrypt.checkpw(raw_password.encode(), user.password_hash.encode("utf-8"))


__all__ = ["UserManager"]
