"""Shared helpers for tests (users, permission rules, sales fixtures, fake Redis)."""

from __future__ import annotations

from typing import Dict, Iterable

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from access_control.models import AppPermission
from authentication.managers import UserManager
from authentication.services import TokenService
from sales.models import Product, Sale, SaleStatus

User = get_user_model()

DEFAULT_PASSWORD = "StrongPass123"


class FakeRedis:
    """Minimal Redis stub supporting the commands used by TokenService."""

    def __init__(self):
        self._store: Dict[str, str] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Mimic Redis SETEX; TTL is ignored in tests, value stored in-memory."""
        self._store[key] = value

    def get(self, key: str):
        """Return stored value for key or None, matching Redis GET semantics."""
        return self._store.get(key)


class FakeRedisMixin:
    """Patch both Redis lookups with one in-memory fake for the whole test class."""

    @classmethod
    def setUpClass(cls):
        from unittest import mock

        super().setUpClass()
        cls.fake_redis = FakeRedis()
        cls.patchers = [
            mock.patch("core.redis_client.get_redis_client", return_value=cls.fake_redis),
            mock.patch("authentication.services.get_redis_client", return_value=cls.fake_redis),
        ]
        for patcher in cls.patchers:
            patcher.start()

    @classmethod
    def tearDownClass(cls):
        for patcher in cls.patchers:
            patcher.stop()
        super().tearDownClass()


def create_user(email: str, role: str, password: str = DEFAULT_PASSWORD, **extra):
    """Create a user with a bcrypt-hashed password for tests."""

    return User.objects.create(
        email=email,
        password_hash=UserManager.hash_password(password),
        role=role,
        **extra,
    )


def allow(role: str, *resource_keys: str, allowed: bool = True) -> None:
    """Write matrix rules directly, bypassing the rank gate."""

    for key in resource_keys:
        AppPermission.objects.update_or_create(role=role, resource_key=key, defaults={"is_allowed": allowed})


def auth_client(user) -> APIClient:
    """Return an APIClient authenticated with a fresh access token."""

    token, _ = TokenService.generate_tokens(user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


def create_statuses() -> Dict[str, SaleStatus]:
    """Create the pending (id 1) and done statuses."""

    return {
        "pending": SaleStatus.objects.create(id=1, name="Pendiente"),
        "done": SaleStatus.objects.create(id=2, name="Instalada"),
    }


def create_sales(agent, product: Product, status: SaleStatus, assignees: Iterable, **extra) -> list[Sale]:
    """Create one sale per entry of ``assignees`` (None leaves a sale unassigned)."""

    return [
        Sale.objects.create(
            product=product,
            status=status,
            agent=agent,
            assigned_to=assignee,
            sale_date=timezone.now(),
            **extra,
        )
        for assignee in assignees
    ]
