"""Authentication flows (login, refresh, logout) and user administration."""

from __future__ import annotations

import time
from unittest import mock

import jwt
from django.conf import settings
from django.db import DatabaseError
from django.test import TestCase
from rest_framework.test import APIClient

from access_control.roles import Role
from audit.models import AuditLog
from authentication.identity import resolve_identity, resolve_role
from authentication.managers import UserManager
from authentication.models import User
from authentication.services import BlocklistUnavailable, TokenService
from sales.models import Product
from tests.utils import FakeRedisMixin, allow, auth_client, create_user


class AuthFlowTests(FakeRedisMixin, TestCase):
    """End-to-end tests covering auth endpoints."""

    @classmethod
    def setUpTestData(cls):
        cls.password = "StrongPass123"
        cls.user = create_user("user@example.com", Role.SUPERVISOR, password=cls.password)

    def setUp(self):
        """Fresh DRF APIClient per test."""
        self.api_client: APIClient = APIClient()

    def _login(self):
        return self.api_client.post(
            "/auth/login/",
            {"email": self.user.email, "password": self.password},
            format="json",
        )

    def test_login_success_returns_tokens_and_is_audited(self):
        response = self._login()
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertIn("access", body["data"])
        self.assertIn("refresh", body["data"])
        self.assertEqual(body["errors"], [])

        entry = AuditLog.objects.get(action="LOGIN_SUCCESS")
        self.assertEqual(entry.category, AuditLog.Category.ACCESS)
        self.assertEqual(entry.changed_by, self.user)

    def test_login_invalid_credentials_401(self):
        response = self.api_client.post(
            "/auth/login/",
            {"email": self.user.email, "password": "wrongpass"},
            format="json",
        )
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

        entry = AuditLog.objects.get(action="LOGIN_FAILED")
        self.assertEqual(entry.severity, AuditLog.Severity.WARNING)
        self.assertIsNone(entry.changed_by)
        self.assertEqual(entry.metadata["email"], self.user.email)

    def test_login_disabled_account_401(self):
        self.user.status = "inactive"
        self.user.save(update_fields=["status"])
        self.assertEqual(self._login().status_code, 401)

    def test_unavailable_user_can_still_log_in(self):
        # Availability only affects auto-assignment.
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])
        self.assertEqual(self._login().status_code, 200)

    def test_me_returns_profile(self):
        tokens = self._login().json()["data"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
        body = self.api_client.get("/auth/me/").json()
        self.assertEqual(body["data"]["email"], self.user.email)
        self.assertEqual(body["data"]["role"], "supervisor")

    def test_me_anonymous_401(self):
        self.assertEqual(self.api_client.get("/auth/me/").status_code, 401)

    def test_garbage_token_401(self):
        self.api_client.credentials(HTTP_AUTHORIZATION="Bearer not-a-jwt")
        response = self.api_client.get("/auth/me/")
        self.assertEqual(response.status_code, 401)
        self.assertIsNone(response.json()["data"])

    def test_refresh_rotates_tokens(self):
        tokens = self._login().json()["data"]

        response = self.api_client.post("/auth/refresh/", {"refresh": tokens["refresh"]}, format="json")
        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertNotEqual(body["data"]["access"], tokens["access"])

        # The old refresh token was revoked by the rotation.
        replay = self.api_client.post("/auth/refresh/", {"refresh": tokens["refresh"]}, format="json")
        self.assertEqual(replay.status_code, 401)

    def test_refresh_with_access_token_rejected(self):
        tokens = self._login().json()["data"]
        response = self.api_client.post("/auth/refresh/", {"refresh": tokens["access"]}, format="json")
        self.assertEqual(response.status_code, 401)
        self.assertIsNone(response.json()["data"])

    def test_refresh_after_account_disabled_returns_401(self):
        tokens = self._login().json()["data"]
        self.user.status = "inactive"
        self.user.save(update_fields=["status"])

        response = self.api_client.post("/auth/refresh/", {"refresh": tokens["refresh"]}, format="json")
        self.assertEqual(response.status_code, 401)

    def test_refresh_reissues_claims_from_current_user_row(self):
        tokens = self._login().json()["data"]
        self.assertEqual(TokenService.decode_token(tokens["access"])["status"], "active")
        self.user.role = Role.AUDITOR
        self.user.save(update_fields=["role"])

        response = self.api_client.post("/auth/refresh/", {"refresh": tokens["refresh"]}, format="json")
        claims = TokenService.decode_token(response.json()["data"]["access"], expected_type="access")
        self.assertEqual(claims["role"], "auditor")
        self.assertEqual(claims["sub"], str(self.user.pk))

    def test_expired_refresh_token_returns_401(self):
        now = int(time.time())
        payload = {
            "sub": str(self.user.id),
            "jti": "expired-jti",
            "exp": now - 60,
            "iat": now - 120,
            "role": self.user.role,
            "type": "refresh",
        }
        expired_refresh = jwt.encode(payload, settings.SECRET_KEY, algorithm=TokenService.ALGORITHM)

        response = self.api_client.post("/auth/refresh/", {"refresh": expired_refresh}, format="json")
        self.assertEqual(response.status_code, 401)
        self.assertIsNone(response.json()["data"])

    def test_logout_blocklists_token(self):
        tokens = self._login().json()["data"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        self.assertEqual(self.api_client.post("/auth/logout/").status_code, 204)
        self.assertEqual(self.api_client.get("/auth/me/").status_code, 401)

    def test_logout_redis_down_returns_503(self):
        tokens = self._login().json()["data"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        with mock.patch.object(
                TokenService,
                "block_token",
                side_effect=BlocklistUnavailable("Redis unavailable while blocklisting"),
        ):
            response = self.api_client.post("/auth/logout/")

        self.assertEqual(response.status_code, 503)
        self.assertIsNone(response.json()["data"])

    def test_blocklist_check_down_fails_closed(self):
        tokens = self._login().json()["data"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        with mock.patch.object(TokenService, "is_token_blocked", side_effect=BlocklistUnavailable("down")):
            response = self.api_client.get("/auth/me/")
        self.assertEqual(response.status_code, 503)

    def test_refresh_when_database_unavailable_returns_503_with_envelope(self):
        tokens = self._login().json()["data"]

        with mock.patch("authentication.services.get_user", side_effect=DatabaseError("DB down")):
            response = self.api_client.post("/auth/refresh/", {"refresh": tokens["refresh"]}, format="json")

        body = response.json()
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])


class IdentityResolverTests(FakeRedisMixin, TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = create_user("Admin@Example.com", "admin")

    def test_role_comes_from_user_row(self):
        token, _ = TokenService.generate_tokens(self.user)
        self.user.role = Role.AUDITOR
        self.user.save(update_fields=["role"])

        identity = resolve_identity(token)
        self.assertEqual(identity.user, self.user)
        self.assertEqual(identity.role, "auditor")
        self.assertEqual(identity.claims["role"], "admin")

    def test_anonymous_has_no_role(self):
        from django.contrib.auth.models import AnonymousUser

        self.assertIsNone(resolve_role(AnonymousUser()))
        self.assertIsNone(resolve_role(None))


class UserAdminTests(FakeRedisMixin, TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = create_user("admin@example.com", Role.ADMIN)
        cls.supervisor = create_user("supervisor@example.com", Role.SUPERVISOR)
        cls.worker = create_user("dig@example.com", Role.DIGITACION, supervisor=cls.supervisor)
        cls.rep = create_user("rep@example.com", Role.REPRESENTATIVE)
        cls.product = Product.objects.create(name="Fibra 300")
        allow("admin", "tab:config.users", "config:manage_skills")

    def test_users_tab_required(self):
        self.assertEqual(auth_client(self.rep).get("/users/").status_code, 403)
        self.assertEqual(auth_client(self.admin).get("/users/").status_code, 200)

    def test_create_user_is_audited(self):
        response = auth_client(self.admin).post(
            "/users/",
            {"email": "new@example.com", "password": "NewPass123", "full_name": "New Worker", "role": "DIGITACION"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["role"], "digitacion")

        entry = AuditLog.objects.get(action="USER_CREATED")
        self.assertEqual(entry.new_data, {"email": "new@example.com", "role": "digitacion"})

        login = APIClient().post("/auth/login/", {"email": "new@example.com", "password": "NewPass123"}, format="json")
        self.assertEqual(login.status_code, 200)

    def test_create_user_rejects_duplicate_email_and_unknown_role(self):
        client = auth_client(self.admin)
        duplicate = client.post("/users/", {"email": "REP@example.com", "password": "NewPass123"}, format="json")
        self.assertEqual(duplicate.status_code, 400)
        unknown = client.post(
            "/users/", {"email": "x@example.com", "password": "NewPass123", "role": "overlord"}, format="json"
        )
        self.assertEqual(unknown.status_code, 400)

    def test_update_records_changed_fields(self):
        response = auth_client(self.admin).patch(f"/users/{self.rep.pk}/", {"role": "seguimiento"}, format="json")
        self.assertEqual(response.status_code, 200)
        entry = AuditLog.objects.get(action="USER_UPDATED")
        self.assertEqual(entry.old_data, {"role": "representative"})
        self.assertEqual(entry.new_data, {"role": "seguimiento"})

    def test_update_cannot_change_email(self):
        response = auth_client(self.admin).patch(f"/users/{self.rep.pk}/", {"email": "x@example.com"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_self_availability_needs_feature(self):
        client = auth_client(self.worker)
        url = f"/users/{self.worker.pk}/availability/"

        self.assertEqual(client.patch(url, {"is_active": False}, format="json").status_code, 403)

        allow("digitacion", "feature:user_status_toggle")
        response = client.patch(url, {"is_active": False}, format="json")
        self.assertEqual(response.status_code, 200)
        self.worker.refresh_from_db()
        self.assertFalse(self.worker.is_active)
        self.assertTrue(AuditLog.objects.filter(action="USER_AVAILABILITY_CHANGED").exists())

    def test_supervisor_toggles_other_users(self):
        url = f"/users/{self.worker.pk}/availability/"
        self.assertEqual(auth_client(self.rep).patch(url, {"is_active": False}, format="json").status_code, 403)
        response = auth_client(self.supervisor).patch(url, {"is_active": False}, format="json")
        self.assertEqual(response.status_code, 200)

    def test_skills_replace_and_validate_products(self):
        url = f"/users/{self.worker.pk}/skills/"
        client = auth_client(self.admin)

        ok = client.put(url, {"skills": [str(self.product.pk), str(self.product.pk)]}, format="json")
        self.assertEqual(ok.status_code, 200)
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.skills, [str(self.product.pk)])

        unknown = client.put(url, {"skills": ["999999"]}, format="json")
        self.assertEqual(unknown.status_code, 400)

    def test_skills_need_manage_skills(self):
        response = auth_client(self.supervisor).put(f"/users/{self.worker.pk}/skills/", {"skills": []}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_role_change_needs_rank_above_old_and_new_role(self):
        allow("supervisor", "tab:config.users")
        client = auth_client(self.supervisor)

        promote = client.patch(f"/users/{self.worker.pk}/", {"role": "admin"}, format="json")
        self.assertEqual(promote.status_code, 403)
        self.assertIsNone(promote.json()["data"])
        peer = client.patch(f"/users/{self.worker.pk}/", {"role": "supervisor"}, format="json")
        self.assertEqual(peer.status_code, 403)
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.role, "digitacion")

        demote_admin = client.patch(f"/users/{self.admin.pk}/", {"role": "representative"}, format="json")
        self.assertEqual(demote_admin.status_code, 403)
        self.admin.refresh_from_db()
        self.assertEqual(self.admin.role, "admin")

        lateral = client.patch(f"/users/{self.worker.pk}/", {"role": "seguimiento"}, format="json")
        self.assertEqual(lateral.status_code, 200)

    def test_cannot_promote_self(self):
        allow("supervisor", "tab:config.users")
        response = auth_client(self.supervisor).patch(
            f"/users/{self.supervisor.pk}/", {"role": "creator"}, format="json"
        )
        self.assertEqual(response.status_code, 403)
        self.supervisor.refresh_from_db()
        self.assertEqual(self.supervisor.role, "supervisor")

        entry = AuditLog.objects.get(action="USER_ROLE_CHANGE_DENIED")
        self.assertEqual(entry.severity, AuditLog.Severity.WARNING)
        self.assertEqual(entry.changed_by, self.supervisor)
        self.assertEqual(entry.metadata["target_role"], "supervisor")

    def test_creator_role_cannot_be_changed(self):
        creator = create_user("creator@example.com", Role.CREATOR)
        response = auth_client(self.admin).patch(f"/users/{creator.pk}/", {"role": "representative"}, format="json")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["errors"], ["Cannot modify Creator permissions"])
        creator.refresh_from_db()
        self.assertEqual(creator.role, "creator")

    def test_create_cannot_grant_equal_or_higher_role(self):
        client = auth_client(self.admin)
        for role in ("creator", "admin"):
            response = client.post(
                "/users/", {"email": f"{role}2@example.com", "password": "NewPass123", "role": role}, format="json"
            )
            self.assertEqual(response.status_code, 403)
        self.assertFalse(AuditLog.objects.filter(action="USER_CREATED").exists())
        self.assertEqual(AuditLog.objects.filter(action="USER_ROLE_CHANGE_DENIED").count(), 2)

    def test_update_without_role_change_skips_rank_check(self):
        allow("supervisor", "tab:config.users")
        response = auth_client(self.supervisor).patch(
            f"/users/{self.supervisor.pk}/", {"role": "supervisor", "full_name": "Sam"}, format="json"
        )
        self.assertEqual(response.status_code, 200)


class UserManagerTests(TestCase):
    def test_create_user_defaults_to_representative(self):
        user = User.objects.create_user("New@Example.com", "NewPass123")
        self.assertEqual(user.role, "representative")
        self.assertEqual(user.email, "New@example.com")
        self.assertTrue(user.check_password("NewPass123"))

    def test_create_user_normalizes_and_validates_role(self):
        self.assertEqual(User.objects.create_user("a@example.com", "NewPass123", role=" Auditor ").role, "auditor")
        with self.assertRaises(ValueError):
            User.objects.create_user("b@example.com", "NewPass123", role="overlord")
        with self.assertRaises(ValueError):
            User.objects.create_user("c@example.com", "NewPass123", role=Role.CREATOR)
        self.assertFalse(User.objects.filter(email__in=["b@example.com", "c@example.com"]).exists())

    def test_create_superuser_is_always_active_creator(self):
        user = User.objects.create_superuser("root@example.com", "RootPass123", role="admin", status="inactive")
        self.assertEqual(user.role, "creator")
        self.assertTrue(user.is_account_active)

    def test_suspended_account_never_verifies(self):
        user = User.objects.create_user("d@example.com", "NewPass123", role=Role.DIGITACION)
        user.status = User.Status.INACTIVE
        self.assertFalse(UserManager.verify_password(user, "NewPass123"))
