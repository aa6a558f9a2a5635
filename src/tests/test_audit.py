"""Audit recorder and audit log endpoint tests."""

from __future__ import annotations

from unittest import mock

from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError
from django.test import TestCase
from rest_framework.test import APIClient

from access_control.roles import Role
from audit.models import AuditLog
from audit.recorder import record_event
from tests.utils import FakeRedisMixin, allow, auth_client, create_user


class RecordEventTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = create_user("admin@example.com", Role.ADMIN)

    def test_records_entry(self):
        entry = record_event(
            AuditLog.Category.CONFIG,
            "PERMISSION_UPDATED",
            actor=self.admin,
            table_name="app_permissions",
            record_id=7,
            old_data={"is_allowed": False},
            new_data={"is_allowed": True},
        )
        self.assertIsNotNone(entry)
        entry.refresh_from_db()
        self.assertEqual(entry.record_id, "7")
        self.assertEqual(entry.severity, AuditLog.Severity.INFO)
        self.assertEqual(entry.changed_by, self.admin)
        self.assertEqual(entry.metadata, {})

    def test_anonymous_actor_is_stored_as_null(self):
        entry = record_event(AuditLog.Category.ACCESS, "LOGIN_FAILED", actor=AnonymousUser())
        self.assertIsNone(entry.changed_by)

    def test_failed_write_returns_none_and_logs(self):
        with mock.patch.object(AuditLog.objects, "create", side_effect=DatabaseError("down")):
            with self.assertLogs("audit.recorder", level="ERROR"):
                entry = record_event(AuditLog.Category.SYSTEM, "CLIENT_ERROR")
        self.assertIsNone(entry)
        # The surrounding transaction is still usable.
        self.assertEqual(AuditLog.objects.count(), 0)


class AuditLogApiTests(FakeRedisMixin, TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = create_user("admin@example.com", Role.ADMIN)
        cls.rep = create_user("rep@example.com", Role.REPRESENTATIVE)
        allow("admin", "tab:audit_logs")
        record_event(AuditLog.Category.ACCESS, "LOGIN_SUCCESS", actor=cls.rep)
        record_event(
            AuditLog.Category.CONFIG,
            "PERMISSION_UPDATED",
            severity=AuditLog.Severity.WARNING,
            actor=cls.admin,
            table_name="app_permissions",
        )

    def test_list_requires_audit_tab(self):
        self.assertEqual(auth_client(self.rep).get("/audit-logs/").status_code, 403)
        self.assertEqual(APIClient().get("/audit-logs/").status_code, 401)

    def test_list_is_paginated_newest_first(self):
        response = auth_client(self.admin).get("/audit-logs/", {"limit": 1})
        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["data"]["count"], 2)
        self.assertEqual(len(body["data"]["results"]), 1)
        self.assertEqual(body["data"]["results"][0]["action"], "PERMISSION_UPDATED")
        self.assertEqual(body["data"]["results"][0]["changed_by"]["email"], "admin@example.com")

    def test_list_filters(self):
        client = auth_client(self.admin)
        access = client.get("/audit-logs/", {"category": "ACCESS"}).json()["data"]["results"]
        self.assertEqual([row["action"] for row in access], ["LOGIN_SUCCESS"])

        by_table = client.get("/audit-logs/", {"table_name": "app_permissions"}).json()["data"]["results"]
        self.assertEqual([row["action"] for row in by_table], ["PERMISSION_UPDATED"])

        bad = client.get("/audit-logs/", {"severity": "LOUD"})
        self.assertEqual(bad.status_code, 400)

    def test_any_user_can_report_event(self):
        response = auth_client(self.rep).post(
            "/audit-logs/",
            {"category": "SYSTEM", "action": "CLIENT_ERROR", "severity": "ERROR", "details": {"page": "/sales"}},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        entry = AuditLog.objects.get(action="CLIENT_ERROR")
        self.assertEqual(entry.changed_by, self.rep)
        self.assertEqual(entry.metadata, {"page": "/sales"})

    def test_report_event_requires_authentication(self):
        response = APIClient().post("/audit-logs/", {"category": "SYSTEM", "action": "X"}, format="json")
        self.assertEqual(response.status_code, 401)

    def test_report_event_store_failure_returns_503(self):
        with mock.patch("audit.views.record_event", return_value=None):
            response = auth_client(self.rep).post(
                "/audit-logs/", {"category": "SYSTEM", "action": "CLIENT_ERROR"}, format="json"
            )
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(response.json()["data"])
