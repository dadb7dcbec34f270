"""
Unit tests for shared/db.py

Tests that SupabaseStore translates Query values into the supabase-py
query builder calls.
"""

import unittest
from unittest.mock import patch

from shared.db import Query, SupabaseStore, get_supabase_client
from tests.fixtures.mock_helpers import create_mock_supabase


class TestSupabaseStore(unittest.TestCase):
    """Tests for SupabaseStore."""

    def test_get_results_applies_filters(self):
        client = create_mock_supabase([{"id": 1}, {"id": 2}])
        store = SupabaseStore(client)

        rows = store.get_results(
            Query(
                "chat_admin_notifications",
                columns="id",
                eq={"admin_email": "a@example.com"},
                neq={"id": 9},
                in_={"notification_status": ["pending", "failed"]},
                lt={"retry_count": 3},
                gte={"created_at": "2026-01-01T00:00:00+00:00"},
                order_by="created_at",
                limit=50,
            )
        )

        self.assertEqual(rows, [{"id": 1}, {"id": 2}])
        client.table.assert_called_with("chat_admin_notifications")
        client.select.assert_called_with("id")
        client.eq.assert_called_with("admin_email", "a@example.com")
        client.neq.assert_called_with("id", 9)
        client.in_.assert_called_with("notification_status", ["pending", "failed"])
        client.lt.assert_called_with("retry_count", 3)
        client.gte.assert_called_with("created_at", "2026-01-01T00:00:00+00:00")
        client.order.assert_called_with("created_at", desc=False)
        client.limit.assert_called_with(50)

    def test_not_null_filter(self):
        client = create_mock_supabase([{"id": 1}])

        SupabaseStore(client).get_results(
            Query("chat_conversations", neq={"user_name": ""}, not_null=["user_name"])
        )

        client.neq.assert_called_with("user_name", "")
        client.is_.assert_called_with("user_name", "null")

    def test_get_row_limits_to_one(self):
        client = create_mock_supabase([{"id": 5}])

        row = SupabaseStore(client).get_row(Query("chat_settings", eq={"setting_key": "x"}))

        self.assertEqual(row, {"id": 5})
        client.limit.assert_called_with(1)

    def test_get_row_none_when_empty(self):
        client = create_mock_supabase([])

        self.assertIsNone(SupabaseStore(client).get_row(Query("chat_settings")))

    def test_insert_returns_row(self):
        client = create_mock_supabase([{"id": 7, "setting_key": "x"}])

        row = SupabaseStore(client).insert("chat_settings", {"setting_key": "x"})

        self.assertEqual(row["id"], 7)
        client.insert.assert_called_with({"setting_key": "x"})

    def test_update_by_id(self):
        client = create_mock_supabase([{"id": 7}])

        self.assertTrue(SupabaseStore(client).update("chat_settings", {"setting_value": "1"}, 7))
        client.update.assert_called_with({"setting_value": "1"})
        client.eq.assert_called_with("id", 7)

    def test_update_missing_row(self):
        client = create_mock_supabase([])

        self.assertFalse(SupabaseStore(client).update("chat_settings", {"setting_value": "1"}, 7))

    def test_delete_returns_count(self):
        client = create_mock_supabase([{"id": 1}, {"id": 2}, {"id": 3}])

        deleted = SupabaseStore(client).delete(
            "chat_admin_notifications",
            Query("chat_admin_notifications", eq={"notification_status": "sent"}),
        )

        self.assertEqual(deleted, 3)
        client.delete.assert_called_once()
        client.eq.assert_called_with("notification_status", "sent")


class TestGetSupabaseClient(unittest.TestCase):
    @patch("shared.config.SUPABASE_URL", None)
    def test_missing_credentials(self):
        with self.assertRaises(ValueError):
            get_supabase_client()

    @patch("shared.db.create_client")
    @patch("shared.config.SUPABASE_SERVICE_KEY", "service-key")
    @patch("shared.config.SUPABASE_URL", "https://project.supabase.co")
    def test_creates_client(self, mock_create):
        get_supabase_client()

        mock_create.assert_called_once_with("https://project.supabase.co", "service-key")


if __name__ == "__main__":
    unittest.main()
