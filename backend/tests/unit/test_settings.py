"""
Unit tests for shared/settings.py

Tests typed setting lookups, legacy key fallbacks, retention windows and
upserting settings rows.
"""

import unittest

from shared.settings import SETTINGS_TABLE, SettingsProvider
from tests.fixtures.memory_store import InMemoryStore


def _provider(**values):
    store = InMemoryStore(
        {
            SETTINGS_TABLE: [
                {"setting_key": key, "setting_value": value} for key, value in values.items()
            ]
        }
    )
    return SettingsProvider(store), store


class TestSettingsProvider(unittest.TestCase):
    """Tests for SettingsProvider."""

    def test_get_with_default(self):
        settings, _ = _provider(site_theme="dark")

        self.assertEqual(settings.get("site_theme"), "dark")
        self.assertIsNone(settings.get("missing"))
        self.assertEqual(settings.get("missing", "fallback"), "fallback")

    def test_get_stringifies_values(self):
        settings, _ = _provider(retention_days_conversations=45)

        self.assertEqual(settings.get("retention_days_conversations"), "45")

    def test_get_first_skips_empty_values(self):
        settings, _ = _provider(admin_notification_emails="", admin_notification_email="a@example.com")

        self.assertEqual(
            settings.get_first("admin_notification_emails", "admin_notification_email"),
            "a@example.com",
        )
        self.assertEqual(settings.get_first("nope", default="d"), "d")

    def test_get_bool(self):
        settings, _ = _provider(a="1", b="true", c="0", d="", e=" Yes ")

        self.assertTrue(settings.get_bool("a"))
        self.assertTrue(settings.get_bool("b"))
        self.assertFalse(settings.get_bool("c"))
        self.assertFalse(settings.get_bool("d"))
        self.assertTrue(settings.get_bool("e"))
        self.assertFalse(settings.get_bool("missing"))
        self.assertTrue(settings.get_bool("missing", default=True))

    def test_get_bool_prefers_first_present_key(self):
        settings, _ = _provider(legacy_flag="1", current_flag="0")

        self.assertFalse(settings.get_bool("current_flag", "legacy_flag"))
        self.assertTrue(settings.get_bool("unset_flag", "legacy_flag"))

    def test_get_int(self):
        settings, _ = _provider(limit="25", broken="lots")

        self.assertEqual(settings.get_int("limit", 10), 25)
        self.assertEqual(settings.get_int("broken", 10), 10)
        self.assertEqual(settings.get_int("missing", 10), 10)

    def test_get_list(self):
        settings, _ = _provider(types="pages, posts,, business_info ")

        self.assertEqual(settings.get_list("types"), ["pages", "posts", "business_info"])
        self.assertEqual(settings.get_list("missing"), [])

    def test_get_admin_email_prefers_list_setting(self):
        settings, _ = _provider(
            admin_notification_emails="first@example.com, second@example.com",
            admin_notification_email="legacy@example.com",
        )

        self.assertEqual(settings.get_admin_email(), "first@example.com")

    def test_get_admin_email_rejects_invalid_address(self):
        settings, _ = _provider(admin_notification_email="not-an-email")

        self.assertIsNone(settings.get_admin_email())

    def test_retention_days(self):
        settings, _ = _provider(retention_days_notifications="14")

        self.assertEqual(settings.retention_days("notifications"), 14)
        self.assertEqual(settings.retention_days("conversations"), 90)
        self.assertEqual(settings.retention_days("knowledge"), 180)

    def test_set_inserts_then_updates(self):
        settings, store = _provider()

        self.assertTrue(settings.set("knowledge_last_scan", "2026-01-24T12:00:00+00:00"))
        self.assertTrue(settings.set("knowledge_last_scan", "2026-01-25T12:00:00+00:00"))

        rows = store.rows(SETTINGS_TABLE)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["setting_value"], "2026-01-25T12:00:00+00:00")
        self.assertIn("updated_at", rows[0])


if __name__ == "__main__":
    unittest.main()
