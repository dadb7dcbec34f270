"""Unit tests for Pydantic models."""

import unittest

from pydantic import ValidationError

from models import (
    AdminNotification,
    ChatMessage,
    Conversation,
    EmailSummary,
    KnowledgeEntry,
    NotificationPayload,
    ShownProperty,
)
from tests.fixtures.conversation_factory import create_test_conversation
from tests.fixtures.notification_factory import create_test_notification


class TestNotificationModels(unittest.TestCase):
    """Tests for notification queue models."""

    def test_payload_defaults(self):
        payload = NotificationPayload()

        self.assertEqual(payload.user_name, "Anonymous")
        self.assertEqual(payload.user_email, "Not provided")
        self.assertEqual(payload.ai_response, "No response yet")

    def test_notification_from_row(self):
        notification = AdminNotification.model_validate(
            create_test_notification(notification_id=3, retry_count=None)
        )

        self.assertEqual(notification.id, 3)
        self.assertEqual(notification.recipient, "admin@example.com")
        self.assertEqual(notification.status, "pending")
        self.assertEqual(notification.retry_count, 0)
        self.assertEqual(notification.payload.user_name, "Jane Buyer")
        self.assertFalse(notification.is_sent)

    def test_malformed_payload_uses_defaults(self):
        notification = AdminNotification.model_validate(
            create_test_notification(notification_id=1, notification_data="{broken")
        )

        self.assertEqual(notification.payload.user_name, "Anonymous")

    def test_invalid_status_rejected(self):
        with self.assertRaises(ValidationError):
            AdminNotification.model_validate(
                create_test_notification(notification_id=1, status="queued")
            )

    def test_negative_retry_count_rejected(self):
        with self.assertRaises(ValidationError):
            AdminNotification.model_validate(
                create_test_notification(notification_id=1, retry_count=-1)
            )

    def test_populate_by_field_name(self):
        notification = AdminNotification(id=1, recipient="a@example.com", status="sent")

        self.assertTrue(notification.is_sent)


class TestConversationModels(unittest.TestCase):
    """Tests for conversation, message and summary models."""

    def test_conversation_decodes_json_strings(self):
        conversation = Conversation.model_validate(
            create_test_conversation(
                conversation_id=1,
                collected_info='{"name": "Jane"}',
                search_context="[]",
                shown_properties='[{"index": 1, "listing_id": "L1"}]',
                summary_sent=1,
            )
        )

        self.assertEqual(conversation.collected_info, {"name": "Jane"})
        self.assertEqual(conversation.search_context, {})
        self.assertEqual(conversation.shown_properties[0].listing_id, "L1")
        self.assertTrue(conversation.summary_sent)

    def test_conversation_nulls(self):
        conversation = Conversation.model_validate(
            create_test_conversation(
                conversation_id=1,
                collected_info=None,
                shown_properties=None,
                summary_sent=None,
                active_property_id="",
            )
        )

        self.assertEqual(conversation.collected_info, {})
        self.assertEqual(conversation.shown_properties, [])
        self.assertFalse(conversation.summary_sent)
        self.assertIsNone(conversation.active_property_id)

    def test_shown_property_index_starts_at_one(self):
        with self.assertRaises(ValidationError):
            ShownProperty(index=0, listing_id="L1")

    def test_shown_property_numeric_listing_id(self):
        self.assertEqual(ShownProperty(index=1, listing_id=73012345).listing_id, "73012345")

    def test_message_sender(self):
        self.assertTrue(ChatMessage(message_text="hi").is_user)
        self.assertFalse(ChatMessage(message_text="hi", sender_type="assistant").is_user)

    def test_invalid_shown_entries_are_dropped(self):
        conversation = Conversation.model_validate(
            create_test_conversation(
                conversation_id=1,
                shown_properties=[{"listing_id": "L1"}, {"index": 2, "listing_id": "L2"}],
            )
        )

        self.assertEqual([p.listing_id for p in conversation.shown_properties], ["L2"])

    def test_email_summary_status(self):
        with self.assertRaises(ValidationError):
            EmailSummary(id=1, conversation_id=1, delivery_status="bounced")

    def test_new_email_summary_has_no_id(self):
        summary = EmailSummary(conversation_id=1, summary_text="Recap")

        self.assertIsNone(summary.id)
        self.assertEqual(summary.delivery_status, "pending")
        self.assertEqual(summary.ai_provider, "fallback")


class TestKnowledgeEntry(unittest.TestCase):
    def test_requires_type_and_title(self):
        with self.assertRaises(ValidationError):
            KnowledgeEntry(content_type="", content_title="About")

        entry = KnowledgeEntry(content_type="page_content", content_title="About")
        self.assertTrue(entry.is_active)


if __name__ == "__main__":
    unittest.main()
