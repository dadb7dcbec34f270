"""
Unit tests for notifications/summary_generator.py

Tests the decline conditions, AI and fallback summaries, delivery status
tracking and the keyword/address extraction helpers.
"""

import unittest
from unittest.mock import Mock

from models.conversation import ChatMessage
from notifications.summary_generator import (
    SUMMARIES_TABLE,
    SummaryGenerator,
    extract_key_topics,
    extract_properties,
)
from processing.ai_providers import AIResponse
from shared.errors import DeliveryError
from shared.settings import SETTINGS_TABLE, SettingsProvider
from tests.fixtures.conversation_factory import create_test_conversation, create_test_message
from tests.fixtures.memory_store import InMemoryStore
from tests.fixtures.mock_helpers import create_mock_mail_sender
from tests.fixtures.notification_factory import create_test_settings


def _build(conversation=None, messages=None, sender=None, ai_provider=None, **settings):
    store = InMemoryStore(
        {
            "chat_conversations": [conversation or create_test_conversation()],
            "chat_messages": messages
            if messages is not None
            else [
                create_test_message(message_text="What is the price of 70 Phillips Street?"),
                create_test_message(message_text="It is listed at $500,000.", sender_type="assistant"),
                create_test_message(message_text="Any good schools nearby?"),
            ],
        }
    )
    for row in create_test_settings(**settings):
        store.insert(SETTINGS_TABLE, row)
    sender = sender or create_mock_mail_sender()
    generator = SummaryGenerator(
        store,
        sender,
        SettingsProvider(store),
        ai_provider=ai_provider,
        site_name="Example Realty",
        site_url="https://example.com",
    )
    return generator, store, sender


def _messages(*texts):
    return [ChatMessage(message_text=text) for text in texts]


class TestGenerateAndSendSummary(unittest.TestCase):
    """Tests for SummaryGenerator.generate_and_send_summary()."""

    def test_sends_fallback_summary(self):
        generator, store, sender = _build()

        self.assertTrue(generator.generate_and_send_summary(1, "user_closed"))

        to, subject, body = sender.send.call_args[0]
        self.assertEqual(to, "jane@example.com")
        self.assertEqual(subject, "Your Conversation Summary - Example Realty")
        self.assertIn("You asked 2 question(s)", body)

        summary = store.rows(SUMMARIES_TABLE)[0]
        self.assertEqual(summary["delivery_status"], "sent")
        self.assertEqual(summary["ai_provider"], "fallback")
        self.assertEqual(summary["key_topics"], ["Pricing", "Schools"])
        self.assertTrue(store.rows("chat_conversations")[0]["summary_sent"])

    def test_already_sent(self):
        generator, store, sender = _build(conversation=create_test_conversation(summary_sent=True))

        self.assertFalse(generator.generate_and_send_summary(1))
        sender.send.assert_not_called()
        self.assertEqual(store.rows(SUMMARIES_TABLE), [])

    def test_no_email(self):
        generator, _, sender = _build(conversation=create_test_conversation(user_email=None))

        self.assertFalse(generator.generate_and_send_summary(1))
        sender.send.assert_not_called()

    def test_summaries_disabled(self):
        generator, _, sender = _build(user_summaries_enabled="0")

        self.assertFalse(generator.generate_and_send_summary(1))
        sender.send.assert_not_called()

    def test_no_messages(self):
        generator, store, sender = _build(messages=[])

        self.assertFalse(generator.generate_and_send_summary(1))
        sender.send.assert_not_called()
        self.assertEqual(store.rows(SUMMARIES_TABLE), [])

    def test_missing_conversation(self):
        generator, _, sender = _build()

        self.assertFalse(generator.generate_and_send_summary(99))
        sender.send.assert_not_called()

    def test_settings_outage_returns_false(self):
        generator, store, sender = _build()
        store.fail_tables.add(SETTINGS_TABLE)

        self.assertFalse(generator.generate_and_send_summary(1))
        sender.send.assert_not_called()
        self.assertEqual(store.rows(SUMMARIES_TABLE), [])

    def test_invalid_conversation_row_returns_false(self):
        generator, _, sender = _build(
            conversation=create_test_conversation(last_message_at="not a date")
        )

        self.assertFalse(generator.generate_and_send_summary(1))
        sender.send.assert_not_called()

    def test_failed_send_marks_summary_failed(self):
        generator, store, _ = _build(sender=create_mock_mail_sender(error=DeliveryError("down")))

        self.assertFalse(generator.generate_and_send_summary(1))

        self.assertEqual(store.rows(SUMMARIES_TABLE)[0]["delivery_status"], "failed")
        self.assertFalse(store.rows("chat_conversations")[0]["summary_sent"])

    def test_uses_ai_provider(self):
        provider = Mock()
        provider.chat.return_value = AIResponse(
            success=True, text="You looked at a home.", provider="ollama", model="llama3.1:8b"
        )
        generator, store, sender = _build(ai_provider=provider)

        self.assertTrue(generator.generate_and_send_summary(1))

        self.assertIn("You looked at a home.", sender.send.call_args[0][2])
        summary = store.rows(SUMMARIES_TABLE)[0]
        self.assertEqual(summary["ai_provider"], "ollama")
        self.assertEqual(summary["ai_model"], "llama3.1:8b")
        transcript = provider.chat.call_args[0][0][0]["content"]
        self.assertIn("User: What is the price of 70 Phillips Street?", transcript)
        self.assertIn("Assistant: It is listed at $500,000.", transcript)


class TestGenerateSummary(unittest.TestCase):
    """Tests for SummaryGenerator.generate_summary()."""

    def test_ai_failure_falls_back(self):
        provider = Mock()
        provider.chat.return_value = AIResponse(
            success=False, provider="ollama", model="llama3.1:8b", error="connection refused"
        )
        generator, _, _ = _build(ai_provider=provider)

        summary = generator.generate_summary(_messages("Tell me about the market"))

        self.assertEqual(summary.ai_provider, "fallback")
        self.assertIn("Topics discussed: Market Trends", summary.summary_text)

    def test_fallback_counts_user_messages(self):
        generator, _, _ = _build()
        messages = _messages("one", "two") + [
            ChatMessage(message_text="reply", sender_type="assistant")
        ]

        summary = generator.generate_fallback_summary(messages)

        self.assertEqual(summary.message_count, 3)
        self.assertEqual(summary.user_message_count, 2)
        self.assertNotIn("Topics discussed", summary.summary_text)


class TestExtraction(unittest.TestCase):
    """Tests for extract_key_topics() and extract_properties()."""

    def test_topics_in_first_mention_order(self):
        topics = extract_key_topics(_messages("Schools first", "then the PRICE and schools"))

        self.assertEqual(topics, ["Schools", "Pricing"])

    def test_topics_capped_at_five(self):
        topics = extract_key_topics(
            _messages("price bedroom bathroom location school mortgage market")
        )

        self.assertEqual(len(topics), 5)

    def test_properties(self):
        properties = extract_properties(
            _messages("I like 70 Phillips Street", "and 12 Oak Ave", "70 Phillips Street again")
        )

        self.assertEqual(properties, ["70 Phillips Street", "12 Oak Ave"])

    def test_no_properties(self):
        self.assertEqual(extract_properties(_messages("no addresses here")), [])


class TestStatistics(unittest.TestCase):
    def test_counts(self):
        generator, store, _ = _build()
        generator.generate_and_send_summary(1)

        stats = generator.get_statistics()

        self.assertEqual(stats.total_sent, 1)
        self.assertEqual(stats.success_rate, 100.0)


if __name__ == "__main__":
    unittest.main()
