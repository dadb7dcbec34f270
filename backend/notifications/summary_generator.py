"""
Post-conversation summary emails for chatbot visitors.

When a conversation ends (idle timeout or the visitor closing the chat), the
visitor gets an email recapping what was discussed. Summaries come from the
configured AI provider, with a keyword-based fallback when no provider is
configured or the provider fails.
"""

import re
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from models.conversation import ChatMessage, Conversation, EmailSummary, SummaryData
from models.notification import NotificationStatistics
from models.types import ConversationID, SummaryID
from notifications.email_sender import MailSender, build_summary_html
from notifications.error_logger import log_notification_error
from processing.ai_providers import AIProvider
from shared import config
from shared.db import DataStore, Query
from shared.errors import DeliveryError
from shared.settings import SettingsProvider
from shared.utils import format_timestamp, is_valid_email, timestamp_days_ago, utc_now

CONVERSATIONS_TABLE = "chat_conversations"
MESSAGES_TABLE = "chat_messages"
SUMMARIES_TABLE = "chat_email_summaries"

MAX_TOPICS = 5
MAX_PROPERTIES = 5

TOPIC_KEYWORDS = {
    "price": "Pricing",
    "bedroom": "Bedrooms",
    "bathroom": "Bathrooms",
    "location": "Location",
    "school": "Schools",
    "mortgage": "Financing",
    "market": "Market Trends",
    "neighborhood": "Neighborhoods",
    "tour": "Property Tours",
    "offer": "Making Offers",
}

ADDRESS_PATTERN = re.compile(
    r"\d+\s+[A-Za-z\s]+(?:Street|St|Avenue|Ave|Road|Rd|Drive|Dr|Lane|Ln|Boulevard|Blvd)\b",
    re.IGNORECASE,
)

SUMMARY_SYSTEM_PROMPT = """You are an expert at summarizing real estate chatbot conversations. Your task is to create a concise, helpful summary for the user.

Create a summary that includes:
1. Main topics discussed
2. Key information provided
3. Any specific properties or listings mentioned
4. Recommended next steps for the user

Keep the summary brief but informative (3-5 paragraphs)."""


class SummaryGenerator:
    """Generate, store, and email conversation summaries."""

    def __init__(
        self,
        store: DataStore,
        mail_sender: MailSender,
        settings: SettingsProvider,
        ai_provider: AIProvider | None = None,
        site_name: str | None = None,
        site_url: str | None = None,
    ):
        self.store = store
        self.mail_sender = mail_sender
        self.settings = settings
        self.ai_provider = ai_provider
        self.site_name = site_name or config.SITE_NAME
        self.site_url = site_url or config.SITE_URL

    def generate_and_send_summary(
        self, conversation_id: ConversationID, reason: str = "unknown"
    ) -> bool:
        """
        Summarize a finished conversation and email it to the visitor.

        Skipped when the conversation is missing, already summarized, has no
        visitor email or messages, or user summaries are disabled.

        Args:
            conversation_id: Conversation to summarize
            reason: Why the conversation ended (idle_timeout, user_closed, ...)

        Returns:
            True if the summary email was sent
        """
        try:
            row = self.store.get_row(Query(CONVERSATIONS_TABLE, eq={"id": conversation_id}))
            if not row:
                print(f"  ⚠️  Conversation {conversation_id} not found")
                return False

            conversation = Conversation.model_validate(row)

            if conversation.summary_sent:
                print(f"  ⊘ Summary already sent for conversation {conversation_id}")
                return False

            if not is_valid_email(conversation.user_email):
                print(f"  ⊘ No email for conversation {conversation_id}, skipping summary")
                return False

            if not self.are_user_summaries_enabled():
                print("  ⊘ User summaries are disabled")
                return False
        except Exception as e:
            log_notification_error(
                error_type="summary",
                error_message=str(e),
                context={"conversation_id": conversation_id, "reason": reason},
            )
            return False

        messages = self.get_conversation_messages(conversation_id)
        if not messages:
            print(f"  ⊘ No messages for conversation {conversation_id}")
            return False

        summary = self.generate_summary(messages)

        summary_id = self._save_summary(conversation_id, summary)
        if summary_id is None:
            return False

        sent, error_message = self._send_summary_email(conversation, summary)

        try:
            if sent:
                self.store.update(CONVERSATIONS_TABLE, {"summary_sent": True}, conversation_id)
                self.store.update(
                    SUMMARIES_TABLE,
                    {"delivery_status": "sent", "sent_at": format_timestamp(utc_now())},
                    summary_id,
                )
            else:
                self.store.update(SUMMARIES_TABLE, {"delivery_status": "failed"}, summary_id)
        except Exception as e:
            log_notification_error(
                error_type="summary",
                error_message=f"Could not record delivery status: {e}",
                context={"conversation_id": conversation_id, "summary_id": summary_id},
            )

        if sent:
            print(f"  ✓ Summary email sent for conversation {conversation_id} ({reason})")
        else:
            log_notification_error(
                error_type="summary_sending",
                error_message=error_message or "Unknown error",
                context={"conversation_id": conversation_id, "reason": reason},
            )

        return sent

    def get_conversation_messages(self, conversation_id: ConversationID) -> list[ChatMessage]:
        try:
            rows = self.store.get_results(
                Query(
                    MESSAGES_TABLE,
                    columns="id, conversation_id, sender_type, message_text, created_at",
                    eq={"conversation_id": conversation_id},
                    order_by="id",
                )
            )
        except Exception as e:
            log_notification_error(
                error_type="summary",
                error_message=f"Could not load messages: {e}",
                context={"conversation_id": conversation_id},
            )
            return []

        messages = []
        for row in rows:
            try:
                messages.append(ChatMessage.model_validate(row))
            except PydanticValidationError as e:
                print(f"  ⚠️  Skipping invalid message {row.get('id')}: {e}")
        return messages

    def generate_summary(self, messages: list[ChatMessage]) -> SummaryData:
        """Summarize with the AI provider, falling back to a canned recap."""
        if self.ai_provider is None:
            return self.generate_fallback_summary(messages)

        transcript = "".join(
            f"{'User' if m.is_user else 'Assistant'}: {m.message_text}\n\n" for m in messages
        )
        user_count = sum(1 for m in messages if m.is_user)

        response = self.ai_provider.chat(
            [
                {
                    "role": "user",
                    "content": f"Please summarize this conversation:\n\n{transcript}",
                }
            ],
            system=SUMMARY_SYSTEM_PROMPT,
        )

        if not response.success:
            print(f"  ⚠️  AI summary failed, using fallback: {response.error}")
            return self.generate_fallback_summary(messages)

        return SummaryData(
            summary_text=response.text,
            key_topics=extract_key_topics(messages),
            properties_mentioned=extract_properties(messages),
            message_count=len(messages),
            user_message_count=user_count,
            ai_provider=response.provider,
            ai_model=response.model,
        )

    def generate_fallback_summary(self, messages: list[ChatMessage]) -> SummaryData:
        user_count = sum(1 for m in messages if m.is_user)
        key_topics = extract_key_topics(messages)

        summary_text = "Thank you for chatting with us! Here's a quick recap of your conversation:\n\n"
        summary_text += f"You asked {user_count} question(s) about real estate. "
        summary_text += "Our chatbot provided information to help answer your questions.\n\n"
        if key_topics:
            summary_text += f"Topics discussed: {', '.join(key_topics)}\n\n"
        summary_text += (
            "If you have additional questions, feel free to chat with us again "
            "or contact our office directly."
        )

        return SummaryData(
            summary_text=summary_text,
            key_topics=key_topics,
            properties_mentioned=extract_properties(messages),
            message_count=len(messages),
            user_message_count=user_count,
        )

    def are_user_summaries_enabled(self) -> bool:
        return self.settings.get_bool("user_summaries_enabled")

    def get_statistics(self, days: int = 7) -> NotificationStatistics:
        since = timestamp_days_ago(days)
        try:
            sent = self.store.get_results(
                Query(
                    SUMMARIES_TABLE,
                    columns="id",
                    eq={"delivery_status": "sent"},
                    gte={"sent_at": since},
                )
            )
            failed = self.store.get_results(
                Query(
                    SUMMARIES_TABLE,
                    columns="id",
                    eq={"delivery_status": "failed"},
                    gte={"created_at": since},
                )
            )
            pending = self.store.get_results(
                Query(SUMMARIES_TABLE, columns="id", eq={"delivery_status": "pending"})
            )
        except Exception as e:
            log_notification_error(
                error_type="statistics",
                error_message=str(e),
                context={"table": SUMMARIES_TABLE, "days": days},
            )
            return NotificationStatistics()

        attempted = len(sent) + len(failed)
        return NotificationStatistics(
            total_sent=len(sent),
            total_failed=len(failed),
            pending=len(pending),
            success_rate=round(len(sent) / attempted * 100, 2) if attempted else 0.0,
        )

    def _save_summary(
        self, conversation_id: ConversationID, summary: SummaryData
    ) -> SummaryID | None:
        record = EmailSummary(
            conversation_id=conversation_id,
            summary_text=summary.summary_text,
            key_topics=summary.key_topics,
            properties_mentioned=summary.properties_mentioned,
            ai_provider=summary.ai_provider,
            ai_model=summary.ai_model,
        )
        row: dict[str, Any] = record.model_dump(exclude={"id", "created_at", "sent_at"})
        row["created_at"] = format_timestamp(utc_now())
        try:
            inserted = self.store.insert(SUMMARIES_TABLE, row)
        except Exception as e:
            log_notification_error(
                error_type="summary",
                error_message=f"Could not save summary: {e}",
                context={"conversation_id": conversation_id},
            )
            return None

        if not inserted or inserted.get("id") is None:
            return None
        return SummaryID(inserted["id"])

    def _send_summary_email(
        self, conversation: Conversation, summary: SummaryData
    ) -> tuple[bool, str | None]:
        subject = f"Your Conversation Summary - {self.site_name}"
        body = build_summary_html(
            conversation.user_name or "there", summary, self.site_name, self.site_url
        )
        try:
            if not self.mail_sender.send(conversation.user_email or "", subject, body):
                raise DeliveryError("Mail sender declined the message")
        except DeliveryError as e:
            return False, str(e)
        except Exception as e:
            return False, f"Unexpected mail sender error: {e}"
        return True, None


def extract_key_topics(messages: list[ChatMessage]) -> list[str]:
    """Real estate topics mentioned in the conversation, in order of first mention."""
    topics: list[str] = []
    for message in messages:
        text = message.message_text.lower()
        for keyword, topic in TOPIC_KEYWORDS.items():
            if keyword in text and topic not in topics:
                topics.append(topic)
    return topics[:MAX_TOPICS]


def extract_properties(messages: list[ChatMessage]) -> list[str]:
    """Street addresses mentioned in the conversation."""
    properties: list[str] = []
    for message in messages:
        for match in ADDRESS_PATTERN.finditer(message.message_text):
            address = match.group(0).strip()
            if address not in properties:
                properties.append(address)
    return properties[:MAX_PROPERTIES]
