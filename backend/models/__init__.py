"""Pydantic models for data validation and type checking."""

from models.conversation import (
    ChatMessage,
    Conversation,
    EmailSummary,
    ShownProperty,
    SummaryData,
)
from models.knowledge import ContentChunk, KnowledgeEntry, ScanResult, SiteContent
from models.notification import (
    AdminNotification,
    NotificationAttempt,
    NotificationPayload,
    NotificationStatistics,
    SweepResult,
)

__all__ = [
    "AdminNotification",
    "NotificationAttempt",
    "NotificationPayload",
    "NotificationStatistics",
    "SweepResult",
    "ChatMessage",
    "Conversation",
    "EmailSummary",
    "ShownProperty",
    "SummaryData",
    "ContentChunk",
    "KnowledgeEntry",
    "ScanResult",
    "SiteContent",
]
