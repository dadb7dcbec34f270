"""Pydantic models for the admin notification queue."""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.types import ConversationID, MessageID, NotificationID

STATUS_PENDING = "pending"
STATUS_SENT = "sent"
STATUS_FAILED = "failed"

# Failed delivery attempts before a notification is left failed for good
MAX_RETRY_ATTEMPTS = 3


class NotificationPayload(BaseModel):
    """Message details rendered into the admin alert email."""

    conversation_id: ConversationID | None = None
    user_name: str = "Anonymous"
    user_email: str = "Not provided"
    user_message: str = ""
    ai_response: str = "No response yet"
    session_url: str = ""
    timestamp: str = ""


class AdminNotification(BaseModel):
    """Queued admin notification row (chat_admin_notifications)."""

    model_config = ConfigDict(populate_by_name=True)

    id: NotificationID
    conversation_id: ConversationID | None = None
    message_id: MessageID | None = None
    recipient: str = Field(..., alias="admin_email")
    payload: NotificationPayload = Field(
        default_factory=NotificationPayload, alias="notification_data"
    )
    status: str = Field(
        STATUS_PENDING,
        alias="notification_status",
        pattern="^(pending|sent|failed)$",
    )
    retry_count: int = Field(0, ge=0)
    created_at: datetime | None = None
    sent_at: datetime | None = None
    error: str | None = Field(None, alias="error_message")

    @field_validator("payload", mode="before")
    @classmethod
    def _decode_payload(cls, value: Any) -> Any:
        # Older rows store the payload as a JSON string
        if value is None or value == "":
            return {}
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return {}
        return value

    @field_validator("retry_count", mode="before")
    @classmethod
    def _default_retry_count(cls, value: Any) -> Any:
        return 0 if value is None else value

    @property
    def is_sent(self) -> bool:
        return self.status == STATUS_SENT


class NotificationAttempt(BaseModel):
    """Audit row for one delivery attempt (chat_notification_history)."""

    notification_id: NotificationID
    success: bool
    error_message: str | None = None
    attempted_at: str


class SweepResult(BaseModel):
    """Outcome of one pass over the notification queue."""

    sent_count: int = 0
    failed_count: int = 0
    skipped: bool = False


class NotificationStatistics(BaseModel):
    total_sent: int = 0
    total_failed: int = 0
    pending: int = 0
    avg_delivery_seconds: float | None = None
    success_rate: float = 0.0
