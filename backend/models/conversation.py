"""Pydantic models for conversations, messages and summaries."""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from models.types import (
    CollectedInfo,
    ConversationID,
    DisplayPrice,
    ListingID,
    MessageID,
    SearchCriteria,
    SummaryID,
)


def decode_json_column(value: Any, empty: Any) -> Any:
    """Decode a JSON text column, falling back to `empty` when blank or malformed."""
    if value is None or value == "":
        return empty
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            return empty
        return decoded if decoded else empty
    return value


def decode_mapping_column(value: Any) -> dict[str, Any]:
    decoded = decode_json_column(value, {})
    return decoded if isinstance(decoded, dict) else {}


def listing_id_or_none(value: Any) -> Any:
    if value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class ShownProperty(BaseModel):
    """A listing shown to the user, numbered the way it was displayed."""

    index: int = Field(..., ge=1)
    listing_id: ListingID | None = None
    address: str | None = None
    street: str | None = None
    price: DisplayPrice | None = None

    @field_validator("listing_id", mode="before")
    @classmethod
    def _listing_id_as_string(cls, value: Any) -> Any:
        return listing_id_or_none(value)


def decode_shown_properties(value: Any) -> list[ShownProperty]:
    """Decode the shown_properties column, dropping entries that do not validate."""
    decoded = decode_json_column(value, [])
    if not isinstance(decoded, list):
        return []

    shown = []
    for item in decoded:
        try:
            shown.append(ShownProperty.model_validate(item))
        except ValidationError:
            continue
    return shown


class Conversation(BaseModel):
    """Conversation row (chat_conversations) with JSON columns decoded."""

    id: ConversationID
    session_id: str | None = None
    user_name: str | None = None
    user_email: str | None = None
    user_phone: str | None = None
    page_url: str | None = None
    collected_info: CollectedInfo = Field(default_factory=dict)
    search_context: SearchCriteria = Field(default_factory=dict)
    shown_properties: list[ShownProperty] = Field(default_factory=list)
    active_property_id: ListingID | None = None
    conversation_status: str | None = None
    summary_sent: bool = False
    last_message_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("collected_info", "search_context", mode="before")
    @classmethod
    def _decode_mapping(cls, value: Any) -> Any:
        return decode_mapping_column(value)

    @field_validator("shown_properties", mode="before")
    @classmethod
    def _decode_shown(cls, value: Any) -> Any:
        return decode_shown_properties(value)

    @field_validator("summary_sent", mode="before")
    @classmethod
    def _summary_flag(cls, value: Any) -> Any:
        return bool(value) if value is not None else False

    @field_validator("active_property_id", mode="before")
    @classmethod
    def _active_id_as_string(cls, value: Any) -> Any:
        return listing_id_or_none(value)


class ChatMessage(BaseModel):
    """Message row (chat_messages)."""

    id: MessageID | None = None
    conversation_id: ConversationID | None = None
    sender_type: str = "user"
    message_text: str = ""
    created_at: datetime | None = None

    @property
    def is_user(self) -> bool:
        return self.sender_type == "user"


class SummaryData(BaseModel):
    """Generated conversation summary, before it is stored."""

    summary_text: str
    key_topics: list[str] = Field(default_factory=list)
    properties_mentioned: list[str] = Field(default_factory=list)
    message_count: int = 0
    user_message_count: int = 0
    ai_provider: str = "fallback"
    ai_model: str = "none"


class EmailSummary(BaseModel):
    """Stored summary row (chat_email_summaries)."""

    id: SummaryID | None = None
    conversation_id: ConversationID
    summary_text: str = ""
    key_topics: list[str] = Field(default_factory=list)
    properties_mentioned: list[str] = Field(default_factory=list)
    ai_provider: str = "fallback"
    ai_model: str = "none"
    delivery_status: str = Field("pending", pattern="^(pending|sent|failed)$")
    created_at: datetime | None = None
    sent_at: datetime | None = None
