"""
Per-conversation working memory for the chatbot.

Holds what the chatbot has learned during a conversation:
- Collected user info (name, phone, email)
- Active search criteria (city, price range, bedrooms, property type)
- Recently shown properties (for reference resolution)
- The listing currently being discussed

The context is loaded from the conversation row, mutated in memory, and only
written back by save() when something changed since the last load or save.
"""

from typing import Any, Iterable, Mapping

from pydantic import ValidationError as PydanticValidationError

from conversation.reference_resolver import resolve_reference
from models.conversation import (
    Conversation,
    ShownProperty,
    decode_mapping_column,
    decode_shown_properties,
    listing_id_or_none,
)
from models.types import CollectedInfo, ConversationID, ListingID, SearchCriteria
from notifications.error_logger import log_notification_error
from shared.db import DataStore, Query
from shared.utils import format_timestamp, utc_now

CONVERSATIONS_TABLE = "chat_conversations"

# Identity fields mirrored into their own conversation columns
IDENTITY_COLUMNS = {
    "name": "user_name",
    "email": "user_email",
    "phone": "user_phone",
}


class ConversationContext:
    """Conversation memory with dirty tracking."""

    def __init__(self, store: DataStore, conversation_id: ConversationID | None = None):
        self.store = store
        self.conversation_id = conversation_id
        self._collected_info: CollectedInfo = {}
        self._search_criteria: SearchCriteria = {}
        self._shown_properties: list[ShownProperty] = []
        self._active_property_id: ListingID | None = None
        self._active_property: dict[str, Any] | None = None
        self.is_dirty = False

        if conversation_id:
            self.load(conversation_id)

    def load(self, conversation_id: ConversationID) -> bool:
        """
        Load context from the conversation row.

        Returns:
            True if the conversation exists and was loaded
        """
        self.conversation_id = conversation_id

        try:
            row = self.store.get_row(
                Query(
                    CONVERSATIONS_TABLE,
                    columns="id, collected_info, search_context, shown_properties, "
                    "active_property_id, user_name, user_email, user_phone",
                    eq={"id": conversation_id},
                )
            )
        except Exception as e:
            log_notification_error(
                error_type="context_load",
                error_message=str(e),
                context={"conversation_id": conversation_id},
            )
            return False

        if not row:
            return False

        # Columns decode independently
        self._collected_info = decode_mapping_column(row.get("collected_info"))

        # Fill identity gaps from the dedicated columns
        for field, column in IDENTITY_COLUMNS.items():
            column_value = row.get(column)
            if isinstance(column_value, str) and column_value and not self._collected_info.get(field):
                self._collected_info[field] = column_value

        self._search_criteria = decode_mapping_column(row.get("search_context"))
        self._shown_properties = decode_shown_properties(row.get("shown_properties"))

        active_id = listing_id_or_none(row.get("active_property_id"))
        self._active_property_id = active_id if isinstance(active_id, str) else None
        self._active_property = None

        self.is_dirty = False
        return True

    def save(self) -> bool:
        """
        Persist the context if it changed.

        A failed write leaves the context dirty so the next save() retries.

        Returns:
            True if nothing needed saving or the write succeeded
        """
        if not self.conversation_id or not self.is_dirty:
            return True

        data: dict[str, Any] = {
            "collected_info": self._collected_info,
            "search_context": self._search_criteria,
            "shown_properties": [p.model_dump(mode="json") for p in self._shown_properties],
            "active_property_id": self._active_property_id,
            "updated_at": format_timestamp(utc_now()),
        }

        for field, column in IDENTITY_COLUMNS.items():
            if self._collected_info.get(field):
                data[column] = self._collected_info[field]

        try:
            saved = self.store.update(CONVERSATIONS_TABLE, data, self.conversation_id)
        except Exception as e:
            log_notification_error(
                error_type="context_save",
                error_message=str(e),
                context={"conversation_id": self.conversation_id},
            )
            saved = False

        if saved:
            self.is_dirty = False

        return saved

    # Collected user info

    def get_collected_info(self) -> CollectedInfo:
        return dict(self._collected_info)

    def set_collected_info(self, info: Mapping[str, Any]) -> None:
        """Merge user info; incoming values override existing keys."""
        self._collected_info.update(info)
        self.is_dirty = True

    def get_collected_field(self, field: str) -> Any:
        return self._collected_info.get(field)

    def set_collected_field(self, field: str, value: Any) -> None:
        self._collected_info[field] = value
        self.is_dirty = True

    def has_complete_contact_info(self) -> bool:
        """Name plus a phone number or email address."""
        info = self._collected_info
        return bool(info.get("name")) and bool(info.get("phone") or info.get("email"))

    # Search criteria

    def get_search_criteria(self) -> SearchCriteria:
        return dict(self._search_criteria)

    def update_search_criteria(self, new_criteria: Mapping[str, Any]) -> None:
        """Merge criteria, ignoring null or empty incoming values."""
        filtered = {
            key: value
            for key, value in new_criteria.items()
            if value is not None and value != ""
        }
        self._search_criteria.update(filtered)
        self.is_dirty = True

    def clear_search_criteria(self) -> None:
        self._search_criteria = {}
        self.is_dirty = True

    def get_search_criterion(self, key: str) -> Any:
        return self._search_criteria.get(key)

    # Shown properties

    def record_shown_properties(self, properties: Iterable[Mapping[str, Any]]) -> None:
        """Replace the shown list, numbering listings 1..N in display order."""
        self._shown_properties = [
            ShownProperty(
                index=index,
                listing_id=prop.get("listing_id"),
                address=prop.get("address"),
                street=prop.get("street_address", prop.get("street")),
                price=prop.get("price"),
            )
            for index, prop in enumerate(properties, start=1)
        ]
        self.is_dirty = True

    def get_shown_properties(self) -> list[ShownProperty]:
        return list(self._shown_properties)

    def resolve_reference(self, reference: str) -> ListingID | None:
        return resolve_reference(reference, self._shown_properties)

    # Active property

    def set_active_property(
        self, listing_id: ListingID, data: dict[str, Any] | None = None
    ) -> None:
        self._active_property_id = listing_id
        self._active_property = data
        self.is_dirty = True

    def get_active_property(self) -> dict[str, Any] | None:
        return self._active_property

    def get_active_property_id(self) -> ListingID | None:
        return self._active_property_id

    def clear_active_property(self) -> None:
        self._active_property_id = None
        self._active_property = None
        self.is_dirty = True

    # Returning visitors

    def check_returning_visitor(
        self, email: str | None = None, phone: str | None = None
    ) -> str | None:
        """
        Recognize a visitor from an earlier conversation.

        Looks for the most recent other conversation with the same email or
        phone and a known name, and pre-populates collected info from it.

        Returns:
            The visitor's name if recognized, None otherwise
        """
        if not email and not phone:
            return None

        candidates: list[dict[str, Any]] = []
        lookups = [("user_email", email), ("user_phone", phone)]
        try:
            for column, value in lookups:
                if not value:
                    continue
                candidates.extend(
                    self.store.get_results(
                        Query(
                            CONVERSATIONS_TABLE,
                            columns="id, user_name, user_email, user_phone, "
                            "collected_info, last_message_at",
                            eq={column: value},
                            neq={"id": self.conversation_id or 0, "user_name": ""},
                            not_null=["user_name"],
                            order_by="last_message_at",
                            descending=True,
                            limit=5,
                        )
                    )
                )
        except Exception as e:
            log_notification_error(
                error_type="returning_visitor",
                error_message=str(e),
                context={"conversation_id": self.conversation_id},
            )
            return None

        previous = _most_recent_named(candidates)
        if previous is None:
            return None

        identity = {
            field: getattr(previous, column)
            for field, column in IDENTITY_COLUMNS.items()
            if getattr(previous, column)
        }
        # Earlier details first, then the confirmed identity on top
        self._collected_info = {**previous.collected_info, **self._collected_info, **identity}
        self.is_dirty = True
        return previous.user_name

    # AI context

    def build_ai_context_string(self) -> str:
        """Format the context as markdown sections for the AI system prompt."""
        parts = []

        info = self._collected_info
        user_parts = []
        if info.get("name"):
            user_parts.append(f"Name: {info['name']}")
        if info.get("phone"):
            user_parts.append(f"Phone: {info['phone']}")
        if info.get("email"):
            user_parts.append(f"Email: {info['email']}")
        if user_parts:
            parts.append(
                "## User Contact Info (ALREADY COLLECTED - DO NOT ASK AGAIN)\n"
                + "\n".join(user_parts)
            )

        criteria = self._search_criteria
        search_parts = []
        if criteria.get("city"):
            search_parts.append(f"Location: {criteria['city']}")
        if criteria.get("neighborhood"):
            search_parts.append(f"Neighborhood: {criteria['neighborhood']}")
        if criteria.get("min_price") or criteria.get("max_price"):
            min_price = _as_number(criteria.get("min_price"), 0)
            max_price = _as_number(criteria.get("max_price"), 999999999)
            search_parts.append(f"Price Range: ${min_price:,.0f} - ${max_price:,.0f}")
        if criteria.get("min_bedrooms"):
            search_parts.append(f"Bedrooms: {criteria['min_bedrooms']}+")
        if criteria.get("property_type"):
            search_parts.append(f"Type: {criteria['property_type']}")
        if search_parts:
            parts.append(
                "## Active Search Criteria (KEEP these when user refines search)\n"
                + "\n".join(search_parts)
            )

        if self._shown_properties:
            lines = [
                f"#{p.index}: {p.address or ''} - {p.price or ''} (ID: {p.listing_id or ''})"
                for p in self._shown_properties
            ]
            parts.append(
                '## Recently Shown Properties (use to resolve references like "number 3")\n'
                + "\n".join(lines)
            )

        if self._active_property_id:
            parts.append(
                "## Active Property Being Discussed\n"
                f"Listing ID: {self._active_property_id}\n"
                "Full property data is available. You can answer detailed questions about this property."
            )

        return "\n\n".join(parts)


def get_conversation_context(
    store: DataStore, conversation_id: ConversationID | None = None
) -> ConversationContext:
    return ConversationContext(store, conversation_id)


def _most_recent_named(rows: list[dict[str, Any]]) -> Conversation | None:
    named = []
    for row in rows:
        try:
            conversation = Conversation.model_validate(row)
        except PydanticValidationError:
            continue
        if conversation.user_name:
            named.append(conversation)
    if not named:
        return None
    # Rows without last_message_at sort last
    named.sort(
        key=lambda c: c.last_message_at.timestamp() if c.last_message_at else float("-inf"),
        reverse=True,
    )
    return named[0]


def _as_number(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
