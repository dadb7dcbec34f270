"""Shared type definitions for type checking.

Uses NewType for IDs to provide compile-time type safety - prevents mixing
different ID types (e.g., passing a ConversationID where a NotificationID
is expected).

Uses TypeAlias for complex types that are purely structural.
"""

from typing import Any, NewType, TypeAlias

# Row IDs assigned by the data store
ConversationID = NewType("ConversationID", int)
MessageID = NewType("MessageID", int)
NotificationID = NewType("NotificationID", int)
SummaryID = NewType("SummaryID", int)
KnowledgeEntryID = NewType("KnowledgeEntryID", int)

# MLS listing identifiers are opaque strings
ListingID = NewType("ListingID", str)

# Structural aliases
CollectedInfo: TypeAlias = dict[str, Any]  # name, phone, email, ...
SearchCriteria: TypeAlias = dict[str, Any]  # city, min_price, max_price, ...
DisplayPrice: TypeAlias = str | int | float  # "$500,000" or 500000
