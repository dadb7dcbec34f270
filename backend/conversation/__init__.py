"""
Conversation memory for the chatbot.

- ConversationContext: collected info, search criteria, shown listings
- resolve_reference: map "the first one" / "70 Phillips" to a listing ID
"""

from .context import ConversationContext, get_conversation_context
from .reference_resolver import resolve_reference

__all__ = [
    "ConversationContext",
    "get_conversation_context",
    "resolve_reference",
]
