"""Error types shared by the chatbot service modules.

None of these escape the public operations: they are raised internally and
turned into declined results, row state, or boolean return values.
"""


class ChatbotServiceError(Exception):
    """Base class for chatbot service errors."""


class ValidationError(ChatbotServiceError):
    """Input rejected before anything was written (bad recipient, feature disabled)."""


class DeliveryError(ChatbotServiceError):
    """Mail sender declined the message, raised, or timed out."""


class NotFoundError(ChatbotServiceError):
    """Referenced conversation, message, or notification does not exist."""
