"""Knowledge base scanning for the chatbot."""

from .scanner import KnowledgeScanner
from .wordpress_client import WordPressContentClient

__all__ = [
    "KnowledgeScanner",
    "WordPressContentClient",
]
