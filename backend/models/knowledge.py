"""Pydantic models for the chatbot knowledge base."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from models.types import KnowledgeEntryID


class KnowledgeEntry(BaseModel):
    """Knowledge row (chat_knowledge_base), unique on (content_type, content_title)."""

    id: KnowledgeEntryID | None = None
    content_type: str = Field(..., min_length=1)
    content_title: str = Field(..., min_length=1)
    content_text: str = ""
    content_summary: str = ""
    content_metadata: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    scan_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ContentChunk(BaseModel):
    heading: str = ""
    content: str


class SiteContent(BaseModel):
    """A published page or post fetched from the site."""

    id: int
    title: str
    content_html: str = ""
    url: str = ""
    modified: str = ""
    categories: list[str] = Field(default_factory=list)


class ScanResult(BaseModel):
    """Totals for one knowledge scan run."""

    success: bool = True
    scanned: int = 0
    updated: int = 0
    errors: int = 0
    content_types: dict[str, dict[str, Any]] = Field(default_factory=dict)
    duration_ms: int = 0
