"""
Knowledge base scanner for the chatbot.

Copies published site content into the chat_knowledge_base table so the
chatbot can answer questions about the business:
- pages: published pages, chunked when long
- posts: recent blog posts
- business_info: contact details from settings

Entries are keyed by (content_type, content_title); rescanning updates
existing entries in place instead of adding duplicates.
"""

import re
import time
from html import unescape
from typing import Any, Callable, Protocol

from bs4 import BeautifulSoup
from html2text import HTML2Text
from pydantic import ValidationError as PydanticValidationError

from models.knowledge import ContentChunk, KnowledgeEntry, ScanResult, SiteContent
from models.types import KnowledgeEntryID
from notifications.error_logger import log_notification_error
from shared import config
from shared.db import DataStore, Query
from shared.settings import SettingsProvider
from shared.utils import format_timestamp, timestamp_days_ago, utc_now

KNOWLEDGE_TABLE = "chat_knowledge_base"

CONTENT_TYPES = ("pages", "posts", "business_info")

MIN_CONTENT_LENGTH = 50
CHUNK_THRESHOLD = 3000
MAX_CHUNK_SIZE = 2500
MIN_SECTION_LENGTH = 100
SUMMARY_WORDS = 50

_SECTION_PATTERN = re.compile(r"##\s+([^\n]+)\n+([^#]+)")

# Page furniture that is never useful chatbot knowledge
STRIP_SELECTORS = ["script", "style", "nav", "footer", "form", ".sharedaddy", ".wp-block-buttons"]


class ContentSource(Protocol):
    def fetch_pages(self, limit: int = 100) -> list[SiteContent]: ...

    def fetch_posts(self, limit: int = 50) -> list[SiteContent]: ...


class KnowledgeScanner:
    """Scan site content into knowledge entries."""

    def __init__(
        self,
        store: DataStore,
        settings: SettingsProvider,
        content_source: ContentSource,
        site_name: str | None = None,
        site_url: str | None = None,
    ):
        self.store = store
        self.settings = settings
        self.content_source = content_source
        self.site_name = site_name or config.SITE_NAME
        self.site_url = site_url or config.SITE_URL

    def run_full_scan(self) -> ScanResult:
        """
        Scan every enabled content type.

        A failure in one content type is recorded and the scan moves on.

        Returns:
            ScanResult with totals and per-type results
        """
        print(f"Starting knowledge scan for {self.site_name}...")
        start = time.monotonic()
        result = ScanResult()

        scanners: dict[str, Callable[[], dict[str, int]]] = {
            "pages": self.scan_pages,
            "posts": self.scan_posts,
            "business_info": self.scan_business_info,
        }

        for content_type in self.get_enabled_content_types():
            scan = scanners.get(content_type)
            if scan is None:
                print(f"  ⚠️  Unknown content type '{content_type}', skipping")
                continue
            try:
                type_result = scan()
            except Exception as e:
                log_notification_error(
                    error_type="knowledge_scan",
                    error_message=str(e),
                    context={"content_type": content_type},
                )
                result.errors += 1
                result.content_types[content_type] = {"success": False, "error": str(e)}
                continue

            result.scanned += type_result["scanned"]
            result.updated += type_result["updated"]
            result.content_types[content_type] = {"success": True, **type_result}

        try:
            self.settings.set("knowledge_last_scan", format_timestamp(utc_now()))
        except Exception as e:
            log_notification_error(
                error_type="knowledge_scan",
                error_message=f"Could not record scan time: {e}",
            )
        result.duration_ms = round((time.monotonic() - start) * 1000)

        print(
            f"  ✓ Scan complete: {result.scanned} scanned, {result.updated} updated, "
            f"{result.errors} errors ({result.duration_ms}ms)"
        )
        return result

    def get_enabled_content_types(self) -> list[str]:
        try:
            enabled = self.settings.get_list("knowledge_scan_types")
        except Exception as e:
            log_notification_error(
                error_type="knowledge_scan",
                error_message=f"Could not read enabled content types: {e}",
            )
            enabled = []
        return enabled or list(CONTENT_TYPES)

    def scan_pages(self) -> dict[str, int]:
        return self._scan_site_content(self.content_source.fetch_pages(limit=100), "PAGE", "page_content")

    def scan_posts(self) -> dict[str, int]:
        return self._scan_site_content(self.content_source.fetch_posts(limit=50), "POST", "post_content")

    def scan_business_info(self) -> dict[str, int]:
        content = "Business Information:\n\n"
        content += f"Website: {self.site_name}\n"
        content += f"URL: {self.site_url}\n"
        admin_email = self.settings.get_admin_email()
        if admin_email:
            content += f"Contact Email: {admin_email}\n"
        content += "\n"

        for key, label in (
            ("business_phone", "Phone"),
            ("business_address", "Address"),
            ("business_hours", "Hours"),
        ):
            value = self.settings.get(key)
            if value:
                content += f"{label}: {value}\n"

        saved = self.save_knowledge_entry(
            "business_info",
            "Company Information",
            content,
            {"site_name": self.site_name},
        )
        return {"scanned": 1, "updated": 1 if saved is not None else 0}

    def save_knowledge_entry(
        self,
        content_type: str,
        title: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> KnowledgeEntryID | None:
        """
        Insert or update the entry keyed by (content_type, title).

        Returns:
            ID of the inserted or updated entry, or None if the write failed
        """
        try:
            entry = KnowledgeEntry(
                content_type=content_type,
                content_title=title,
                content_text=content,
                content_summary=summarize_words(content),
                content_metadata=metadata or {},
            )
        except PydanticValidationError as e:
            print(f"  ⚠️  Skipping invalid knowledge entry '{title}': {e}")
            return None

        now = format_timestamp(utc_now())
        data: dict[str, Any] = entry.model_dump(
            exclude={"id", "scan_date", "created_at", "updated_at"}
        )
        data["scan_date"] = now
        data["updated_at"] = now

        existing = self.store.get_row(
            Query(
                KNOWLEDGE_TABLE,
                columns="id",
                eq={"content_type": content_type, "content_title": title},
            )
        )

        if existing:
            if not self.store.update(KNOWLEDGE_TABLE, data, existing["id"]):
                return None
            return KnowledgeEntryID(existing["id"])

        data["created_at"] = now
        inserted = self.store.insert(KNOWLEDGE_TABLE, data)
        if not inserted or inserted.get("id") is None:
            return None
        return KnowledgeEntryID(inserted["id"])

    def cleanup_old_entries(self, days: int = 180) -> int:
        """Delete inactive entries not updated in the last `days` days."""
        try:
            deleted = self.store.delete(
                KNOWLEDGE_TABLE,
                Query(
                    KNOWLEDGE_TABLE,
                    eq={"is_active": False},
                    lt={"updated_at": timestamp_days_ago(days)},
                ),
            )
        except Exception as e:
            log_notification_error(
                error_type="knowledge_cleanup",
                error_message=str(e),
                context={"days": days},
            )
            return 0

        if deleted:
            print(f"Cleaned up {deleted} old knowledge entries")
        return deleted

    def _scan_site_content(
        self, items: list[SiteContent], label: str, content_type: str
    ) -> dict[str, int]:
        scanned = 0
        updated = 0

        for item in items:
            title = unescape(item.title).strip() or f"Untitled {item.id}"
            clean = extract_clean_content(item.content_html)
            if len(clean) < MIN_CONTENT_LENGTH:
                continue

            if len(clean) > CHUNK_THRESHOLD:
                chunks = chunk_content(clean)
                for index, chunk in enumerate(chunks):
                    if chunk.heading:
                        chunk_title = f"{title} - {chunk.heading}"
                        header = f"=== {label}: {title} - {chunk.heading} ==="
                    else:
                        chunk_title = f"{title} (Part {index + 1})"
                        header = f"=== {label}: {title} (Section {index + 1}) ==="
                    text = f"{header}\nURL: {item.url}\n\nCONTENT:\n{chunk.content}\n"
                    saved = self.save_knowledge_entry(
                        content_type,
                        chunk_title,
                        text,
                        {
                            "post_id": item.id,
                            "url": item.url,
                            "chunk_index": index,
                            "total_chunks": len(chunks),
                            "parent_title": title,
                        },
                    )
                    scanned += 1
                    updated += 1 if saved is not None else 0
                continue

            text = f"=== {label}: {title} ===\nURL: {item.url}\n"
            if item.modified:
                text += f"Last Updated: {item.modified}\n"
            if item.categories:
                text += f"Categories: {', '.join(item.categories)}\n"
            text += f"\nCONTENT:\n{clean}\n"

            saved = self.save_knowledge_entry(
                content_type,
                title,
                text,
                {"post_id": item.id, "url": item.url, "content_length": len(clean)},
            )
            scanned += 1
            updated += 1 if saved is not None else 0

        print(f"  ✓ Scanned {scanned} {content_type} entries")
        return {"scanned": scanned, "updated": updated}


def extract_clean_content(html: str) -> str:
    """Convert page HTML to plain text with markdown-style headings."""
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for selector in STRIP_SELECTORS:
        for match in soup.select(selector):
            match.decompose()

    converter = HTML2Text()
    converter.ignore_images = True
    converter.ignore_links = True
    converter.body_width = 0
    text = converter.handle(str(soup))

    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def chunk_content(content: str) -> list[ContentChunk]:
    """
    Split long content into sections.

    Uses "## heading" sections when there are any worth keeping, otherwise
    groups paragraphs into chunks of roughly MAX_CHUNK_SIZE characters.
    """
    chunks = [
        ContentChunk(heading=heading.strip(), content=body.strip())
        for heading, body in _SECTION_PATTERN.findall(content)
        if len(body.strip()) > MIN_SECTION_LENGTH
    ]
    if chunks:
        return chunks

    current = ""
    for paragraph in re.split(r"\n\n+", content):
        if current and len(current) + len(paragraph) > MAX_CHUNK_SIZE:
            chunks.append(ContentChunk(content=current.strip()))
            current = paragraph
        else:
            current = f"{current}\n\n{paragraph}" if current else paragraph

    if current.strip():
        chunks.append(ContentChunk(content=current.strip()))

    return chunks


def summarize_words(content: str, max_words: int = SUMMARY_WORDS) -> str:
    words = content.split()
    if len(words) <= max_words:
        return " ".join(words)
    return " ".join(words[:max_words]) + "..."
