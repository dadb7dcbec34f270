"""
Fetch published pages and posts from the site's WordPress REST API.
"""

import time
from typing import Any

import requests

from models.knowledge import SiteContent


class WordPressContentClient:
    """Reads /wp-json/wp/v2 pages and posts with retries."""

    def __init__(self, site_url: str, max_retries: int = 3, timeout: int = 30):
        self.base_url = site_url.rstrip("/") + "/wp-json/wp/v2"
        self.max_retries = max_retries
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": "ChatbotKnowledgeScanner/1.0"})

    def _get_json(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        url = f"{self.base_url}/{path}"
        for attempt in range(self.max_retries):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
                response.raise_for_status()
                return response.json()
            except Exception as e:
                if attempt < self.max_retries - 1:
                    print(f"  ⚠ Fetch of {path} failed (attempt {attempt + 1}): {e}")
                    time.sleep(2**attempt)
                else:
                    raise
        return []

    def fetch_pages(self, limit: int = 100) -> list[SiteContent]:
        items = self._get_json("pages", {"status": "publish", "per_page": min(limit, 100)})
        return [_to_site_content(item) for item in items]

    def fetch_posts(self, limit: int = 50) -> list[SiteContent]:
        items = self._get_json(
            "posts",
            {
                "status": "publish",
                "per_page": min(limit, 100),
                "orderby": "date",
                "order": "desc",
                "_embed": "wp:term",
            },
        )
        return [_to_site_content(item) for item in items]


def _rendered(item: dict[str, Any], key: str) -> str:
    value = item.get(key) or {}
    if isinstance(value, dict):
        return value.get("rendered", "") or ""
    return str(value)


def _to_site_content(item: dict[str, Any]) -> SiteContent:
    categories = []
    for term_group in (item.get("_embedded") or {}).get("wp:term", []):
        for term in term_group:
            if term.get("taxonomy") == "category" and term.get("name"):
                categories.append(term["name"])

    return SiteContent(
        id=item["id"],
        title=_rendered(item, "title"),
        content_html=_rendered(item, "content"),
        url=item.get("link", ""),
        modified=(item.get("modified") or "")[:10],
        categories=categories,
    )
