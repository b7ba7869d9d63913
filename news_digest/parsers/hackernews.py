"""
Hacker News search adapter.

Queries the Algolia Hacker News search API for stories created inside the
lookback window.
"""

import logging
from typing import Any, Dict, List

import requests
from news_digest.models import CandidateItem, LookbackWindow
from news_digest.parsers.base import SourceAdapter, epoch_to_date

logger = logging.getLogger(__name__)


class HackerNewsAdapter(SourceAdapter):
    """Fetches stories from the Hacker News search API."""

    name = "Hacker News"
    API_URL = "https://hn.algolia.com/api/v1/search"

    def __init__(self, timeout: float = 10):
        self.timeout = timeout

    def _build_params(self, keyword: str, window: LookbackWindow) -> Dict[str, str]:
        return {
            "query": keyword,
            "tags": "story",
            "numericFilters": f"created_at_i>={window.start_timestamp}",
        }

    def fetch(self, keyword: str, window: LookbackWindow) -> List[CandidateItem]:
        """Fetches stories matching the keyword created since the window start."""
        items: List[CandidateItem] = []
        try:
            try:
                resp = requests.get(
                    self.API_URL,
                    params=self._build_params(keyword, window),
                    timeout=self.timeout,
                )
                resp.raise_for_status()
                payload: Dict[str, Any] = resp.json()
            except requests.RequestException as req_err:
                logger.error(
                    "Network error fetching Hacker News for '%s': %s", keyword, req_err
                )
                return []

            hits = payload.get("hits") or []
            logger.info("Hacker News returned %d hits for '%s'.", len(hits), keyword)
            for hit in hits:
                items.append(
                    {
                        "title": hit.get("title"),
                        "url": hit.get("url"),
                        "image_url": None,
                        "published_date": epoch_to_date(hit.get("created_at_i")),
                        "source": self.name,
                    }
                )
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Error parsing Hacker News for '%s': %s", keyword, e)
            return []
        return items
