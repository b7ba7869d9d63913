"""
Reddit search adapter.

Reddit's search endpoint has no usable date filter, so every returned post is
passed on and left to URL deduplication.
"""

import logging
from typing import List

import requests
from news_digest.models import CandidateItem, LookbackWindow
from news_digest.parsers.base import SourceAdapter, epoch_to_date

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "python-news-digest:news_digest:v1.0"


class RedditAdapter(SourceAdapter):
    """Fetches posts from the Reddit search API."""

    name = "Reddit"
    API_URL = "https://www.reddit.com/search.json"

    def __init__(self, timeout: float = 10, user_agent: str = DEFAULT_USER_AGENT):
        self.timeout = timeout
        self.user_agent = user_agent

    def fetch(self, keyword: str, window: LookbackWindow) -> List[CandidateItem]:
        """Fetches posts matching the keyword. The window is not applied."""
        items: List[CandidateItem] = []
        try:
            try:
                # Reddit throttles anonymous clients without a descriptive agent
                resp = requests.get(
                    self.API_URL,
                    params={"q": keyword},
                    headers={"User-Agent": self.user_agent},
                    timeout=self.timeout,
                )
                resp.raise_for_status()
                payload = resp.json()
            except requests.RequestException as req_err:
                logger.error(
                    "Network error fetching Reddit for '%s': %s", keyword, req_err
                )
                return []

            children = (payload.get("data") or {}).get("children") or []
            logger.info("Reddit returned %d posts for '%s'.", len(children), keyword)
            for child in children:
                post = child.get("data") or {}
                items.append(
                    {
                        "title": post.get("title"),
                        "url": post.get("url"),
                        "image_url": None,
                        "published_date": epoch_to_date(post.get("created_utc")),
                        "source": self.name,
                    }
                )
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Error parsing Reddit for '%s': %s", keyword, e)
            return []
        return items
