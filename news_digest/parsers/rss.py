"""
RSS feed adapter implementation.

This module provides the GoogleNewsRSSAdapter class, which searches Google
News for a keyword restricted to one site and parses the resulting feed.
"""

import calendar
import datetime
import logging
from typing import Any, List, Optional

import requests
import feedparser  # type: ignore
from news_digest.models import CandidateItem, LookbackWindow
from news_digest.parsers.base import SourceAdapter, epoch_to_date

logger = logging.getLogger(__name__)

SITE_LABELS = {
    "timesofindia": "Times of India",
    "medium.com": "Medium",
}
DEFAULT_LABEL = "Google News"


def label_for_site(site: str) -> str:
    """Returns the source label used for articles found on a site."""
    for marker, label in SITE_LABELS.items():
        if marker in site:
            return label
    return DEFAULT_LABEL


class GoogleNewsRSSAdapter(SourceAdapter):
    """Parses Google News search feeds scoped to a single site."""

    FEED_URL = "https://news.google.com/rss/search"

    def __init__(self, site: str, timeout: float = 10):
        self.site = site
        self.timeout = timeout
        self.name = label_for_site(site)

    def _entry_date(self, entry: Any) -> Optional[datetime.date]:
        """Maps the entry's publish time, if any, to a local calendar date."""
        published = entry.get("published_parsed")
        if not published:
            return None
        # feedparser normalizes to a UTC struct_time
        return epoch_to_date(calendar.timegm(published))

    def fetch(self, keyword: str, window: LookbackWindow) -> List[CandidateItem]:
        """Fetches and parses the site-scoped search feed for a keyword."""
        items: List[CandidateItem] = []
        try:
            # Add a user-agent to prevent 403s from the feed endpoint
            try:
                resp = requests.get(
                    self.FEED_URL,
                    params={
                        "q": f"{keyword} site:{self.site}",
                        "hl": "en-IN",
                        "gl": "IN",
                        "ceid": "IN:en",
                    },
                    timeout=self.timeout,
                    headers={"User-Agent": "NewsDigestBot/1.0"},
                )
                resp.raise_for_status()
                feed_content = resp.content
            except requests.RequestException as req_err:
                logger.error(
                    "Network error fetching %s for '%s': %s", self.site, keyword, req_err
                )
                return []

            feed = feedparser.parse(feed_content)
            logger.info(
                "Google News RSS returned %d entries for '%s' on %s.",
                len(feed.entries),
                keyword,
                self.site,
            )
            for entry in feed.entries:
                items.append(
                    {
                        "title": entry.get("title"),
                        "url": entry.get("link"),
                        "image_url": None,
                        "published_date": self._entry_date(entry),
                        "source": self.name,
                    }
                )
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Error parsing %s for '%s': %s", self.site, keyword, e)
            return []
        return items
