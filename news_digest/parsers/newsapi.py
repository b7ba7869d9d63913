"""
NewsAPI.org adapter.

Queries the ``everything`` endpoint with a ``from`` date bound and re-checks
each returned date against the lookback window.
"""

import datetime
import logging
import re
from typing import List, Optional

import requests
from dateutil import parser as date_parser
from news_digest.models import CandidateItem, LookbackWindow
from news_digest.parsers.base import SourceAdapter

logger = logging.getLogger(__name__)


# Full calendar date and clock time followed by "Z" or a +hh:mm offset.
_OFFSET_DATE_TIME = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:\d{2}(:\d{2})?)$"
)


def parse_published_at(value: Optional[str]) -> Optional[datetime.date]:
    """
    Parses a NewsAPI ``publishedAt`` value into a calendar date.

    Accepts an offset date-time (``2026-10-15T23:30:00+05:30``), keeping the
    date in its own offset, or a UTC instant (``2026-10-15T12:00:00Z``), which
    yields the UTC date. Naive date-times, bare or compact dates, week dates and
    anything else return None.
    """
    if not value or not _OFFSET_DATE_TIME.match(value):
        return None
    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        return None
    return parsed.date()


class NewsAPIAdapter(SourceAdapter):
    """Fetches articles from NewsAPI.org."""

    name = "NewsAPI"
    API_URL = "https://newsapi.org/v2/everything"

    def __init__(self, api_key: Optional[str], timeout: float = 10):
        self.api_key = api_key
        self.timeout = timeout

    def fetch(self, keyword: str, window: LookbackWindow) -> List[CandidateItem]:
        """Fetches articles for the keyword published on or after the window start."""
        if not self.api_key:
            logger.warning("Skipping NewsAPI for '%s': NEWSAPI_KEY not set.", keyword)
            return []

        items: List[CandidateItem] = []
        try:
            try:
                resp = requests.get(
                    self.API_URL,
                    params={
                        "q": keyword,
                        "apiKey": self.api_key,
                        "from": window.start_date.isoformat(),
                    },
                    timeout=self.timeout,
                )
                resp.raise_for_status()
                payload = resp.json()
            except requests.RequestException as req_err:
                logger.error(
                    "Network error fetching NewsAPI for '%s': %s", keyword, req_err
                )
                return []

            articles = payload.get("articles") or []
            logger.info("NewsAPI returned %d articles for '%s'.", len(articles), keyword)
            for article in articles:
                title = article.get("title")
                raw_date = article.get("publishedAt")
                published = parse_published_at(raw_date)
                if published is None:
                    logger.warning(
                        "Dropping NewsAPI article '%s': unparseable date %r",
                        title,
                        raw_date,
                    )
                    continue
                # The API's lower bound is not exact
                if published < window.start_date:
                    logger.warning(
                        "Dropping NewsAPI article '%s': published %s before %s",
                        title,
                        published,
                        window.start_date,
                    )
                    continue

                items.append(
                    {
                        "title": title,
                        "url": article.get("url"),
                        "image_url": article.get("urlToImage"),
                        "published_date": published,
                        "source": self.name,
                    }
                )
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Error parsing NewsAPI for '%s': %s", keyword, e)
            return []
        return items
